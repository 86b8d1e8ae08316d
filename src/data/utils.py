from pathlib import Path
from typing import List

from data.common import OBS_SUFFIX


def ensure_obs_dir(root: Path, instance_path: Path) -> Path:
    obs_dir = root / instance_path.stem
    obs_dir.mkdir(parents=True, exist_ok=True)
    return obs_dir


def obs_path(obs_dir: Path, decision: int) -> Path:
    return obs_dir / f"decision-{decision:05}{OBS_SUFFIX}"


def list_obs_files(root: Path) -> List[Path]:
    """All observation files under `root`, ordered by instance then decision."""
    return sorted(Path(root).glob(f"*/*{OBS_SUFFIX}"))
