from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class Settings:
    instances: Tuple[Path, ...]
    out_root: Path = Path("../data/observations")
    # Extractor
    use_cache: bool = True
    # Solver
    seed: int = 0
    disable_presolve: bool = False
    disable_cuts: bool = True
    disable_conflicts: bool = False
    time_limit: Optional[float] = None
    # Collection
    max_decisions: int = 100
    branchrule_priority: int = 1_000_000


OBS_SUFFIX = ".obs"
BRANCHRULE_NAME = "observation_recorder"
