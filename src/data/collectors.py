import pickle
from pathlib import Path
from typing import Callable, Dict, List, Optional

import numpy as np
import pyscipopt as scp
import tqdm
from loguru import logger
from pyscipopt import SCIP_RESULT

from data.common import BRANCHRULE_NAME, Settings
from data.utils import ensure_obs_dir, obs_path
from observation.node_bipartite import NodeBipartite, NodeBipartiteObs
from solver.model import Model


class ObservationRecorder(scp.Branchrule):
    """
    Branching rule that records a node bipartite observation at every
    branching decision and then lets the next rule do the actual branching.
    After `max_decisions` decisions the solve is interrupted.
    """

    def __init__(
        self,
        model: Model,
        extractor: NodeBipartite,
        max_decisions: int,
        sink: Callable[[Dict], None],
    ):
        super().__init__()
        self.handle = model
        self.extractor = extractor
        self.max_decisions = max_decisions
        self.sink = sink
        self.n_decisions = 0
        self.error: Optional[Exception] = None

    def branchexeclp(self, allowaddcons):
        if self.error is not None or self.n_decisions >= self.max_decisions:
            return {"result": SCIP_RESULT.DIDNOTRUN}
        try:
            obs = self.extractor.extract(self.handle, done=False)
            self.sink(
                {
                    "obs": obs,
                    "candidates": candidate_positions(self.handle),
                    "decision": self.n_decisions,
                }
            )
        except Exception as exc:
            # exceptions do not cross the SCIP callback, re-raised after solve()
            self.error = exc
            self.handle.interrupt_solve()
            return {"result": SCIP_RESULT.DIDNOTRUN}

        self.n_decisions += 1
        if self.n_decisions >= self.max_decisions:
            self.handle.interrupt_solve()
        return {"result": SCIP_RESULT.DIDNOTRUN}


def candidate_positions(model: Model) -> np.ndarray:
    """LP column positions of the current branching candidates (rows of variable_features)."""
    positions: List[int] = []
    for var in model.lp_branch_cands():
        col = var.column()
        if col is not None:
            positions.append(col.lp_pos)
    return np.asarray(positions, dtype=np.int64)


def configure_model(settings: Settings, model: Model) -> None:
    model.seed = settings.seed
    if settings.disable_presolve:
        model.disable_presolve()
    if settings.disable_cuts:
        model.disable_cuts()
    if settings.disable_conflicts:
        # conflict constraints can add LP rows between decisions
        model.set_param("conflict/enable", False)
    if settings.time_limit is not None:
        model.set_param("limits/time", float(settings.time_limit))


def record_observations(
    settings: Settings, model: Model, sink: Callable[[Dict], None]
) -> int:
    """Solve `model` while feeding every recorded sample to `sink`. Returns the number of decisions."""
    extractor = NodeBipartite(use_cache=settings.use_cache)
    extractor.before_reset(model)

    recorder = ObservationRecorder(model, extractor, settings.max_decisions, sink)
    model.include_branchrule(
        recorder,
        BRANCHRULE_NAME,
        "Records node bipartite observations",
        priority=settings.branchrule_priority,
    )
    model.solve()
    if recorder.error is not None:
        raise recorder.error
    return recorder.n_decisions


def collect_instance(settings: Settings, instance_path: Path) -> int:
    model = Model.from_file(instance_path)
    configure_model(settings, model)
    obs_dir = ensure_obs_dir(settings.out_root, instance_path)

    def _write(sample: Dict) -> None:
        sample["instance"] = str(instance_path)
        with open(obs_path(obs_dir, sample["decision"]), "wb") as f:
            pickle.dump(sample, f)

    n_decisions = record_observations(settings, model, _write)
    logger.info(
        "{}: {} observations (solved={})", instance_path.name, n_decisions, model.is_solved
    )
    return n_decisions


def load_sample(filepath: Path) -> Dict:
    with open(filepath, "rb") as f:
        sample = pickle.load(f)
    if not (isinstance(sample, dict) and isinstance(sample.get("obs"), NodeBipartiteObs)):
        raise RuntimeError(
            f"{filepath} is not in the correct format. Expected a dict with a NodeBipartiteObs under 'obs'."
        )
    return sample


def collect_observations(settings: Settings) -> int:
    total = 0
    for instance_path in tqdm.tqdm(settings.instances, desc="Collecting observations"):
        try:
            total += collect_instance(settings, Path(instance_path))
        except Exception as e:
            logger.error("Failed on {}: {}", instance_path, e)
            continue

    logger.success(
        "{} observations from {} instances written to {}",
        total,
        len(settings.instances),
        settings.out_root,
    )
    return total
