import contextlib
import io
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pyscipopt as scp
import pytest
from pyscipopt import SCIP_RESULT

from solver.model import Model

# Knapsack whose LP relaxation is fractional at the root (x2 = 0.5), so SCIP
# has to branch before proving optimality.
VALUES = (5.5, 4.3, 3.7, 2.9)
WEIGHTS = (3, 2, 2, 1)
CAPACITY = 4

# Multi-resource integer knapsack, large enough that SCIP takes many branching
# decisions with presolving, cuts and conflict analysis off.
_rng = np.random.RandomState(0)
N_ITEMS = 40
N_RESOURCES = 15
ITEM_UB = 3
PROFITS = _rng.randint(10, 60, size=N_ITEMS)
RESOURCE_WEIGHTS = _rng.randint(1, 30, size=(N_RESOURCES, N_ITEMS))
RESOURCE_CAPACITIES = (0.6 * RESOURCE_WEIGHTS.sum(axis=1)).astype(int)
# ">=" row over the first items, with a continuous slack so it stays a linear row
COVER_SIZE = 10
COVER_LHS = 5
# "==" row x0 + x1 - x2 + t == BALANCE_RHS
BALANCE_RHS = 2


def build_knapsack() -> scp.Model:
    scip = scp.Model("knapsack")
    scip.hideOutput(True)
    x = [
        scip.addVar(name=f"x{i}", vtype="B", obj=value)
        for i, value in enumerate(VALUES)
    ]
    y = scip.addVar(name="y", vtype="C", lb=0.0, ub=1.0, obj=0.5)
    scip.addCons(
        scp.quicksum(w * xi for w, xi in zip(WEIGHTS, x)) + 2 * y <= CAPACITY,
        name="capacity",
    )
    scip.setMaximize()
    return scip


def build_multi_knapsack() -> scp.Model:
    scip = scp.Model("multi_knapsack")
    scip.hideOutput(True)
    x = [
        scip.addVar(name=f"x{j}", vtype="I", lb=0, ub=ITEM_UB, obj=float(profit))
        for j, profit in enumerate(PROFITS)
    ]
    s = scip.addVar(name="s", vtype="C", lb=0.0, ub=1.0, obj=-1.0)
    t = scip.addVar(name="t", vtype="C", lb=0.0, ub=1.0, obj=-1.0)
    for i in range(N_RESOURCES):
        scip.addCons(
            scp.quicksum(float(w) * xj for w, xj in zip(RESOURCE_WEIGHTS[i], x))
            <= float(RESOURCE_CAPACITIES[i]),
            name=f"resource_{i}",
        )
    scip.addCons(scp.quicksum(x[:COVER_SIZE]) + s >= COVER_LHS, name="cover")
    scip.addCons(x[0] + x[1] - x[2] + t == BALANCE_RHS, name="balance")
    scip.setMaximize()
    return scip


def _write(scip: scp.Model, path: Path) -> Path:
    with contextlib.redirect_stdout(io.StringIO()):
        scip.writeProblem(str(path))
    return path


def _prepare(path: Path) -> Model:
    model = Model.from_file(path)
    model.disable_presolve()
    model.disable_cuts()
    return model


@pytest.fixture
def knapsack_path(tmp_path) -> Path:
    return _write(build_knapsack(), tmp_path / "knapsack.lp")


@pytest.fixture
def knapsack(knapsack_path) -> Model:
    return _prepare(knapsack_path)


@pytest.fixture
def multi_knapsack_path(tmp_path) -> Path:
    return _write(build_multi_knapsack(), tmp_path / "multi_knapsack.lp")


@pytest.fixture
def multi_knapsack(multi_knapsack_path) -> Model:
    model = _prepare(multi_knapsack_path)
    # conflict constraints could add LP rows between decisions
    model.set_param("conflict/enable", False)
    return model


class DecisionHook(scp.Branchrule):
    """Runs a callback at each branching decision, then defers to SCIP's own rules."""

    def __init__(self, model: Model, callback, max_calls: int):
        super().__init__()
        self.handle = model
        self.callback = callback
        self.max_calls = max_calls
        self.results = []
        self.error = None

    def branchexeclp(self, allowaddcons):
        if self.error is None and len(self.results) < self.max_calls:
            try:
                self.results.append(self.callback(self.handle))
            except Exception as exc:
                self.error = exc
        if self.error is not None or len(self.results) >= self.max_calls:
            self.handle.interrupt_solve()
        return {"result": SCIP_RESULT.DIDNOTRUN}


def run_at_decisions(model: Model, callback, max_calls: int = 1):
    """Solve `model`, calling `callback(model)` at the first `max_calls` branching decisions."""
    hook = DecisionHook(model, callback, max_calls)
    model.include_branchrule(hook, "decision_hook", "test hook", priority=1_000_000)
    model.solve()
    if hook.error is not None:
        raise hook.error
    return hook.results
