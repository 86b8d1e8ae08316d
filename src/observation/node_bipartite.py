"""
Node bipartite observation.

Variables (LP columns) and LP rows are the two sides of a bipartite graph
whose edges are the nonzero LP coefficients. Each LP row
``lhs <= a.x + const <= rhs`` is read as a ``<=`` row: on its right-hand side
when ``rhs`` is finite, otherwise negated on its left-hand side. The same sign
is applied to the row's bias, objective similarity, dual value and edges.

Some features only depend on the problem and the LP structure (static) and are
kept between calls when caching is enabled; the others (dynamic) are read from
the solver at every call.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np
from loguru import logger

from observation.abstract import ObservationFunction
from observation.common import (
    BASIS_STATUS_FEATURES,
    DYNAMIC_ROW_SLICE,
    DYNAMIC_VARIABLE_SLICE,
    N_ROW_FEATURES,
    N_VARIABLE_FEATURES,
    STATIC_ROW_SLICE,
    STATIC_VARIABLE_SLICE,
    VARIABLE_TYPE_FEATURES,
    RowFeature,
    VariableFeature,
)
from observation.sparse import CooMatrix
from solver.common import AGE_SCALE_OFFSET
from solver.model import Model
from solver.views import ColumnView, RowProxy, RowView


@dataclass
class NodeBipartiteObs:
    variable_features: np.ndarray  # (n_columns, 20)
    row_features: np.ndarray  # (n_rows, 5)
    edge_features: CooMatrix  # (n_rows, n_columns)

    @classmethod
    def allocate(cls, n_columns: int, n_rows: int) -> "NodeBipartiteObs":
        return cls(
            variable_features=np.zeros((n_columns, N_VARIABLE_FEATURES), dtype=np.float64),
            row_features=np.zeros((n_rows, N_ROW_FEATURES), dtype=np.float64),
            edge_features=CooMatrix.empty((n_rows, n_columns)),
        )

    def copy(self) -> "NodeBipartiteObs":
        return NodeBipartiteObs(
            variable_features=self.variable_features.copy(),
            row_features=self.row_features.copy(),
            edge_features=CooMatrix(
                values=self.edge_features.values.copy(),
                indices=self.edge_features.indices.copy(),
                shape=self.edge_features.shape,
            ),
        )

    def freeze(self) -> "NodeBipartiteObs":
        for array in (
            self.variable_features,
            self.row_features,
            self.edge_features.values,
            self.edge_features.indices,
        ):
            array.flags.writeable = False
        return self


class _Orientation(NamedTuple):
    sign: float  # +1 on the rhs side, -1 on the lhs side
    side: float  # unshifted lhs or rhs the row is compared against


class _LPState(NamedTuple):
    obj_norm: float  # L2 norm of the objective, 1 when the objective is 0
    raw_obj_norm: float
    age_scale: float
    best_sol: object
    positions: Dict[int, int]  # variable address -> position in Model.variables()
    orientations: List[_Orientation]
    nnz: int


def _orientation(scip, row: RowProxy) -> _Orientation:
    rhs = row.rhs
    if not scip.isInfinity(abs(rhs)):
        return _Orientation(1.0, rhs)
    lhs = row.lhs
    if not scip.isInfinity(abs(lhs)):
        return _Orientation(-1.0, lhs)
    # free row, nothing to compare against
    return _Orientation(1.0, math.nan)


def _read_lp_state(model: Model, columns: ColumnView, rows: RowView) -> _LPState:
    scip = model.as_pyscipopt()
    variables = model.variables()
    obj_norm = math.sqrt(sum(var.obj ** 2 for var in variables))
    best_sol = scip.getBestSol() if scip.getNSols() > 0 else None
    return _LPState(
        obj_norm=obj_norm if obj_norm > 0 else 1.0,
        raw_obj_norm=obj_norm,
        age_scale=float(scip.getNLPs()) + AGE_SCALE_OFFSET,
        best_sol=best_sol,
        positions={var.key: i for i, var in enumerate(variables)},
        orientations=[_orientation(scip, row) for row in rows],
        nnz=sum(row.n_lp_nonzeros for row in rows),
    )


def _set_static_column_features(out: np.ndarray, columns: ColumnView, state: _LPState) -> None:
    out[:, STATIC_VARIABLE_SLICE] = 0.0
    for i, col in enumerate(columns):
        var = col.variable()
        out[i, VariableFeature.OBJECTIVE] = var.obj / state.obj_norm
        out[i, VARIABLE_TYPE_FEATURES[var.vtype]] = 1.0


def _set_dynamic_column_features(
    out: np.ndarray, scip, columns: ColumnView, state: _LPState
) -> None:
    out[:, DYNAMIC_VARIABLE_SLICE] = 0.0
    for i, col in enumerate(columns):
        var = col.variable()
        features = out[i]

        lb, ub = col.lb, col.ub
        has_lb = not scip.isInfinity(abs(lb))
        has_ub = not scip.isInfinity(abs(ub))
        primsol = col.primsol
        features[VariableFeature.HAS_LOWER_BOUND] = has_lb
        features[VariableFeature.HAS_UPPER_BOUND] = has_ub
        features[VariableFeature.NORMED_REDUCED_COST] = col.reduced_cost / state.obj_norm
        features[VariableFeature.SOLUTION_VALUE] = primsol
        if var.vtype != "CONTINUOUS":
            features[VariableFeature.SOLUTION_FRAC] = scip.feasFrac(var.lp_sol)
        features[VariableFeature.IS_SOLUTION_AT_LOWER_BOUND] = has_lb and scip.isEQ(primsol, lb)
        features[VariableFeature.IS_SOLUTION_AT_UPPER_BOUND] = has_ub and scip.isEQ(primsol, ub)
        features[VariableFeature.SCALED_AGE] = col.age / state.age_scale
        if state.best_sol is not None:
            features[VariableFeature.INCUMBENT_VALUE] = scip.getSolVal(state.best_sol, var.raw)
            features[VariableFeature.AVERAGE_INCUMBENT_VALUE] = var.avg_sol
        else:
            features[VariableFeature.INCUMBENT_VALUE] = math.nan
            features[VariableFeature.AVERAGE_INCUMBENT_VALUE] = math.nan
        features[BASIS_STATUS_FEATURES[col.basis_status]] = 1.0
        features[VariableFeature.INDEX] = state.positions[var.key]


def _row_norm(row: RowProxy) -> float:
    norm = row.norm
    return norm if norm > 0 else 1.0


def _set_static_row_features(out: np.ndarray, rows: RowView, state: _LPState) -> None:
    out[:, STATIC_ROW_SLICE] = 0.0
    for i, row in enumerate(rows):
        sign, side = state.orientations[i]
        norm = _row_norm(row)
        if not math.isnan(side):
            out[i, RowFeature.BIAS] = sign * (side - row.constant) / norm

        entries = row.entries()
        dot = sum(var.obj * coef for var, coef in entries)
        coef_norm = math.sqrt(sum(coef * coef for _, coef in entries))
        if coef_norm > 0 and state.raw_obj_norm > 0:
            out[i, RowFeature.OBJECTIVE_COSINE_SIMILARITY] = (
                sign * dot / (coef_norm * state.raw_obj_norm)
            )


def _set_dynamic_row_features(out: np.ndarray, scip, rows: RowView, state: _LPState) -> None:
    out[:, DYNAMIC_ROW_SLICE] = 0.0
    for i, row in enumerate(rows):
        sign, side = state.orientations[i]
        if not math.isnan(side):
            out[i, RowFeature.IS_TIGHT] = scip.isEQ(row.activity, side)
        out[i, RowFeature.DUAL_SOLUTION_VALUE] = (
            sign * row.dual_sol / (_row_norm(row) * state.obj_norm)
        )
        out[i, RowFeature.SCALED_AGE] = row.age / state.age_scale


def _edge_entries(rows: RowView, state: _LPState) -> Tuple[List[int], List[int], List[float]]:
    row_idx: List[int] = []
    col_idx: List[int] = []
    values: List[float] = []
    for i, row in enumerate(rows):
        sign = state.orientations[i].sign
        for lp_pos, coef in row.lp_entries():
            row_idx.append(i)
            col_idx.append(lp_pos)
            values.append(sign * coef)
    return row_idx, col_idx, values


class NodeBipartite(ObservationFunction[Optional[NodeBipartiteObs]]):
    """
    Bipartite graph observation of the current LP relaxation.

    With `use_cache`, the static feature columns and the edge structure computed
    on the first call of an episode are reused for the rest of the episode. This
    is only valid while the LP structure does not change, e.g. with cuts
    disabled; a structure of a different size triggers a full recomputation.
    """

    def __init__(self, use_cache: bool = False):
        self.use_cache = use_cache
        self._cache: Optional[NodeBipartiteObs] = None
        self._cache_computed = False

    def before_reset(self, model: Model) -> None:
        self._cache_computed = False

    def reset(self, initial_state: Model) -> None:
        self.before_reset(initial_state)

    def obtain_observation(self, state: Model, done: bool = False) -> Optional[NodeBipartiteObs]:
        return self.extract(state, done)

    def _cache_fits(self, columns: ColumnView, rows: RowView, state: _LPState) -> bool:
        cache = self._cache
        return (
            cache.variable_features.shape[0] == len(columns)
            and cache.row_features.shape[0] == len(rows)
            and cache.edge_features.nnz == state.nnz
        )

    def extract(self, model: Model, done: bool) -> Optional[NodeBipartiteObs]:
        if done:
            return None

        scip = model.as_pyscipopt()
        columns = model.lp_columns()
        rows = model.lp_rows()
        state = _read_lp_state(model, columns, rows)

        update_static = True
        if self.use_cache and self._cache_computed:
            if self._cache_fits(columns, rows, state):
                update_static = False
            else:
                logger.debug(
                    "LP structure changed ({} columns, {} rows), recomputing cached features",
                    len(columns),
                    len(rows),
                )

        if update_static:
            obs = NodeBipartiteObs.allocate(len(columns), len(rows))
            _set_static_column_features(obs.variable_features, columns, state)
            _set_static_row_features(obs.row_features, rows, state)
        else:
            obs = self._cache

        _set_dynamic_column_features(obs.variable_features, scip, columns, state)
        _set_dynamic_row_features(obs.row_features, scip, rows, state)

        row_idx, col_idx, values = _edge_entries(rows, state)
        if update_static:
            obs.edge_features = CooMatrix(
                values=np.asarray(values, dtype=np.float64),
                indices=np.asarray([row_idx, col_idx], dtype=np.int64).reshape(2, -1),
                shape=(len(rows), len(columns)),
            )
        else:
            obs.edge_features.values = np.asarray(values, dtype=np.float64)

        if not self.use_cache:
            return obs.freeze()
        if update_static:
            self._cache = obs
            self._cache_computed = True
            logger.debug(
                "Cached static node bipartite features ({} columns, {} rows)",
                len(columns),
                len(rows),
            )
        return obs.copy().freeze()
