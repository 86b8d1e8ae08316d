"""
Read-only views over entities owned by a SCIP instance.

A view is an ordered, bounds-checked sequence whose items are light proxies
around the pyscipopt objects. Views hold a reference to the owning handle so
the underlying SCIP instance outlives them, but they do not copy any data:
values are read from SCIP when a proxy attribute is accessed.
"""

from collections.abc import Sequence
from typing import List, Optional


class VariableProxy:
    __slots__ = ("_scip", "_var")

    def __init__(self, scip, var):
        self._scip = scip
        self._var = var

    @property
    def raw(self):
        return self._var

    @property
    def name(self) -> str:
        return self._var.name

    @property
    def vtype(self) -> str:
        # one of BINARY, INTEGER, IMPLINT, CONTINUOUS
        return self._var.vtype()

    @property
    def obj(self) -> float:
        return self._var.getObj()

    @property
    def lb(self) -> float:
        return self._var.getLbLocal()

    @property
    def ub(self) -> float:
        return self._var.getUbLocal()

    @property
    def lp_sol(self) -> float:
        return self._var.getLPSol()

    @property
    def avg_sol(self) -> float:
        return self._var.getAvgSol()

    @property
    def key(self) -> int:
        # address of the SCIP_VAR, stable while the variable exists
        return self._var.ptr()

    def column(self) -> Optional["ColumnProxy"]:
        if not self._var.isInLP():
            return None
        return ColumnProxy(self._scip, self._var.getCol())

    def __repr__(self):
        return f"VariableProxy({self.name!r})"


class ColumnProxy:
    __slots__ = ("_scip", "_col")

    def __init__(self, scip, col):
        self._scip = scip
        self._col = col

    @property
    def raw(self):
        return self._col

    def variable(self) -> VariableProxy:
        return VariableProxy(self._scip, self._col.getVar())

    @property
    def lp_pos(self) -> int:
        return self._col.getLPPos()

    @property
    def lb(self) -> float:
        return self._col.getLb()

    @property
    def ub(self) -> float:
        return self._col.getUb()

    @property
    def primsol(self) -> float:
        return self._col.getPrimsol()

    @property
    def age(self) -> int:
        return self._col.getAge()

    @property
    def basis_status(self) -> str:
        return self._col.getBasisStatus()

    @property
    def reduced_cost(self) -> float:
        return self._scip.getVarRedcost(self._col.getVar())

    def __repr__(self):
        return f"ColumnProxy(lp_pos={self.lp_pos})"


class RowProxy:
    __slots__ = ("_scip", "_row")

    def __init__(self, scip, row):
        self._scip = scip
        self._row = row

    @property
    def raw(self):
        return self._row

    @property
    def name(self) -> str:
        return self._row.name

    @property
    def lp_pos(self) -> int:
        return self._row.getLPPos()

    @property
    def lhs(self) -> float:
        return self._row.getLhs()

    @property
    def rhs(self) -> float:
        return self._row.getRhs()

    @property
    def constant(self) -> float:
        return self._row.getConstant()

    @property
    def norm(self) -> float:
        return self._row.getNorm()

    @property
    def age(self) -> int:
        return self._row.getAge()

    @property
    def basis_status(self) -> str:
        return self._row.getBasisStatus()

    @property
    def activity(self) -> float:
        return self._scip.getRowLPActivity(self._row)

    @property
    def dual_sol(self) -> float:
        return self._scip.getRowDualSol(self._row)

    @property
    def n_lp_nonzeros(self) -> int:
        return self._row.getNLPNonz()

    def lp_entries(self) -> List[tuple]:
        """(LP column position, coefficient) for each nonzero on a column of the current LP."""
        return [
            (col.getLPPos(), float(val))
            for col, val in zip(self._row.getCols(), self._row.getVals())
            if col.getLPPos() >= 0
        ]

    def entries(self) -> List[tuple]:
        """(variable proxy, coefficient) for every stored nonzero of the row."""
        return [
            (VariableProxy(self._scip, col.getVar()), float(val))
            for col, val in zip(self._row.getCols(), self._row.getVals())
        ]

    def __repr__(self):
        return f"RowProxy({self.name!r})"


class EntityView(Sequence):
    proxy_class = None

    def __init__(self, model, entities):
        # `model` is the owning handle, kept alive for as long as the view is
        self._model = model
        self._entities = tuple(entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return type(self)(self._model, self._entities[index])
        n = len(self._entities)
        if not -n <= index < n:
            raise IndexError(
                f"{type(self).__name__} index {index} out of range for {n} entities"
            )
        return self.proxy_class(self._model.as_pyscipopt(), self._entities[index])

    def __repr__(self):
        return f"{type(self).__name__}(size={len(self)})"


class VariableView(EntityView):
    proxy_class = VariableProxy


class ColumnView(EntityView):
    proxy_class = ColumnProxy


class RowView(EntityView):
    proxy_class = RowProxy
