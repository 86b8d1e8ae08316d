import contextlib
import io
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import pyscipopt as scp
from loguru import logger
from pyscipopt import SCIP_LPSOLSTAT, SCIP_PARAMSETTING, SCIP_STAGE

from solver.common import (
    PARAM_SETTERS,
    SEED_PARAM,
    ParamType,
    cast_param,
    is_compatible,
    parse_param_types,
    value_type_name,
)
from solver.exceptions import (
    FileError,
    InitializationFailure,
    InvalidModel,
    ParameterValueError,
    StageViolation,
    TypeMismatch,
    UnknownParameter,
    scip_call,
    translate_error,
)
from solver.views import ColumnView, RowView, VariableView

# SCIPcopy touches global state inside SCIP and must not run concurrently,
# even on distinct instances. Nothing else is guarded by this lock.
_COPY_LOCK = threading.Lock()


def _create() -> scp.Model:
    try:
        scip = scp.Model()
    except Exception as exc:
        raise InitializationFailure("Could not create a SCIP instance") from exc
    scip.hideOutput(True)
    return scip


def _clone(source: scp.Model, original: bool = False) -> scp.Model:
    if source.getStage() == SCIP_STAGE.INIT:
        return _create()
    with _COPY_LOCK:
        dest = scip_call(
            scp.Model,
            problemName=source.getProbName(),
            sourceModel=source,
            origcopy=original,
        )
    dest.hideOutput(True)
    return dest


def copy_model(source: Optional["Model"]) -> Optional["Model"]:
    """Deep copy of a handle; ``None`` is passed through."""
    if source is None:
        return None
    return Model(_clone(source.as_pyscipopt()))


class Model:
    """
    Handle owning one SCIP instance.

    Copying a handle clones the SCIP instance. Equality is identity of the
    underlying instance: a copy never compares equal to its source, and neither
    do two handles that read the same problem file.
    """

    def __init__(self, scip: Optional[scp.Model] = None):
        if scip is None:
            scip = _create()
        elif not isinstance(scip, scp.Model):
            raise InvalidModel(
                f"Cannot create a model from {type(scip).__name__}, expected pyscipopt.Model"
            )
        self._scip = scip
        self._param_types: Dict[str, str] = {}
        # set when the parameter table may be missing names (new plugins)
        self._param_types_stale = True
        self._plugins = []

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> "Model":
        model = cls()
        model.read_problem(filepath)
        return model

    @classmethod
    def from_pyscipopt(cls, scip: scp.Model) -> "Model":
        if scip is None:
            raise InvalidModel("Cannot create a model from None")
        return cls(scip)

    def as_pyscipopt(self) -> scp.Model:
        return self._scip

    def copy(self) -> "Model":
        return copy_model(self)

    def copy_orig(self) -> "Model":
        """Copy of the original, untransformed problem."""
        return Model(_clone(self._scip, original=True))

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        return self.copy()

    def __eq__(self, other):
        if not isinstance(other, Model):
            return NotImplemented
        return self._scip is other._scip

    def __hash__(self):
        return id(self._scip)

    def __repr__(self):
        return f"Model(name={self.name!r}, stage={self.stage})"

    # ---------------------------------------------------------------- problem

    @property
    def name(self) -> str:
        return self._scip.getProbName()

    @property
    def stage(self) -> int:
        return self._scip.getStage()

    @property
    def is_solved(self) -> bool:
        return self.stage == SCIP_STAGE.SOLVED

    def read_problem(self, filepath: Union[str, Path]) -> None:
        path = Path(filepath)
        if not path.is_file():
            raise FileError(f"Problem file not found: {path}")
        try:
            self._scip.readProblem(str(path))
        except Exception as exc:
            raise FileError(f"Could not read problem file {path}: {exc}") from exc
        logger.debug(
            "Read {} ({} variables, {} constraints)",
            path,
            self._scip.getNVars(),
            self._scip.getNConss(),
        )

    def write_problem(self, filepath: Union[str, Path]) -> None:
        path = Path(filepath)
        try:
            # pyscipopt reports the write on stdout
            with contextlib.redirect_stdout(io.StringIO()):
                self._scip.writeProblem(str(path))
        except Exception as exc:
            raise FileError(f"Could not write problem file {path}: {exc}") from exc

    # ------------------------------------------------------------- parameters

    def _read_param_types(self) -> Dict[str, str]:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "params.set"
            with contextlib.redirect_stdout(io.StringIO()):
                scip_call(
                    self._scip.writeParams,
                    str(path),
                    comments=True,
                    onlychanged=False,
                )
            return parse_param_types(path.read_text())

    def get_param_type(self, name: str) -> str:
        if name not in self._param_types and self._param_types_stale:
            self._param_types = self._read_param_types()
            self._param_types_stale = False
        try:
            return self._param_types[name]
        except KeyError:
            raise UnknownParameter(f"Unknown parameter: '{name}'") from None

    def get_param(self, name: str, param_type: Optional[str] = None) -> Any:
        stored = self.get_param_type(name)
        if param_type is not None and param_type != stored:
            raise TypeMismatch(
                f"Parameter '{name}' is of type {stored}, requested as {param_type}"
            )
        return cast_param(stored, scip_call(self._scip.getParam, name))

    def set_param(self, name: str, value: Any, param_type: Optional[str] = None) -> None:
        stored = self.get_param_type(name)
        if param_type is not None and param_type != stored:
            raise TypeMismatch(
                f"Parameter '{name}' is of type {stored}, written as {param_type}"
            )
        if not is_compatible(stored, value):
            raise TypeMismatch(
                f"Parameter '{name}' is of type {stored}, got {value_type_name(value)} {value!r}"
            )
        setter = getattr(self._scip, PARAM_SETTERS[stored])
        try:
            setter(name, cast_param(stored, value))
        except (ValueError, OverflowError) as exc:
            raise ParameterValueError(
                f"Invalid value {value!r} for parameter '{name}'"
            ) from exc
        except Exception as exc:
            raise translate_error(exc) from exc

    def get_params(self) -> Dict[str, Any]:
        types = self._read_param_types()
        self._param_types = types
        self._param_types_stale = False
        values = scip_call(self._scip.getParams)
        return {
            name: cast_param(types[name], value)
            for name, value in values.items()
            if name in types
        }

    def set_params(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set_param(name, value)

    @property
    def seed(self) -> int:
        return self.get_param(SEED_PARAM, ParamType.INT)

    @seed.setter
    def seed(self, value: int) -> None:
        if not is_compatible(ParamType.INT, value):
            raise TypeMismatch(
                f"Seed must be an int, got {value_type_name(value)} {value!r}"
            )
        # the sign is dropped, seed(-v) and seed(v) are the same seed
        self.set_param(SEED_PARAM, abs(value), ParamType.INT)

    def disable_presolve(self) -> None:
        scip_call(self._scip.setPresolve, SCIP_PARAMSETTING.OFF)

    def disable_cuts(self) -> None:
        scip_call(self._scip.setSeparating, SCIP_PARAMSETTING.OFF)

    # ---------------------------------------------------------------- solving

    def solve(self) -> None:
        scip_call(self._scip.optimize)

    def interrupt_solve(self) -> None:
        """
        Ask SCIP to stop at its next safe point. Meant to be called from a
        callback running inside solve(), not from another thread.
        """
        scip_call(self._scip.interruptSolve)

    def include_branchrule(
        self,
        branchrule: scp.Branchrule,
        name: str,
        description: str = "",
        priority: int = 536870911,
        maxdepth: int = -1,
        maxbounddist: float = 1.0,
    ) -> None:
        scip_call(
            self._scip.includeBranchrule,
            branchrule,
            name,
            description,
            priority,
            maxdepth,
            maxbounddist,
        )
        # the instance owns the rule from here on
        self._plugins.append(branchrule)
        self._param_types_stale = True

    # ------------------------------------------------------------------ views

    def variables(self) -> VariableView:
        return VariableView(self, self._scip.getVars(transformed=True))

    def lp_branch_cands(self) -> VariableView:
        if self.stage != SCIP_STAGE.SOLVING or self._scip.getLPSolstat() not in (
            SCIP_LPSOLSTAT.OPTIMAL,
            SCIP_LPSOLSTAT.UNBOUNDEDRAY,
        ):
            return VariableView(self, ())
        cands, *_ = scip_call(self._scip.getLPBranchCands)
        return VariableView(self, cands)

    def lp_columns(self) -> ColumnView:
        if self.stage != SCIP_STAGE.SOLVING:
            raise StageViolation("LP columns are only available during solving")
        return ColumnView(self, self._scip.getLPColsData())

    def lp_rows(self) -> RowView:
        if self.stage != SCIP_STAGE.SOLVING:
            raise StageViolation("LP rows are only available during solving")
        return RowView(self, self._scip.getLPRowsData())
