import numbers
import re
from typing import Any, Dict


class ParamType:
    # Values are the type names SCIP writes in parameter files.
    BOOL = "bool"
    INT = "int"
    LONGINT = "longint"
    REAL = "real"
    CHAR = "char"
    STRING = "string"

    ALL = (BOOL, INT, LONGINT, REAL, CHAR, STRING)


# pyscipopt setter for each parameter type
PARAM_SETTERS = {
    ParamType.BOOL: "setBoolParam",
    ParamType.INT: "setIntParam",
    ParamType.LONGINT: "setLongintParam",
    ParamType.REAL: "setRealParam",
    ParamType.CHAR: "setCharParam",
    ParamType.STRING: "setStringParam",
}

SEED_PARAM = "randomization/randomseedshift"

# Added to the LP count when scaling ages, so the first LP does not divide by 0.
AGE_SCALE_OFFSET = 5.0

_TYPE_COMMENT = re.compile(r"^#\s*\[type:\s*(\w+)")
_PARAM_ASSIGN = re.compile(r"^([^#=\s][^=]*?)\s*=")


def parse_param_types(text: str) -> Dict[str, str]:
    """
    Read the parameter types out of a SCIP parameter file written with comments,
    where each setting is preceded by a line such as
    ``# [type: int, advanced: FALSE, range: [0,2147483647], default: 0]``.
    """
    types: Dict[str, str] = {}
    pending = None
    for line in text.splitlines():
        line = line.strip()
        match = _TYPE_COMMENT.match(line)
        if match:
            pending = match.group(1).lower()
            continue
        if not line or line.startswith("#"):
            continue
        match = _PARAM_ASSIGN.match(line)
        if match and pending is not None:
            types[match.group(1)] = pending
            pending = None
    return types


def value_type_name(value: Any) -> str:
    return type(value).__name__


def is_compatible(param_type: str, value: Any) -> bool:
    """Whether a Python value may be written to a parameter of `param_type` without coercion."""
    is_bool = type(value).__name__ in ("bool", "bool_")
    if param_type == ParamType.BOOL:
        return is_bool
    if param_type in (ParamType.INT, ParamType.LONGINT):
        return isinstance(value, numbers.Integral) and not is_bool
    if param_type == ParamType.REAL:
        return isinstance(value, float) or (
            isinstance(value, numbers.Real) and not isinstance(value, numbers.Integral)
        )
    if param_type == ParamType.CHAR:
        return isinstance(value, str) and len(value) == 1
    if param_type == ParamType.STRING:
        return isinstance(value, str)
    return False


def cast_param(param_type: str, value: Any) -> Any:
    if param_type == ParamType.BOOL:
        return bool(value)
    if param_type in (ParamType.INT, ParamType.LONGINT):
        return int(value)
    if param_type == ParamType.REAL:
        return float(value)
    return str(value)
