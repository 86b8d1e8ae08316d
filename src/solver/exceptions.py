class ScipError(Exception):
    """Base class for every failure raised by the solver handle."""


class InitializationFailure(ScipError):
    """SCIP could not create a new instance."""


class InvalidModel(ScipError):
    """A handle was built from something that is not a SCIP model."""


class UnknownParameter(ScipError):
    pass


class TypeMismatch(ScipError):
    pass


class ParameterValueError(ScipError):
    """The value has the right type but is rejected by SCIP (e.g. out of range)."""


class StageViolation(ScipError):
    """Data requested outside of the solver stage where it is defined."""


class FileError(ScipError):
    """Problem file missing, unreadable or unwritable."""


def translate_error(exc: Exception) -> ScipError:
    """
    Map the built-in exceptions raised by pyscipopt onto our error kinds.
    pyscipopt raises KeyError for unknown parameters, LookupError for wrong
    parameter types, ValueError for rejected values and IOError on read/write.
    """
    if isinstance(exc, ScipError):
        return exc
    if isinstance(exc, KeyError):
        return UnknownParameter(str(exc))
    if isinstance(exc, LookupError):
        return TypeMismatch(str(exc))
    if isinstance(exc, (ValueError, OverflowError)):
        return ParameterValueError(str(exc))
    if isinstance(exc, OSError):
        return FileError(str(exc))
    return ScipError(str(exc))


def scip_call(func, *args, **kwargs):
    # Run a pyscipopt call, re-raising its failures as ScipError.
    try:
        return func(*args, **kwargs)
    except ScipError:
        raise
    except Exception as exc:
        raise translate_error(exc) from exc
