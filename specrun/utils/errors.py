# specrun/utils/errors.py
class SpecrunError(RuntimeError):
    """Base class for every error raised by specrun itself."""


class ConfigurationError(SpecrunError):
    """
    Raised for an invalid config file or invalid config values.
    Should NOT print traceback.
    """


class FilterLockedError(SpecrunError):
    """
    Raised when filters are mutated after a run has started.
    """


class PendingExampleError(SpecrunError):
    """
    Raised from inside an example body to mark it pending.
    """


def pending(reason: str = "No reason given") -> None:
    raise PendingExampleError(reason)
