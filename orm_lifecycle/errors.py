"""
Exception hierarchy for orm_lifecycle.

Everything raised on purpose by this package derives from `OrmLifecycleError`,
so callers can catch the whole family at once. Validation failures also derive
from `ValueError` and lookup failures from `LookupError`.
"""


class OrmLifecycleError(Exception):
    """Base class for all orm_lifecycle errors."""


# ============================================================================
# Callbacks
# ============================================================================


class CallbackError(OrmLifecycleError):
    """Base class for callback definition and registration errors."""


class InvalidCallbackOptionError(CallbackError, ValueError):
    """An option key outside the accepted set was passed when registering a callback."""

    def __init__(self, key: str, allowed):
        self.key = key
        self.allowed = tuple(allowed)
        super().__init__(f"Unknown key: {key!r}. Valid keys are: {', '.join(repr(k) for k in self.allowed)}")


class InvalidCallbackTypeError(CallbackError, ValueError):
    """`only=` named a callback type other than before, around or after."""


class InvalidCallbackNameError(CallbackError, ValueError):
    """A callback name cannot be turned into a method name."""


class UndefinedCallbackError(CallbackError, LookupError):
    """No callback chain with this name was defined on the class."""


class CallbackNotFoundError(CallbackError, LookupError):
    """A callback to skip is not registered in the chain."""


# ============================================================================
# Storage
# ============================================================================


class StorageError(OrmLifecycleError):
    """Base class for relation, adapter and fixture errors."""


class UnknownAttributeError(StorageError, LookupError):
    """A where() condition referenced a column the table does not have."""


class AssociationNotFoundError(StorageError, LookupError):
    """includes() named a relationship the model does not declare."""


class UnsupportedAdapterError(StorageError):
    """No explain adapter is registered for the connection's dialect."""


class UnsupportedExplainOptionError(StorageError, ValueError):
    """The adapter does not understand an explain option."""


class FixtureNotFoundError(StorageError, LookupError):
    """load_fixtures() was asked for a fixture set that does not exist."""
