from .callbacks import (
    Abort,
    CallbackChain,
    CallbackKind,
    ChainConfig,
    ValueCondition,
    define_callbacks,
    get_callbacks,
    reset_callbacks,
    run_callbacks,
    set_callback,
    skip_callback,
)
from .errors import (
    AssociationNotFoundError,
    CallbackError,
    CallbackNotFoundError,
    FixtureNotFoundError,
    InvalidCallbackNameError,
    InvalidCallbackOptionError,
    InvalidCallbackTypeError,
    OrmLifecycleError,
    StorageError,
    UndefinedCallbackError,
    UnknownAttributeError,
    UnsupportedAdapterError,
    UnsupportedExplainOptionError,
)
from .model_callbacks import CallbackOptions, InvalidOption, ModelCallbacks, validate_callback_options

__all__ = [
    # Callback engine
    "Abort",
    "CallbackChain",
    "CallbackKind",
    "ChainConfig",
    "ValueCondition",
    "define_callbacks",
    "get_callbacks",
    "reset_callbacks",
    "run_callbacks",
    "set_callback",
    "skip_callback",
    # Model callbacks
    "CallbackOptions",
    "InvalidOption",
    "ModelCallbacks",
    "validate_callback_options",
    # Errors
    "AssociationNotFoundError",
    "CallbackError",
    "CallbackNotFoundError",
    "FixtureNotFoundError",
    "InvalidCallbackNameError",
    "InvalidCallbackOptionError",
    "InvalidCallbackTypeError",
    "OrmLifecycleError",
    "StorageError",
    "UndefinedCallbackError",
    "UnknownAttributeError",
    "UnsupportedAdapterError",
    "UnsupportedExplainOptionError",
]
