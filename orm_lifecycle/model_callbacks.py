"""
Model callbacks: before/around/after hooks on named model actions.

Mix `ModelCallbacks` into any class and declare the actions that should
support callbacks:

    class Invoice(ModelCallbacks):
        def create(self):
            return self.run_callbacks("create", self._insert)

    Invoice.define_model_callbacks("create", "update")

This installs `before_create`, `around_create` and `after_create` (and the
same for update) as class methods. Each of them validates its options and
forwards to the callback registry in `orm_lifecycle.callbacks`:

    Invoice.before_create("assign_number")
    Invoice.after_create(send_receipt, **{"if": "paid"})

    @Invoice.around_update
    def audit(invoice):
        log("updating")
        yield
        log("updated")

Filters may also be objects exposing a method named after the callback; the
object's method receives the model instance:

    class Numbering:
        @staticmethod
        def before_create(invoice):
            invoice.number = next_number()

    Invoice.before_create(Numbering)

Accepted options are `if`, `unless` and `prepend` (`if_` is accepted as an
alias for `if`). After callbacks are always prepended to the chain, so they
run in the order they were declared, and they do not run when the action's
value is exactly True.
"""

import keyword
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .callbacks import ValueCondition, define_callbacks, run_callbacks, set_callback
from .errors import InvalidCallbackNameError, InvalidCallbackOptionError, InvalidCallbackTypeError

CALLBACK_TYPES = ("before", "around", "after")
ALLOWED_OPTION_KEYS = ("if", "unless", "prepend")
OPTION_ALIASES = {"if_": "if"}


class CallbackOptions(BaseModel):
    """Validated options for one callback registration."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    if_: tuple[Any, ...] = Field(default=(), alias="if")
    unless: tuple[Any, ...] = ()
    prepend: bool = False

    @field_validator("if_", "unless", mode="before")
    @classmethod
    def _as_tuple(cls, value):
        return _as_conditions(value)


@dataclass(frozen=True)
class InvalidOption:
    """Describes the option key that made validation fail."""

    key: str
    allowed: tuple[str, ...] = ALLOWED_OPTION_KEYS

    def to_error(self) -> InvalidCallbackOptionError:
        return InvalidCallbackOptionError(self.key, self.allowed)


def validate_callback_options(options: Mapping[str, Any]) -> Union[CallbackOptions, InvalidOption]:
    """Return the accepted options, or an InvalidOption naming the first unknown key."""
    accepted = {}
    for key, value in options.items():
        canonical = OPTION_ALIASES.get(key, key)
        if canonical not in ALLOWED_OPTION_KEYS:
            return InvalidOption(key)
        if canonical in accepted:
            # "if" and "if_" both given: every condition must hold.
            accepted[canonical] = _as_conditions(accepted[canonical]) + _as_conditions(value)
        else:
            accepted[canonical] = value
    return CallbackOptions.model_validate(accepted)


def _as_conditions(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def _action_value_is_not_true(value: Any) -> bool:
    return value is not True


def _after_options(options: CallbackOptions) -> CallbackOptions:
    return options.model_copy(
        update={
            "prepend": True,
            "if_": options.if_ + (ValueCondition(_action_value_is_not_true),),
        }
    )


# Option transformations applied per callback type before registration.
OPTION_TRANSFORMS: dict[str, Callable[[CallbackOptions], CallbackOptions]] = {
    "before": lambda options: options,
    "around": lambda options: options,
    "after": _after_options,
}


def _callback_types(only) -> tuple[str, ...]:
    types = (only,) if isinstance(only, str) else tuple(only)
    for kind in types:
        if kind not in CALLBACK_TYPES:
            raise InvalidCallbackTypeError(f"Unknown callback type {kind!r}; expected one of {', '.join(CALLBACK_TYPES)}")
    return types


def _check_name(name: Any) -> None:
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidCallbackNameError(f"Callback name must be a valid Python identifier, got {name!r}")


def _install_callback_method(klass: type, name: str, kind: str) -> None:
    transform = OPTION_TRANSFORMS[kind]
    method_name = f"{kind}_{name}"

    def register(cls, *filters: Any, **options: Any):
        validated = validate_callback_options(options)
        if isinstance(validated, InvalidOption):
            raise validated.to_error()
        validated = transform(validated)

        if not filters:

            def decorator(fn):
                set_callback(cls, name, kind, fn, if_=list(validated.if_), unless=list(validated.unless), prepend=validated.prepend)
                return fn

            return decorator

        set_callback(cls, name, kind, *filters, if_=list(validated.if_), unless=list(validated.unless), prepend=validated.prepend)
        # Bare decorator use: @Model.before_x passes the function as the only filter.
        return filters[0] if len(filters) == 1 else None

    register.__name__ = method_name
    register.__qualname__ = f"{klass.__qualname__}.{method_name}"
    register.__doc__ = f"Register {kind} callbacks for {name!r}. Called without filters, returns a decorator."
    setattr(klass, method_name, classmethod(register))


class ModelCallbacks:
    """Mixin giving a class Active Record style lifecycle callbacks."""

    @classmethod
    def define_model_callbacks(cls, *names: str, **options: Any) -> None:
        """Define callback chains and their before_/around_/after_ class methods.

        Args:
            names: Action names, e.g. "create", "update".
            only: A callback type or list of types to install
                (default: before, around and after).
            options: Chain settings (terminator,
                skip_after_callbacks_if_terminated, scope) overriding the
                model defaults.

        Example:
            >>> class Record(ModelCallbacks):
            ...     pass
            >>> Record.define_model_callbacks("initialize", only="after")
            >>> hasattr(Record, "after_initialize"), hasattr(Record, "before_initialize")
            (True, False)
        """
        config = {
            "skip_after_callbacks_if_terminated": False,
            "scope": ("kind", "name"),
            "only": CALLBACK_TYPES,
        }
        config.update(options)
        types = _callback_types(config.pop("only"))
        for name in names:
            _check_name(name)

        for name in names:
            define_callbacks(cls, name, **config)
            for kind in types:
                _install_callback_method(cls, name, kind)

    def run_callbacks(self, name: str, block: Optional[Callable[[], Any]] = None) -> Any:
        """Run the `name` chain around `block` and return the action's value."""
        return run_callbacks(self, name, block)
