"""
Generic callback-chain engine.

A callback chain is an ordered list of before/around/after handlers that run
around a named action. Chains live in a registry keyed by class, so every
class (and its subclasses) can carry its own set of chains without
synthesizing state on the class itself.

Running a chain (`run_callbacks`):

- before callbacks run in chain order; if one halts (by default: raises
  `Abort`) the remaining before/around callbacks and the action block are
  skipped
- around callbacks wrap everything that follows them in the chain
- after callbacks run in reverse chain order
- the return value is `False` when halted, `True` when there is no block,
  otherwise whatever the block returned

Example:

    >>> class Job:
    ...     def perform(self):
    ...         return run_callbacks(self, "perform", lambda: "done")
    >>> define_callbacks(Job, "perform")
    >>> set_callback(Job, "perform", "before", lambda job: print("starting"))
    >>> Job().perform()
    starting
    'done'
"""

import inspect
import logging
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import CallbackNotFoundError, UndefinedCallbackError

logger = logging.getLogger(__name__)


class CallbackKind(str, Enum):
    """When a callback runs relative to the action."""

    BEFORE = "before"
    AROUND = "around"
    AFTER = "after"


class Abort(Exception):
    """Raise from a before callback to halt the chain."""


def default_terminator(target: Any, result_fn: Callable[[], Any]) -> bool:
    """Run a before callback; the chain halts only if it raises `Abort`."""
    try:
        result_fn()
    except Abort:
        return True
    return False


def _positional_arity(fn: Callable) -> float:
    """Number of positional arguments `fn` accepts (inf for *args)."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return float("inf")
    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            return float("inf")
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


class ChainConfig(BaseModel):
    """Per-chain settings shared by every callback in it.

    Attributes:
        terminator: Called as terminator(target, result_fn) for each before
            callback; returns True to halt the chain.
        skip_after_callbacks_if_terminated: Skip after callbacks when a
            before callback halted the chain.
        scope: Parts joined with "_" to name the method called on object
            filters. "kind" and "name" are replaced by the callback kind and
            chain name, anything else is used literally.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    terminator: Callable[[Any, Callable[[], Any]], bool] = default_terminator
    skip_after_callbacks_if_terminated: bool = False
    scope: tuple[str, ...] = ("kind",)

    @field_validator("scope", mode="before")
    @classmethod
    def _scope_as_tuple(cls, value):
        if isinstance(value, str):
            return (value,)
        return tuple(value)


class ValueCondition:
    """A condition evaluated against the action's value instead of the target."""

    def __init__(self, fn: Callable[[Any], bool]):
        self.fn = fn

    def __call__(self, value: Any) -> bool:
        return bool(self.fn(value))

    def __repr__(self) -> str:
        return f"ValueCondition({self.fn!r})"


@dataclass
class Callback:
    """One registered handler in a chain."""

    name: str
    kind: CallbackKind
    filter: Any
    config: ChainConfig
    if_: list = field(default_factory=list)
    unless: list = field(default_factory=list)

    @property
    def method_name(self) -> str:
        """Method looked up on object filters, e.g. before_create."""
        parts = []
        for part in self.config.scope:
            if part == "kind":
                parts.append(self.kind.value)
            elif part == "name":
                parts.append(self.name)
            else:
                parts.append(part)
        return "_".join(parts)

    def matches(self, kind: CallbackKind, filter: Any) -> bool:
        return self.kind is kind and self.filter == filter

    def duplicates(self, other: "Callback") -> bool:
        # Only method-name filters can be identified across registrations.
        return isinstance(self.filter, str) and self.matches(other.kind, other.filter)

    def applies(self, target: Any, value: Any) -> bool:
        """True when every `if` condition holds and no `unless` condition does."""
        return all(_check_condition(c, target, value) for c in self.if_) and not any(_check_condition(c, target, value) for c in self.unless)

    def handler(self, target: Any) -> tuple[Callable, tuple]:
        """Resolve the filter into (callable, leading args) for this target."""
        filter = self.filter
        if isinstance(filter, str):
            return getattr(target, filter), ()
        if hasattr(filter, self.method_name):
            return getattr(filter, self.method_name), (target,)
        if inspect.isclass(filter):
            raise TypeError(f"Callback class {filter.__qualname__} does not define {self.method_name}()")
        if callable(filter):
            wanted = 2 if self.kind is CallbackKind.AROUND and not inspect.isgeneratorfunction(filter) else 1
            return filter, ((target,) if _positional_arity(filter) >= wanted else ())
        raise TypeError(f"Callback filter must be a method name, a callable or an object responding to {self.method_name}(), got {filter!r}")


def _check_condition(condition: Any, target: Any, value: Any) -> bool:
    if isinstance(condition, ValueCondition):
        return condition(value)
    if isinstance(condition, str):
        return bool(getattr(target, condition)())
    if callable(condition):
        if _positional_arity(condition) >= 1:
            return bool(condition(target))
        return bool(condition())
    raise TypeError(f"Callback condition must be a method name or a callable, got {condition!r}")


class CallbackChain:
    """Ordered callbacks for one action name."""

    def __init__(self, name: str, config: Optional[ChainConfig] = None):
        self.name = name
        self.config = config or ChainConfig()
        self._chain: list[Callback] = []

    def __iter__(self) -> Iterator[Callback]:
        return iter(self._chain)

    def __len__(self) -> int:
        return len(self._chain)

    def __repr__(self) -> str:
        return f"CallbackChain({self.name!r}, {len(self._chain)} callbacks)"

    def append(self, *callbacks: Callback) -> None:
        for callback in callbacks:
            self._remove_duplicates(callback)
            self._chain.append(callback)

    def prepend(self, *callbacks: Callback) -> None:
        for callback in callbacks:
            self._remove_duplicates(callback)
            self._chain.insert(0, callback)

    def delete(self, callback: Callback) -> None:
        self._chain.remove(callback)

    def find(self, kind: CallbackKind, filter: Any) -> Optional[Callback]:
        for callback in self._chain:
            if callback.matches(kind, filter):
                return callback
        return None

    def clear(self) -> None:
        self._chain.clear()

    def copy(self) -> "CallbackChain":
        chain = CallbackChain(self.name, self.config)
        chain._chain = list(self._chain)
        return chain

    def _remove_duplicates(self, callback: Callback) -> None:
        self._chain = [existing for existing in self._chain if not callback.duplicates(existing)]


def _descendants(cls: type) -> list[type]:
    seen = []
    pending = list(cls.__subclasses__())
    while pending:
        subclass = pending.pop(0)
        if subclass not in seen:
            seen.append(subclass)
            pending.extend(subclass.__subclasses__())
    return seen


class CallbackRegistry:
    """Maps (class, action name) to its callback chain.

    Lookups walk the MRO, so subclasses see their parents' chains. Updates
    copy the nearest chain onto the class and every descendant before
    changing it, so a parent's later registrations still reach subclasses
    while a subclass's own registrations stay local.
    """

    def __init__(self):
        self._chains: "weakref.WeakKeyDictionary[type, dict[str, CallbackChain]]" = weakref.WeakKeyDictionary()

    def define(self, cls: type, name: str, config: ChainConfig) -> CallbackChain:
        chain = CallbackChain(name, config)
        self._chains.setdefault(cls, {})[name] = chain
        logger.debug("Defined callback chain %r on %s", name, cls.__qualname__)
        return chain

    def is_defined(self, cls: type, name: str) -> bool:
        return self._find(cls, name) is not None

    def get(self, cls: type, name: str) -> CallbackChain:
        chain = self._find(cls, name)
        if chain is None:
            raise UndefinedCallbackError(f"No callbacks named {name!r} are defined on {cls.__qualname__}")
        return chain

    def update(self, cls: type, name: str, mutate: Callable[[CallbackChain], None]) -> None:
        self.get(cls, name)
        for target in [cls, *_descendants(cls)]:
            chain = self.get(target, name).copy()
            mutate(chain)
            self._chains.setdefault(target, {})[name] = chain

    def _find(self, cls: type, name: str) -> Optional[CallbackChain]:
        for klass in cls.__mro__:
            chains = self._chains.get(klass)
            if chains and name in chains:
                return chains[name]
        return None


registry = CallbackRegistry()


# ============================================================================
# Definition API
# ============================================================================


def define_callbacks(cls: type, *names: str, **config: Any) -> None:
    """Create empty callback chains on `cls`, one per name.

    Keyword arguments populate `ChainConfig`. Redefining a name replaces its
    chain on `cls`.
    """
    chain_config = ChainConfig(**config)
    for name in names:
        registry.define(cls, name, chain_config)


def get_callbacks(cls: type, name: str) -> CallbackChain:
    """Return the chain `name` as seen from `cls`, inherited or its own."""
    return registry.get(cls, name)


def set_callback(
    cls: type,
    name: str,
    kind,
    *filters: Any,
    if_=None,
    unless=None,
    prepend: bool = False,
) -> None:
    """Register filters of the given kind on the chain `name`.

    Args:
        cls: Class owning the chain (or inheriting it).
        name: Chain name passed to define_callbacks.
        kind: "before", "around", "after" or a CallbackKind.
        filters: Method names, callables, or objects exposing a method named
            after the chain scope (for example before_save(target)).
        if_: Condition or list of conditions that must all hold.
        unless: Condition or list of conditions that must all fail.
        prepend: Insert at the front of the chain instead of the back.
    """
    kind = CallbackKind(kind)
    if not filters:
        raise TypeError("set_callback() requires at least one filter")
    conditions = _as_list(if_)
    exclusions = _as_list(unless)

    def mutate(chain: CallbackChain) -> None:
        callbacks = [Callback(name, kind, f, chain.config, list(conditions), list(exclusions)) for f in filters]
        if prepend:
            chain.prepend(*callbacks)
        else:
            chain.append(*callbacks)

    registry.update(cls, name, mutate)
    logger.debug("Registered %s_%s callbacks on %s: %r", kind.value, name, cls.__qualname__, filters)


def skip_callback(cls: type, name: str, kind, *filters: Any, raise_if_missing: bool = True) -> None:
    """Remove previously registered filters from the chain."""
    kind = CallbackKind(kind)
    if raise_if_missing:
        chain = registry.get(cls, name)
        for filter in filters:
            if chain.find(kind, filter) is None:
                raise CallbackNotFoundError(f"{kind.value} {name} callback {filter!r} has not been defined")

    def mutate(chain: CallbackChain) -> None:
        for filter in filters:
            callback = chain.find(kind, filter)
            if callback is not None:
                chain.delete(callback)

    registry.update(cls, name, mutate)


def reset_callbacks(cls: type, name: str) -> None:
    """Remove every callback from the chain on `cls` and its subclasses."""
    registry.update(cls, name, lambda chain: chain.clear())


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


# ============================================================================
# Running
# ============================================================================


class _Run:
    """Mutable state of one run_callbacks invocation."""

    def __init__(self, target: Any, name: str):
        self.target = target
        self.name = name
        self.value: Any = None
        self.halted = False


def run_callbacks(target: Any, name: str, block: Optional[Callable[[], Any]] = None) -> Any:
    """Run the chain `name` for `target` around `block`."""
    chain = registry.get(type(target), name)
    run = _Run(target, name)

    def final() -> None:
        if run.halted:
            run.value = False
        else:
            run.value = block() if block is not None else True

    _run_sequence(list(chain), run, final)
    return run.value


def _run_sequence(callbacks: list[Callback], run: _Run, inner: Callable[[], None]) -> None:
    befores: list[Callback] = []
    afters: list[Callback] = []
    body = inner
    for index, callback in enumerate(callbacks):
        if callback.kind is CallbackKind.AROUND:
            rest = callbacks[index + 1 :]
            body = _around(callback, run, lambda: _run_sequence(rest, run, inner))
            break
        if callback.kind is CallbackKind.BEFORE:
            befores.append(callback)
        else:
            afters.insert(0, callback)

    for callback in befores:
        _run_before(callback, run)
    body()
    for callback in afters:
        _run_after(callback, run)


def _run_before(callback: Callback, run: _Run) -> None:
    if run.halted or not callback.applies(run.target, run.value):
        return
    fn, args = callback.handler(run.target)
    run.halted = bool(callback.config.terminator(run.target, lambda: fn(*args)))
    if run.halted:
        logger.debug("%s chain halted by %r on %r", run.name, callback.filter, run.target)
        hook = getattr(run.target, "halted_callback_hook", None)
        if hook is not None:
            hook(callback.filter, run.name)


def _run_after(callback: Callback, run: _Run) -> None:
    if run.halted and callback.config.skip_after_callbacks_if_terminated:
        return
    if not callback.applies(run.target, run.value):
        return
    fn, args = callback.handler(run.target)
    fn(*args)


def _around(callback: Callback, run: _Run, nested: Callable[[], None]) -> Callable[[], None]:
    def invoke() -> None:
        if run.halted or not callback.applies(run.target, run.value):
            nested()
            return
        fn, args = callback.handler(run.target)
        if inspect.isgeneratorfunction(fn):
            _drive_generator(callback, fn(*args), nested)
        else:
            fn(*args, nested)

    return invoke


def _drive_generator(callback: Callback, generator, nested: Callable[[], None]) -> None:
    try:
        next(generator)
    except StopIteration:
        # Never yielded: the wrapped part does not run.
        return
    try:
        nested()
    except Exception as exc:
        try:
            generator.throw(exc)
        except StopIteration:
            return
        raise RuntimeError(f"around callback {callback.filter!r} yielded more than once")
    try:
        next(generator)
    except StopIteration:
        return
    raise RuntimeError(f"around callback {callback.filter!r} yielded more than once")
