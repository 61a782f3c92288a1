"""
Validation steps attached to actions, and the registry holding them.
"""

import dataclasses
import itertools
import logging
import threading
import typing

from .context import RequestContext
from .params import ParamHandler
from .results import ActionReturn

LOGGER = logging.getLogger(__name__)


class Errors(typing.Protocol):
    """
    Collects validation error messages.
    """

    def add_error(self, err: str) -> None:
        """
        Adds an error message.
        """

    def has_error(self) -> bool:
        """
        Returns True iff at least one error message was added.
        """


@dataclasses.dataclass
class ErrorList:
    """
    Ordered list of validation error messages.
    """

    errors: list[str] = dataclasses.field(default_factory=list)

    def add_error(self, err: str) -> None:
        self.errors.append(err)

    def has_error(self) -> bool:
        return len(self.errors) > 0

    def to_json(self) -> dict[str, list[str]]:
        """
        Returns the JSON representation of the list, sent in Bad Request
        responses.
        """

        return {'errors': list(self.errors)}


def new_errors(*errs: str) -> ErrorList:
    """
    Creates an error list, optionally containing the given messages.
    """

    return ErrorList(list(errs))


# Business logic function, called with the request parameters and context.
# Raising an exception makes the request fail with an Internal Server Error.
ActionFunc: typing.TypeAlias = typing.Callable[[ParamHandler, RequestContext],
    ActionReturn]

# Validation logic executed before an action. Adds messages to the error list
# to reject the request; raising an exception is a fatal (server) error.
ValidationStep: typing.TypeAlias = typing.Callable[[ParamHandler,
    RequestContext, Errors], None]


@dataclasses.dataclass(frozen=True, eq=False)
class ActionHandle:
    """
    Stable handle of an action registered in a ValidationRegistry. Calling the
    handle calls the action.
    """

    ident: int
    name: str
    func: ActionFunc

    def __call__(self, params: ParamHandler, ctx: RequestContext
        ) -> ActionReturn:
        return self.func(params, ctx)

    def __repr__(self) -> str:
        return f"<ActionHandle #{self.ident} {self.name}>"


ActionLike: typing.TypeAlias = ActionFunc | ActionHandle


@dataclasses.dataclass(frozen=True)
class ValidationRegistry:
    """
    Associates actions with their validation steps. Registration is additive
    only: steps are kept in insertion order (duplicates included) and are never
    removed.
    """

    _handles: dict[typing.Hashable, ActionHandle] = dataclasses.field(
        default_factory=dict)
    _validators: dict[int, list[ValidationStep]] = dataclasses.field(
        default_factory=dict)
    _counter: typing.Iterator[int] = dataclasses.field(
        default_factory=lambda: itertools.count(1))
    _lock: threading.Lock = dataclasses.field(default_factory=threading.Lock)

    def register(self, action: ActionLike, name: str | None = None
        ) -> ActionHandle:
        """
        Returns the handle of an action, creating it if the action function is
        not known yet. If a handle is given, it is returned as-is.
        """

        if isinstance(action, ActionHandle):
            return action

        with self._lock:
            return self._register_locked(action, name)

    def add_validator(self, action: ActionLike, step: ValidationStep) -> None:
        """
        Appends a validation step to the steps of an action.
        """

        with self._lock:
            if isinstance(action, ActionHandle):
                handle = action
            else:
                handle = self._register_locked(action, None)

            self._validators.setdefault(handle.ident, []).append(step)

        LOGGER.debug("Added validation step %s to %s", _func_name(step),
            handle)

    def get_validators(self, action: ActionLike
        ) -> tuple[ValidationStep, ...] | None:
        """
        Returns the validation steps of an action, in insertion order.
        Returns None if no step was ever added for the action.
        """

        with self._lock:
            if isinstance(action, ActionHandle):
                ident: int | None = action.ident
            else:
                handle = self._handles.get(_action_key(action))
                ident = None if handle is None else handle.ident

            if ident is None:
                return None

            steps = self._validators.get(ident)
            if steps is None:
                return None

            return tuple(steps)

    def validator(self, action: ActionLike) -> typing.Callable[
        [ValidationStep], ValidationStep]:
        """
        Enables the decorator syntax to add a validation step:

        @registry.validator(some_action)
        def check_id(params, ctx, errors):
            ...
        """

        def _validator_inner(step: ValidationStep) -> ValidationStep:
            self.add_validator(action, step)
            return step

        return _validator_inner

    def _register_locked(self, func: ActionFunc, name: str | None
        ) -> ActionHandle:
        """
        Returns the handle of an action function, creating it if needed. Must
        be called with the lock held.
        """

        key = _action_key(func)
        handle = self._handles.get(key)
        if handle is not None:
            return handle

        if name is None:
            name = _func_name(func)

        handle = ActionHandle(next(self._counter), name, func)
        self._handles[key] = handle

        LOGGER.debug("Registered action %s", handle)

        return handle


class _IdentityKey:
    """
    Registry key of an unhashable action (such as an instance of a callable
    dataclass), compared by identity. The key keeps the action alive, so its
    id can not be reused by another object.
    """

    __slots__ = ('func',)

    def __init__(self, func: ActionFunc) -> None:
        self.func = func

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _IdentityKey) and other.func is self.func

    def __hash__(self) -> int:
        return id(self.func)


def _action_key(func: ActionFunc) -> typing.Hashable:
    """
    Returns the registry key of an action function: the function itself if it
    is hashable (bound methods of the same object compare equal), its identity
    otherwise.
    """

    try:
        hash(func)
    except TypeError:
        return _IdentityKey(func)

    return func


def _func_name(func: typing.Callable[..., typing.Any]) -> str:
    """
    Returns a readable name for a function, used in log messages.
    """

    return getattr(func, '__qualname__', None) or repr(func)
