"""Named helper callables looked up by the template engine.

A :class:`HelperRegistry` maps helper names to :class:`HelperDefinition`
records. Value helpers are called as ``fn(*params, **hash)`` and return
something printable; block helpers are called as
``fn(block, *params, **hash)`` and decide how often, and with which context,
the unevaluated body (``block.fn``) or its ``{{else}}`` branch
(``block.inverse``) is rendered.

Examples
--------
>>> registry = HelperRegistry()
>>> _ = registry.register("shout", HelperKind.VALUE, lambda text="": text.upper())
>>> registry.resolve("shout").fn("hi")
'HI'
>>> registry.freeze()
>>> registry.register("shout", HelperKind.VALUE, str.lower)
Traceback (most recent call last):
...
doc_assembly.errors.HelperRegistrationError: Helper registry is frozen; cannot register 'shout'.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import inspect
import re
import typing as typ

from doc_assembly.errors import HelperRegistrationError

HELPER_NAME_PATTERN = re.compile(r"^\$?[A-Za-z_][\w-]*$")

HelperFn = cabc.Callable[..., typ.Any]
BodyRenderer = cabc.Callable[[object, cabc.Mapping[str, object] | None], str]

_CURRENT = object()


class HelperKind(enum.StrEnum):
    """Whether a helper produces a value or controls a block body."""

    VALUE = "value"
    BLOCK = "block"


@dc.dataclass(frozen=True, slots=True)
class HelperDefinition:
    """A registered helper."""

    name: str
    kind: HelperKind
    fn: HelperFn


@dc.dataclass(frozen=True, slots=True)
class BlockCall:
    """Invocation handle passed to block helpers as their first argument.

    Attributes
    ----------
    name : str
        Helper name as written in the template.
    context : object
        The context the block was opened in.
    data : Mapping[str, object]
        Current ``@``-variables visible to the block.
    hash : Mapping[str, object]
        Evaluated ``key=value`` arguments.
    """

    name: str
    context: object
    data: cabc.Mapping[str, object]
    hash: cabc.Mapping[str, object]
    _body: BodyRenderer
    _inverse: BodyRenderer

    def fn(
        self,
        context: object = _CURRENT,
        data: cabc.Mapping[str, object] | None = None,
    ) -> str:
        """Render the block body against ``context`` (default: the block's own)."""
        return self._body(self.context if context is _CURRENT else context, data)

    def inverse(
        self,
        context: object = _CURRENT,
        data: cabc.Mapping[str, object] | None = None,
    ) -> str:
        """Render the ``{{else}}`` branch, or ``""`` when there is none."""
        return self._inverse(self.context if context is _CURRENT else context, data)


def _validate_signature(name: str, kind: HelperKind, fn: HelperFn) -> None:
    if not callable(fn):
        msg = f"Helper '{name}' must be callable, got {type(fn).__name__}."
        raise HelperRegistrationError(msg)
    if kind is not HelperKind.BLOCK:
        return
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):  # pragma: no cover - builtins without metadata
        return
    positional = [
        parameter
        for parameter in signature.parameters.values()
        if parameter.kind
        in {
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.VAR_POSITIONAL,
        }
    ]
    if not positional:
        msg = f"Block helper '{name}' must accept the block call as its first argument."
        raise HelperRegistrationError(msg)


class HelperRegistry:
    """Mutable-until-frozen mapping of helper names to definitions."""

    def __init__(self) -> None:
        self._helpers: dict[str, HelperDefinition] = {}
        self._frozen = False

    def register(self, name: str, kind: HelperKind | str, fn: HelperFn) -> HelperDefinition:
        """Register ``fn`` under ``name``, replacing any earlier definition.

        Parameters
        ----------
        name : str
            Helper name, optionally prefixed with ``$``.
        kind : HelperKind or str
            ``"value"`` or ``"block"``.
        fn : Callable
            Helper implementation.

        Returns
        -------
        HelperDefinition
            The stored definition.

        Raises
        ------
        HelperRegistrationError
            If the registry is frozen, or the name, kind or signature is
            malformed.
        """
        if self._frozen:
            msg = f"Helper registry is frozen; cannot register {name!r}."
            raise HelperRegistrationError(msg)
        if not isinstance(name, str) or not HELPER_NAME_PATTERN.match(name):
            msg = f"Invalid helper name {name!r}."
            raise HelperRegistrationError(msg)
        try:
            helper_kind = HelperKind(kind)
        except ValueError as exc:
            msg = f"Unknown helper kind {kind!r} for helper {name!r}."
            raise HelperRegistrationError(msg) from exc
        _validate_signature(name, helper_kind, fn)
        definition = HelperDefinition(name=name, kind=helper_kind, fn=fn)
        self._helpers[name] = definition
        return definition

    def helper(
        self, name: str, kind: HelperKind = HelperKind.VALUE
    ) -> cabc.Callable[[HelperFn], HelperFn]:
        """Return a decorator registering the wrapped function under ``name``."""

        def decorator(fn: HelperFn) -> HelperFn:
            self.register(name, kind, fn)
            return fn

        return decorator

    def resolve(self, name: str) -> HelperDefinition | None:
        """Return the definition registered under ``name``, if any."""
        return self._helpers.get(name)

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        """Return ``True`` once :meth:`freeze` has been called."""
        return self._frozen

    def copy(self) -> HelperRegistry:
        """Return an unfrozen copy that can be extended independently."""
        clone = HelperRegistry()
        clone._helpers = dict(self._helpers)
        return clone

    def names(self, kind: HelperKind | None = None) -> list[str]:
        """Return registered names, optionally filtered by kind, sorted."""
        return sorted(
            name
            for name, definition in self._helpers.items()
            if kind is None or definition.kind is kind
        )

    def __contains__(self, name: object) -> bool:
        return name in self._helpers

    def __len__(self) -> int:
        return len(self._helpers)

    def __iter__(self) -> cabc.Iterator[HelperDefinition]:
        return iter(self._helpers.values())


def loop_metadata(index: int, count: int) -> dict[str, object]:
    """Return the ``@``-variables injected for one iteration.

    Examples
    --------
    >>> loop_metadata(2, 5)
    {'index': 2, 'number': 3, 'first': False, 'last': False, 'odd': False, 'even': True}
    """
    return {
        "index": index,
        "number": index + 1,
        "first": index == 0,
        "last": index == count - 1,
        "odd": index % 2 == 1,
        "even": index % 2 == 0,
    }


__all__ = [
    "BlockCall",
    "BodyRenderer",
    "HelperDefinition",
    "HelperFn",
    "HelperKind",
    "HelperRegistry",
    "loop_metadata",
]
