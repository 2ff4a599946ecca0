"""Render parsed templates against plain data.

Rendering follows the degrade-don't-abort policy: an unresolved path renders
as the empty string, a missing helper or a helper that raises is logged and
renders as the empty string, and nothing short of a syntax error (raised by
:meth:`TemplateEngine.compile`) stops a render.

A mustache naming a registered helper calls the helper even without
arguments, so ``{{currency}}`` renders the ``currency`` helper's output rather
than a ``currency`` field. Extracted data therefore carries every attribute a
second time under an ``_``-prefixed key (``{{_currency}}``).

Examples
--------
>>> engine = TemplateEngine()
>>> engine.render("{{#each items}}{{@number}}. {{name}} {{/each}}",
...               {"items": [{"name": "a"}, {"name": "b"}]})
'1. a 2. b '
>>> engine.render("{{#if missing}}yes{{else}}no{{/if}} {{nowhere.at.all}}", {})
'no '
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from loguru import logger
from markupsafe import escape

from doc_assembly.data.nodes import DataNode
from doc_assembly.helpers import (
    BlockCall,
    HelperDefinition,
    HelperKind,
    HelperRegistry,
    default_registry,
    loop_metadata,
)
from doc_assembly.values import get_property, is_empty, stringify

from .nodes import BlockNode, Call, Expr, Literal, MustacheNode, PathExpr, Program, TextNode
from .parser import parse
from .validation import validate_template

if typ.TYPE_CHECKING:
    from doc_assembly.errors import Diagnostic

TemplateData = DataNode | cabc.Mapping[str, object] | None

_EMPTY_PROGRAM = Program()


@dc.dataclass(frozen=True, slots=True)
class Frame:
    """One level of the context stack."""

    context: object
    parent: Frame | None
    data: cabc.Mapping[str, object]


class _Renderer:
    def __init__(self, registry: HelperRegistry, region: str | None) -> None:
        self.registry = registry
        self.region = region

    def render_program(self, program: Program, frame: Frame) -> str:
        parts: list[str] = []
        for node in program.nodes:
            match node:
                case TextNode(text=text):
                    parts.append(text)
                case MustacheNode():
                    parts.append(self.mustache(node, frame))
                case BlockNode():
                    parts.append(self.block(node, frame))
        return "".join(parts)

    def mustache(self, node: MustacheNode, frame: Frame) -> str:
        value = self.evaluate_call(node.call, frame)
        text = stringify(value)
        return str(escape(text)) if node.escaped else str(text)

    def block(self, node: BlockNode, frame: Frame) -> str:
        program: Program = node.program
        inverse: Program = node.inverse or _EMPTY_PROGRAM
        if node.inverted:
            program, inverse = inverse, program

        call = node.call
        definition = self._helper_for(call.head)
        if definition is not None and definition.kind is HelperKind.BLOCK:
            return self._invoke_block(definition, call, frame, program, inverse)
        if definition is not None:
            value = self._invoke_value(definition, call, frame)
        elif call.has_arguments:
            self._missing_helper(call.head, node.line)
            return ""
        else:
            value = self.evaluate(call.head, frame)
        return self._section(value, frame, program, inverse)

    def evaluate(self, expr: Expr, frame: Frame) -> object:
        match expr:
            case Literal(value=value):
                return value
            case PathExpr():
                definition = self._helper_for(expr)
                if definition is not None:
                    return self._call_helper(definition, Call(head=expr), frame)
                return self.resolve_path(expr, frame)
            case Call():
                return self.evaluate_call(expr, frame)
        return None  # pragma: no cover - Expr is closed

    def evaluate_call(self, call: Call, frame: Frame) -> object:
        definition = self._helper_for(call.head)
        if definition is not None:
            return self._call_helper(definition, call, frame)
        if call.has_arguments:
            self._missing_helper(call.head, None)
            return None
        return self.evaluate(call.head, frame)

    def resolve_path(self, path: PathExpr, frame: Frame) -> object:
        if path.data:
            value: object = frame.data
        else:
            target = frame
            for _ in range(path.depth):
                target = target.parent or target
            value = target.context
        for part in path.parts:
            value = get_property(value, part)
            if value is None:
                logger.debug("Unresolved template path {!r}", path.original)
                return None
        return value

    def _helper_for(self, head: Expr) -> HelperDefinition | None:
        match head:
            case PathExpr(helper_name=str() as name):
                return self.registry.resolve(name)
            case Literal(value=str() as name):
                return self.registry.resolve(name)
        return None

    def _missing_helper(self, head: Expr, line: int | None) -> None:
        name = head.original if isinstance(head, PathExpr) else repr(head)
        logger.warning(
            "Missing helper {!r} in region {} (line {})", name, self.region or "-", line or "?"
        )

    def _arguments(
        self, call: Call, frame: Frame
    ) -> tuple[list[object], dict[str, object]]:
        params = [self.evaluate(param, frame) for param in call.params]
        hash_args = {key: self.evaluate(value, frame) for key, value in call.hash}
        return params, hash_args

    def _call_helper(self, definition: HelperDefinition, call: Call, frame: Frame) -> object:
        if definition.kind is HelperKind.BLOCK:
            logger.warning("Block helper {!r} used without a block", definition.name)
            return None
        return self._invoke_value(definition, call, frame)

    def _invoke_value(self, definition: HelperDefinition, call: Call, frame: Frame) -> object:
        params, hash_args = self._arguments(call, frame)
        try:
            return definition.fn(*params, **hash_args)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Helper {!r} failed: {}", definition.name, exc)
            return None

    def _invoke_block(
        self,
        definition: HelperDefinition,
        call: Call,
        frame: Frame,
        program: Program,
        inverse: Program,
    ) -> str:
        params, hash_args = self._arguments(call, frame)
        block = BlockCall(
            name=definition.name,
            context=frame.context,
            data=frame.data,
            hash=hash_args,
            _body=lambda context, data: self._enter(program, frame, context, data),
            _inverse=lambda context, data: self._enter(inverse, frame, context, data),
        )
        try:
            return stringify(definition.fn(block, *params, **hash_args))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Block helper {!r} failed: {}", definition.name, exc)
            return ""

    def _section(self, value: object, frame: Frame, program: Program, inverse: Program) -> str:
        if value is True:
            return self._enter(program, frame, frame.context, None)
        if is_empty(value):
            return self._enter(inverse, frame, frame.context, None)
        if isinstance(value, list | tuple):
            return "".join(
                self._enter(program, frame, item, loop_metadata(index, len(value)))
                for index, item in enumerate(value)
            )
        return self._enter(program, frame, value, None)

    def _enter(
        self,
        program: Program,
        frame: Frame,
        context: object,
        data: cabc.Mapping[str, object] | None,
    ) -> str:
        if not program.nodes:
            return ""
        merged = {**frame.data, **data} if data else frame.data
        if context is frame.context:
            inner = Frame(context=context, parent=frame.parent, data=merged)
        else:
            inner = Frame(context=context, parent=frame, data=merged)
        return self.render_program(program, inner)


def _root_context(data: TemplateData) -> object:
    match data:
        case None:
            return {}
        case DataNode():
            return data.to_python()
        case _:
            return data


@dc.dataclass(frozen=True, slots=True)
class CompiledTemplate:
    """A parsed template bound to the registry that will render it.

    Attributes
    ----------
    program : Program
        Parsed syntax tree.
    source : str
        Original template text.
    registry : HelperRegistry
        Helpers visible while rendering.
    region : str or None
        Region name used in log messages.
    diagnostics : tuple[Diagnostic, ...]
        Advisory findings from :func:`validate_template`.
    """

    program: Program
    source: str
    registry: HelperRegistry
    region: str | None = None
    diagnostics: tuple[Diagnostic, ...] = ()

    def render(self, data: TemplateData = None) -> str:
        """Render against ``data``; never raises for missing data."""
        context = _root_context(data)
        frame = Frame(context=context, parent=None, data={"root": context})
        return _Renderer(self.registry, self.region).render_program(self.program, frame)


class TemplateEngine:
    """Compile and render templates with an injected helper registry.

    Parameters
    ----------
    registry : HelperRegistry, optional
        Helpers available to templates. Defaults to the shared, frozen
        :func:`~doc_assembly.helpers.default_registry`.
    """

    def __init__(self, registry: HelperRegistry | None = None) -> None:
        self.registry = registry if registry is not None else default_registry()

    def compile(self, source: str, *, region: str | None = None) -> CompiledTemplate:
        """Parse ``source`` into a reusable :class:`CompiledTemplate`.

        Raises
        ------
        TemplateSyntaxError
            If the template is structurally malformed.
        """
        program = parse(source, region=region)
        diagnostics = tuple(validate_template(source, region=region))
        for diagnostic in diagnostics:
            logger.debug("Template advisory {}: {}", diagnostic.code, diagnostic.message)
        return CompiledTemplate(
            program=program,
            source=source,
            registry=self.registry,
            region=region,
            diagnostics=diagnostics,
        )

    def render(self, source: str, data: TemplateData = None, *, region: str | None = None) -> str:
        """Compile ``source`` and render it against ``data`` in one step."""
        return self.compile(source, region=region).render(data)


__all__ = ["CompiledTemplate", "Frame", "TemplateData", "TemplateEngine"]
