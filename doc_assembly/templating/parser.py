"""Build a :class:`~doc_assembly.templating.nodes.Program` from template tokens.

Blocks are matched with an explicit stack. ``{{else if cond}}`` chains are
desugared into a nested block placed in the parent's ``{{else}}`` branch, so
``{{#if a}}A{{else if b}}B{{else}}C{{/if}}`` parses exactly like
``{{#if a}}A{{else}}{{#if b}}B{{else}}C{{/if}}{{/if}}``.
"""

from __future__ import annotations

import dataclasses as dc
import re

from doc_assembly.errors import TemplateSyntaxError

from .lexer import Token, TokenKind, position, tokenize
from .nodes import BlockNode, Call, Expr, Literal, MustacheNode, Node, PathExpr, Program, TextNode

EXPRESSION_TOKEN = re.compile(
    r"""
    \s*(?:
        (?P<open>\()
      | (?P<close>\))
      | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
      | (?P<key>[A-Za-z_$@][\w$@-]*)\s*=(?!=)
      | (?P<number>-?\d+(?:\.\d+)?)(?=[\s)]|$)
      | (?P<path>
            (?:\.\./|\./)*
            (?:\[[^\]]*\]|[^\s()=\[\]'"])
            (?:\[[^\]]*\]|[^\s()=\[\]'"])*
        )
    )
    """,
    re.VERBOSE,
)
PATH_SEGMENT = re.compile(r"\[[^\]]*\]|\.\.(?=/|$)|[^./\[\]]+")
ESCAPE_SEQUENCE = re.compile(r"\\(.)")
KEYWORD_LITERALS: dict[str, bool | None] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}


class _ExpressionError(ValueError):
    """Raised internally for malformed tag contents."""


def parse_path(text: str) -> PathExpr:
    """Parse a path such as ``../items.[0].name`` or ``@index``.

    Examples
    --------
    >>> parse_path("../total")
    PathExpr(parts=('total',), depth=1, data=False, scoped=True, original='../total')
    >>> parse_path("@root.invoice").parts
    ('root', 'invoice')
    """
    original = text
    data = text.startswith("@")
    if data:
        text = text[1:]
    scoped = text in {".", "this"} or text.startswith(("./", "../", "this.", "this/"))
    depth = 0
    parts: list[str] = []
    for index, raw in enumerate(PATH_SEGMENT.findall(text)):
        if raw == "..":
            if parts:
                msg = f"Invalid path '{original}': '..' must lead the path"
                raise _ExpressionError(msg)
            depth += 1
            continue
        if raw == "this" and index == depth and not parts:
            continue
        parts.append(raw[1:-1] if raw.startswith("[") else raw)
    return PathExpr(parts=tuple(parts), depth=depth, data=data, scoped=scoped, original=original)


def _literal_string(raw: str) -> Literal:
    return Literal(ESCAPE_SEQUENCE.sub(r"\1", raw[1:-1]))


def _number(raw: str) -> Literal:
    return Literal(float(raw) if "." in raw else int(raw))


@dc.dataclass(slots=True)
class _Cursor:
    tokens: list[tuple[str, str]]
    index: int = 0

    def peek(self) -> tuple[str, str] | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def take(self) -> tuple[str, str]:
        token = self.peek()
        if token is None:
            msg = "Unexpected end of expression"
            raise _ExpressionError(msg)
        self.index += 1
        return token


def _lex_expression(content: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    cursor = 0
    while cursor < len(content):
        if content[cursor:].strip() == "":
            break
        match = EXPRESSION_TOKEN.match(content, cursor)
        if match is None or match.end() == cursor:
            msg = f"Unexpected character in expression '{content.strip()}'"
            raise _ExpressionError(msg)
        kind = match.lastgroup or "path"
        tokens.append((kind, match[kind]))
        cursor = match.end()
    return tokens


def _parse_operand(cursor: _Cursor) -> Expr:
    kind, value = cursor.take()
    match kind:
        case "open":
            return _parse_call(cursor, closing=True)
        case "string":
            return _literal_string(value)
        case "number":
            return _number(value)
        case "path" if value in KEYWORD_LITERALS:
            return Literal(KEYWORD_LITERALS[value])
        case "path":
            return parse_path(value)
        case _:
            msg = f"Unexpected token '{value}'"
            raise _ExpressionError(msg)


def _parse_call(cursor: _Cursor, *, closing: bool) -> Call:
    head = _parse_operand(cursor)
    params: list[Expr] = []
    hash_pairs: list[tuple[str, Expr]] = []
    while True:
        token = cursor.peek()
        if token is None:
            if closing:
                msg = "Unclosed subexpression"
                raise _ExpressionError(msg)
            break
        kind, value = token
        if kind == "close":
            if not closing:
                msg = "Unexpected ')'"
                raise _ExpressionError(msg)
            cursor.take()
            break
        if kind == "key":
            cursor.take()
            hash_pairs.append((value, _parse_operand(cursor)))
            continue
        if hash_pairs:
            msg = "Positional arguments must come before key=value arguments"
            raise _ExpressionError(msg)
        params.append(_parse_operand(cursor))
    return Call(head=head, params=tuple(params), hash=tuple(hash_pairs))


def parse_expression(content: str) -> Call:
    """Parse the contents of one tag into a :class:`Call`.

    Raises
    ------
    ValueError
        If the contents are empty or malformed.
    """
    tokens = _lex_expression(content)
    if not tokens:
        msg = "Empty expression"
        raise _ExpressionError(msg)
    cursor = _Cursor(tokens)
    call = _parse_call(cursor, closing=False)
    if cursor.peek() is not None:  # pragma: no cover - _parse_call consumes all
        msg = f"Unexpected trailing input in '{content}'"
        raise _ExpressionError(msg)
    return call


@dc.dataclass(slots=True)
class _OpenBlock:
    call: Call
    name: str
    offset: int
    inverted: bool = False
    chained: bool = False
    program: list[Node] = dc.field(default_factory=list)
    inverse: list[Node] | None = None

    @property
    def target(self) -> list[Node]:
        return self.program if self.inverse is None else self.inverse

    def build(self, source: str) -> BlockNode:
        line, column = position(source, self.offset)
        return BlockNode(
            call=self.call,
            program=Program(tuple(self.program)),
            inverse=None if self.inverse is None else Program(tuple(self.inverse)),
            inverted=self.inverted,
            line=line,
            column=column,
        )


def _block_name(call: Call) -> str:
    head = call.head
    if isinstance(head, PathExpr):
        return head.original
    if isinstance(head, Literal):
        return str(head.value)
    msg = "A block cannot open with a subexpression"
    raise _ExpressionError(msg)


class _Parser:
    def __init__(self, source: str, region: str | None) -> None:
        self.source = source
        self.region = region
        self.root: list[Node] = []
        self.stack: list[_OpenBlock] = []

    def error(self, message: str, offset: int) -> TemplateSyntaxError:
        line, column = position(self.source, offset)
        return TemplateSyntaxError(message, line=line, column=column, region=self.region)

    def target(self) -> list[Node]:
        return self.stack[-1].target if self.stack else self.root

    def expression(self, token: Token) -> Call:
        try:
            return parse_expression(token.text)
        except _ExpressionError as exc:
            raise self.error(str(exc), token.offset) from exc

    def feed(self, token: Token) -> None:
        match token.kind:
            case TokenKind.TEXT:
                self.target().append(TextNode(token.text))
            case TokenKind.COMMENT:
                return
            case TokenKind.VARIABLE | TokenKind.RAW:
                line, column = position(self.source, token.offset)
                self.target().append(
                    MustacheNode(
                        call=self.expression(token),
                        escaped=token.kind is TokenKind.VARIABLE,
                        line=line,
                        column=column,
                    )
                )
            case TokenKind.OPEN_BLOCK | TokenKind.OPEN_INVERSE:
                self.open_block(token)
            case TokenKind.ELSE:
                self.else_branch(token)
            case TokenKind.CLOSE_BLOCK:
                self.close_block(token)

    def open_block(self, token: Token) -> None:
        if token.text.startswith(("*", ">")):
            raise self.error("Partials and decorators are not supported", token.offset)
        call = self.expression(token)
        try:
            name = _block_name(call)
        except _ExpressionError as exc:
            raise self.error(str(exc), token.offset) from exc
        self.stack.append(
            _OpenBlock(
                call=call,
                name=name,
                offset=token.offset,
                inverted=token.kind is TokenKind.OPEN_INVERSE,
            )
        )

    def else_branch(self, token: Token) -> None:
        if not self.stack:
            raise self.error("'{{else}}' outside of a block", token.offset)
        current = self.stack[-1]
        if current.inverse is not None:
            raise self.error(f"Duplicate '{{{{else}}}}' in block '{current.name}'", token.offset)
        current.inverse = []
        if token.text:
            call = self.expression(token)
            try:
                name = _block_name(call)
            except _ExpressionError as exc:
                raise self.error(str(exc), token.offset) from exc
            self.stack.append(
                _OpenBlock(call=call, name=name, offset=token.offset, chained=True)
            )

    def close_block(self, token: Token) -> None:
        name = token.text.strip()
        if not self.stack:
            raise self.error(f"Unexpected closing tag '{{{{/{name}}}}}'", token.offset)
        while self.stack[-1].chained:
            chained = self.stack.pop()
            self.stack[-1].target.append(chained.build(self.source))
        opened = self.stack.pop()
        if opened.name != name:
            msg = f"'{{{{/{name}}}}}' does not match '{{{{#{opened.name}}}}}'"
            raise self.error(msg, token.offset)
        self.target().append(opened.build(self.source))

    def finish(self) -> Program:
        if self.stack:
            unclosed = next(block for block in reversed(self.stack) if not block.chained)
            raise self.error(f"Unclosed block '{{{{#{unclosed.name}}}}}'", unclosed.offset)
        return Program(tuple(self.root))


def parse(source: str, *, region: str | None = None) -> Program:
    """Parse ``source`` into a program tree.

    Parameters
    ----------
    source : str
        Template text.
    region : str, optional
        Region name recorded on syntax errors.

    Raises
    ------
    TemplateSyntaxError
        For unclosed tags or blocks, mismatched or stray closing tags, stray
        ``{{else}}``, malformed expressions and unsupported partials.
    """
    try:
        tokens = tokenize(source)
    except TemplateSyntaxError as exc:
        raise TemplateSyntaxError(
            exc.reason, line=exc.line, column=exc.column, region=region
        ) from exc
    parser = _Parser(source, region)
    for token in tokens:
        parser.feed(token)
    return parser.finish()


__all__ = ["parse", "parse_expression", "parse_path"]
