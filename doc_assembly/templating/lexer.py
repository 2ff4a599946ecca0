"""Split template source into text runs and mustache tags.

The lexer applies the two whitespace rules before parsing:

* ``~`` inside a tag (``{{~name}}`` / ``{{name~}}``) strips all whitespace on
  that side of the tag.
* Block, ``else`` and comment tags that sit alone on a line are *standalone*:
  the indentation before them and the line break after them are dropped, so
  control flow does not leave blank lines in the output.

Examples
--------
>>> [token.kind for token in tokenize("Hi {{name}}!")]
[<TokenKind.TEXT: 'text'>, <TokenKind.VARIABLE: 'variable'>, <TokenKind.TEXT: 'text'>]
>>> tokenize(r"\\{{literal}}")[0].text
'{{literal}}'
"""

from __future__ import annotations

import dataclasses as dc
import enum
import re

from doc_assembly.errors import TemplateSyntaxError

CLOSE_PATTERN = re.compile(r"(~?)}}")
TRIPLE_CLOSE_PATTERN = re.compile(r"}(~?)}}")
LONG_COMMENT_CLOSE_PATTERN = re.compile(r"--(~?)}}")
LEADING_WS = re.compile(r"^\s+")
TRAILING_WS = re.compile(r"\s+\Z")
STANDALONE_BEFORE = re.compile(r"(?:^|\n)[ \t]*\Z")
INDENT_TAIL = re.compile(r"[ \t]*\Z")
STANDALONE_AFTER = re.compile(r"^[ \t]*(?:\r?\n|\Z)")


class TokenKind(enum.StrEnum):
    """Token categories."""

    TEXT = "text"
    COMMENT = "comment"
    VARIABLE = "variable"
    RAW = "raw"
    OPEN_BLOCK = "open_block"
    OPEN_INVERSE = "open_inverse"
    ELSE = "else"
    CLOSE_BLOCK = "close_block"


STANDALONE_KINDS = frozenset(
    {
        TokenKind.COMMENT,
        TokenKind.OPEN_BLOCK,
        TokenKind.OPEN_INVERSE,
        TokenKind.ELSE,
        TokenKind.CLOSE_BLOCK,
    }
)


@dc.dataclass(slots=True)
class Token:
    """One lexical unit with its source offset."""

    kind: TokenKind
    text: str
    offset: int
    strip_left: bool = False
    strip_right: bool = False


def position(source: str, offset: int) -> tuple[int, int]:
    """Return the 1-based ``(line, column)`` of ``offset`` in ``source``."""
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _syntax_error(message: str, source: str, offset: int) -> TemplateSyntaxError:
    line, column = position(source, offset)
    return TemplateSyntaxError(message, line=line, column=column)


def _classify(content: str) -> tuple[TokenKind, str]:
    """Return the kind of a ``{{ }}`` tag and its content without the sigil."""
    stripped = content.strip()
    if stripped == "else" or stripped.startswith(("else ", "else\t", "else\n")):
        return TokenKind.ELSE, stripped[4:].strip()
    sigil = stripped[:1]
    match sigil:
        case "#":
            return TokenKind.OPEN_BLOCK, stripped[1:].strip()
        case "^":
            body = stripped[1:].strip()
            return (TokenKind.ELSE, "") if not body else (TokenKind.OPEN_INVERSE, body)
        case "/":
            return TokenKind.CLOSE_BLOCK, stripped[1:].strip()
        case "&":
            return TokenKind.RAW, stripped[1:].strip()
        case _:
            return TokenKind.VARIABLE, stripped


def _scan(source: str) -> list[Token]:
    tokens: list[Token] = []
    text: list[str] = []
    text_start = 0
    cursor = 0

    def flush() -> None:
        if text:
            tokens.append(Token(TokenKind.TEXT, "".join(text), text_start))
            text.clear()

    while True:
        start = source.find("{{", cursor)
        if start < 0:
            if not text:
                text_start = cursor
            text.append(source[cursor:])
            break
        if not text:
            text_start = cursor
        if start > 0 and source[start - 1] == "\\":
            text.append(source[cursor : start - 1])
            text.append("{{")
            cursor = start + 2
            continue
        text.append(source[cursor:start])
        flush()

        inner = start + 2
        strip_left = source.startswith("~", inner)
        if strip_left:
            inner += 1

        if source.startswith("!--", inner):
            end = LONG_COMMENT_CLOSE_PATTERN.search(source, inner + 3)
            if end is None:
                raise _syntax_error("Unclosed comment", source, start)
            token = Token(TokenKind.COMMENT, source[inner + 3 : end.start()], start)
        elif source.startswith("!", inner):
            end = CLOSE_PATTERN.search(source, inner + 1)
            if end is None:
                raise _syntax_error("Unclosed comment", source, start)
            token = Token(TokenKind.COMMENT, source[inner + 1 : end.start()], start)
        elif source.startswith("{", inner):
            end = TRIPLE_CLOSE_PATTERN.search(source, inner + 1)
            if end is None:
                raise _syntax_error("Unclosed '{{{' tag", source, start)
            token = Token(TokenKind.RAW, source[inner + 1 : end.start()].strip(), start)
        else:
            end = CLOSE_PATTERN.search(source, inner)
            if end is None:
                raise _syntax_error("Unclosed '{{' tag", source, start)
            content = source[inner : end.start()]
            if content.strip().startswith(">"):
                raise _syntax_error("Partials are not supported", source, start)
            kind, body = _classify(content)
            token = Token(kind, body, start)

        token.strip_left = strip_left
        token.strip_right = bool(end.group(1))
        tokens.append(token)
        cursor = end.end()

    flush()
    return tokens


def _apply_whitespace_control(tokens: list[Token]) -> None:
    for index, token in enumerate(tokens):
        if token.kind is TokenKind.TEXT:
            continue
        if token.strip_left and index > 0 and tokens[index - 1].kind is TokenKind.TEXT:
            previous = tokens[index - 1]
            previous.text = TRAILING_WS.sub("", previous.text)
        if (
            token.strip_right
            and index + 1 < len(tokens)
            and tokens[index + 1].kind is TokenKind.TEXT
        ):
            following = tokens[index + 1]
            following.text = LEADING_WS.sub("", following.text)


def _standalone(tokens: list[Token], index: int) -> bool:
    previous = tokens[index - 1] if index > 0 else None
    following = tokens[index + 1] if index + 1 < len(tokens) else None

    if previous is not None:
        if previous.kind is not TokenKind.TEXT:
            return False
        before = STANDALONE_BEFORE.search(previous.text)
        if before is None:
            return False
        # Without a line break the tag only starts a line at template start.
        if "\n" not in before[0] and index - 1 != 0:
            return False
    if following is not None:
        if following.kind is not TokenKind.TEXT:
            return False
        after = STANDALONE_AFTER.match(following.text)
        if after is None:
            return False
        if "\n" not in after[0] and index + 1 != len(tokens) - 1:
            return False
    return True


def _apply_standalone(tokens: list[Token]) -> None:
    flags = [
        token.kind in STANDALONE_KINDS and _standalone(tokens, index)
        for index, token in enumerate(tokens)
    ]
    for index, standalone in enumerate(flags):
        if not standalone:
            continue
        if index > 0:
            previous = tokens[index - 1]
            previous.text = INDENT_TAIL.sub("", previous.text)
        if index + 1 < len(tokens):
            following = tokens[index + 1]
            following.text = STANDALONE_AFTER.sub("", following.text, count=1)


def tokenize(source: str) -> list[Token]:
    """Return the tokens of ``source`` with whitespace rules applied.

    Raises
    ------
    TemplateSyntaxError
        If a tag or comment is never closed, or a partial is used.
    """
    tokens = _scan(source)
    _apply_standalone(tokens)
    _apply_whitespace_control(tokens)
    return [token for token in tokens if token.kind is not TokenKind.TEXT or token.text]


__all__ = ["Token", "TokenKind", "position", "tokenize"]
