"""Tolerant extraction of attribute-style markup into a :class:`DataNode` tree.

The extractor is deliberately narrow. It recognises two document shapes with
regular expressions instead of a full XML parser:

* **Attribute root** - any root element (``<invoice number="X">``). Its
  attributes, the attributes of one child map element and the attributes of
  each item inside one repeated list container are captured. Every attribute
  is stored twice: under its own name and under an ``_``-prefixed alternate
  key carrying the same value.
* **Legacy flat** - a ``<data>`` root whose direct scalar children become
  top-level entries.

Examples
--------
>>> result = extract('<invoice number="X"><order><product id="1"/></order></invoice>')
>>> result.data.lookup("invoice._number").as_scalar()
'X'
>>> [item.get("id").as_scalar() for item in result.data.lookup("invoice.order.product").as_list()]
['1']
>>> extract("<data><name> Ada </name></data>").data.to_python()
{'name': 'Ada'}
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import hashlib
import html
import re

from loguru import logger

from doc_assembly._constants import ALTERNATE_KEY_PREFIX
from doc_assembly.errors import Diagnostic, ExtractionError, Severity

from .nodes import DataNode
from .validation import post_validate, pre_validate

PROLOG_PATTERN = re.compile(r"<\?[\s\S]*?\?>|<!--[\s\S]*?-->|<![A-Za-z][^>]*>")
ROOT_OPEN_PATTERN = re.compile(r"<(?P<tag>[A-Za-z_][\w.:-]*)(?P<attrs>[^>]*?)(?P<slash>/?)>")
ATTRIBUTE_PATTERN = re.compile(
    r"(?P<name>[A-Za-z_][\w.:-]*)\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)')"
)
TAG_TOKEN_PATTERN = re.compile(r"<(?P<close>/?)(?P<tag>[A-Za-z_][\w.:-]*)[^>]*?(?P<slash>/?)>")
LEAF_PATTERN = re.compile(r"<(?P<tag>[A-Za-z_][\w.:-]*)>(?P<value>[^<]*)</(?P=tag)>")


@dc.dataclass(frozen=True, slots=True)
class ExtractorShape:
    """Element names the extractor looks for.

    Attributes
    ----------
    attribute_root : str or None
        Required root element for the attribute shape; ``None`` accepts any
        root other than ``legacy_root``.
    child_map : str
        Element whose attributes form a single nested map.
    list_container : str
        Element wrapping the repeated list items.
    list_item : str
        Repeated element whose attributes form one list entry each.
    legacy_root : str
        Root element of the flat legacy shape.
    """

    attribute_root: str | None = None
    child_map: str = "bill_to"
    list_container: str = "order"
    list_item: str = "product"
    legacy_root: str = "data"


@dc.dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Outcome of :func:`extract`."""

    data: DataNode
    diagnostics: tuple[Diagnostic, ...]
    fingerprint: str
    byte_size: int

    @property
    def is_valid(self) -> bool:
        """Return ``True`` when no diagnostic blocks further processing."""
        return not any(diagnostic.is_blocking for diagnostic in self.diagnostics)

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        """Return the ``CRITICAL`` and ``ERROR`` diagnostics."""
        return tuple(
            diagnostic
            for diagnostic in self.diagnostics
            if diagnostic.severity in {Severity.CRITICAL, Severity.ERROR}
        )

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        """Return the ``WARNING`` and ``INFO`` diagnostics."""
        return tuple(
            diagnostic
            for diagnostic in self.diagnostics
            if diagnostic.severity in {Severity.WARNING, Severity.INFO}
        )

    def raise_for_errors(self) -> None:
        """Raise :class:`ExtractionError` when a blocking diagnostic exists."""
        blocking = [diagnostic for diagnostic in self.diagnostics if diagnostic.is_blocking]
        if blocking:
            msg = "; ".join(diagnostic.message for diagnostic in blocking)
            raise ExtractionError(
                msg,
                diagnostics=blocking,
                details={"codes": [diagnostic.code for diagnostic in blocking]},
            )


def fingerprint(markup: str) -> str:
    """Return the SHA-256 hex digest of ``markup`` encoded as UTF-8."""
    return hashlib.sha256(markup.encode("utf-8")).hexdigest()


def extract(markup: str, shape: ExtractorShape | None = None) -> ExtractionResult:
    """Extract a lookup tree from attribute-style or legacy flat markup.

    Parameters
    ----------
    markup : str
        Raw UTF-8 document text.
    shape : ExtractorShape, optional
        Element names to look for; defaults to the invoice-style shape.

    Returns
    -------
    ExtractionResult
        The extracted tree together with every diagnostic, the content
        fingerprint and the encoded size. Critical pre-validation findings
        short-circuit with an empty map.
    """
    shape = shape or ExtractorShape()
    digest = fingerprint(markup)
    byte_size = len(markup.encode("utf-8"))
    diagnostics = pre_validate(markup)

    if any(diagnostic.is_blocking for diagnostic in diagnostics):
        logger.warning(
            "Rejected markup {} ({} bytes): {}",
            digest[:12],
            byte_size,
            ", ".join(diagnostic.code for diagnostic in diagnostics),
        )
        return ExtractionResult(DataNode.empty(), tuple(diagnostics), digest, byte_size)

    body = PROLOG_PATTERN.sub("", markup)
    root = ROOT_OPEN_PATTERN.search(body)
    tree: DataNode | None = None
    if root is not None:
        tag = root["tag"]
        if tag == shape.legacy_root:
            tree = _extract_legacy(body, root)
        elif shape.attribute_root in {None, tag}:
            tree = _extract_attribute_root(body, root, shape)

    if tree is None:
        found = root["tag"] if root is not None else None
        diagnostics.append(
            Diagnostic(
                code="UNSUPPORTED_SHAPE",
                message=(
                    f"Root element '{found}' matches no supported shape"
                    if found
                    else "No root element found"
                ),
                severity=Severity.WARNING,
                suggestion="Use an attribute-style root or a <data> root",
            )
        )
        tree = DataNode.empty()
    diagnostics.extend(post_validate(tree))

    logger.debug(
        "Extracted markup {} ({} bytes, {} diagnostics)",
        digest[:12],
        byte_size,
        len(diagnostics),
    )
    return ExtractionResult(tree, tuple(diagnostics), digest, byte_size)


def _inner_text(body: str, root: re.Match[str]) -> str:
    """Return the text between the root open tag and its closing tag."""
    if root["slash"]:
        return ""
    start = root.end()
    close = body.rfind(f"</{root['tag']}>", start)
    return body[start:] if close < 0 else body[start:close]


def _attributes(fragment: str) -> dict[str, DataNode]:
    """Return dual-keyed attribute nodes for one tag's attribute text."""
    fields: dict[str, DataNode] = {}
    for match in ATTRIBUTE_PATTERN.finditer(fragment):
        raw = match["dq"] if match["dq"] is not None else match["sq"]
        node = DataNode.of_scalar(html.unescape(raw))
        fields[match["name"]] = node
        fields[f"{ALTERNATE_KEY_PREFIX}{match['name']}"] = node
    return fields


def _element_pattern(tag: str) -> re.Pattern[str]:
    return re.compile(rf"<{re.escape(tag)}(?=[\s/>])(?P<attrs>[^>]*?)(?P<slash>/?)>")


def _extract_attribute_root(
    body: str, root: re.Match[str], shape: ExtractorShape
) -> DataNode:
    fields = _attributes(root["attrs"])
    inner = _inner_text(body, root)

    child = _element_pattern(shape.child_map).search(inner)
    if child is not None:
        fields[shape.child_map] = DataNode.of_map(_attributes(child["attrs"]))

    container = _element_pattern(shape.list_container).search(inner)
    if container is not None:
        items_text = ""
        if not container["slash"]:
            close = inner.find(f"</{shape.list_container}>", container.end())
            items_text = inner[container.end() :] if close < 0 else inner[container.end() : close]
        items = [
            DataNode.of_map(_attributes(item["attrs"]))
            for item in _element_pattern(shape.list_item).finditer(items_text)
        ]
        fields[shape.list_container] = DataNode.of_map(
            {shape.list_item: DataNode.of_list(items)}
        )
    return DataNode.of_map({root["tag"]: DataNode.of_map(fields)})


def _extract_legacy(body: str, root: re.Match[str]) -> DataNode:
    inner = _inner_text(body, root)
    fields: dict[str, DataNode] = {}
    depth = 0
    for token in TAG_TOKEN_PATTERN.finditer(inner):
        if token["close"]:
            depth = max(depth - 1, 0)
            continue
        if token["slash"]:
            continue
        if depth == 0:
            leaf = LEAF_PATTERN.match(inner, token.start())
            if leaf is not None and leaf["tag"] not in fields:
                fields[leaf["tag"]] = DataNode.of_scalar(html.unescape(leaf["value"]).strip())
        depth += 1
    return DataNode.of_map(fields)


def serialize(result: ExtractionResult | DataNode) -> str:
    """Re-emit an attribute-shaped tree as markup.

    Only primary keys are written; ``_``-prefixed alternates are regenerated on
    the next :func:`extract`. Values are escaped, so extracting the output
    recovers every attribute value unchanged.
    """
    tree = result.data if isinstance(result, ExtractionResult) else result
    fields = tree.as_map() or {}
    chunks = [_serialize_element(tag, node) for tag, node in fields.items()]
    return "\n".join(chunk for chunk in chunks if chunk)


def _serialize_element(tag: str, node: DataNode) -> str:
    mapping = node.as_map()
    if mapping is None:
        value = node.as_scalar()
        return f"<{tag}>{html.escape(str(value if value is not None else ''))}</{tag}>"

    attrs = _format_attributes(mapping)
    children: list[str] = []
    for key, child in mapping.items():
        child_map = child.as_map()
        if child_map is None or key.startswith(ALTERNATE_KEY_PREFIX):
            continue
        nested_lists = [
            (item_tag, items)
            for item_tag, value in child_map.items()
            if (items := value.as_list()) is not None
        ]
        if nested_lists:
            inner = "".join(
                f"<{item_tag}{_format_attributes(item.as_map() or {})}/>"
                for item_tag, items in nested_lists
                for item in items
            )
            children.append(f"<{key}>{inner}</{key}>")
        else:
            children.append(f"<{key}{_format_attributes(child_map)}/>")
    return f"<{tag}{attrs}>{''.join(children)}</{tag}>"


def _format_attributes(mapping: cabc.Mapping[str, DataNode]) -> str:
    parts = [
        f' {key}="{html.escape(str(scalar), quote=True)}"'
        for key, node in mapping.items()
        if not key.startswith(ALTERNATE_KEY_PREFIX)
        and (scalar := node.as_scalar()) is not None
    ]
    return "".join(parts)


def missing_required(
    variables: cabc.Iterable[str], data: DataNode
) -> list[Diagnostic]:
    """Report template variables that resolve nowhere in ``data``.

    A dotted variable counts as present when it resolves from the tree root
    or from any top-level map, which covers templates that enter the root
    element's scope with ``{{#with}}``.
    """
    scopes: list[DataNode] = [data]
    scopes.extend(
        child for child in (data.as_map() or {}).values() if child.as_map() is not None
    )
    diagnostics: list[Diagnostic] = []
    for variable in variables:
        segments = [segment for segment in re.split(r"[./]", variable) if segment]
        if segments and segments[0] == "this":
            segments = segments[1:]
        if not segments:
            continue
        if any(scope.lookup(segments) is not None for scope in scopes):
            continue
        diagnostics.append(
            Diagnostic(
                code="MISSING_REQUIRED_FIELD",
                message=f"Required field '{variable}' is missing from the data",
                severity=Severity.ERROR,
                path=variable,
            )
        )
    return diagnostics


__all__ = [
    "ExtractionResult",
    "ExtractorShape",
    "extract",
    "fingerprint",
    "missing_required",
    "serialize",
]
