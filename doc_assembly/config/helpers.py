"""Utility helpers shared by the doc_assembly configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from doc_assembly.pipeline import Margins, Orientation, OutputFormat, TemplateMetadata

from .models import ConfigError, OutputSettings, PageSettings, StyleSettings

if typ.TYPE_CHECKING:
    import collections.abc as cabc


def _load_yaml_mapping(path: Path) -> dict[str, typ.Any]:
    """Read ``path`` as YAML 1.2 and return its top-level mapping."""
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = f"Top-level YAML structure in '{path}' must be a mapping."
        raise TypeError(msg)
    return dict(loaded)


def _section(raw: cabc.Mapping[str, typ.Any], key: str) -> dict[str, typ.Any]:
    """Return the mapping stored under ``key`` or an empty one."""
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        msg = f"Section '{key}' must be a mapping."
        raise ConfigError(msg)
    return value


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_tuple(value: object | None) -> tuple[str, ...]:
    """Normalize a comma-separated string or a list into non-empty strings."""
    match value:
        case None:
            return ()
        case str():
            items: cabc.Iterable[object] = value.split(",")
        case list() | tuple():
            items = value
        case _:
            msg = f"Expected a string or list, got {type(value).__name__}."
            raise ConfigError(msg)
    return tuple(text for item in items if (text := str(item).strip()))


def _number(value: object, field: str) -> float:
    """Coerce ``value`` to a float or raise :class:`ConfigError`."""
    if isinstance(value, bool):
        msg = f"Field '{field}' must be a number."
        raise ConfigError(msg)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError) as exc:
        msg = f"Field '{field}' must be a number."
        raise ConfigError(msg) from exc


def _build_margins(value: object | None) -> Margins | None:
    """Build margins from a single number or a per-side mapping."""
    match value:
        case None:
            return None
        case dict():
            base = Margins()
            return Margins(
                top=_number(value.get("top", base.top), "margins.top"),
                right=_number(value.get("right", base.right), "margins.right"),
                bottom=_number(value.get("bottom", base.bottom), "margins.bottom"),
                left=_number(value.get("left", base.left), "margins.left"),
            )
        case _:
            return Margins.uniform(_number(value, "margins"))


def _build_page_settings(payload: cabc.Mapping[str, typ.Any]) -> PageSettings:
    """Build a PageSettings instance from the ``page`` section."""
    orientation = _optional_str(payload.get("orientation"))
    if orientation is not None:
        orientation = orientation.lower()
        if orientation not in {member.value for member in Orientation}:
            msg = f"Unknown orientation {orientation!r}; expected portrait or landscape."
            raise ConfigError(msg)
    dpi = payload.get("dpi")
    return PageSettings(
        setup=_optional_str(payload.get("setup")),
        size=_optional_str(payload.get("size")),
        orientation=orientation,
        margins=_build_margins(payload.get("margins")),
        dpi=None if dpi is None else int(_number(dpi, "dpi")),
    )


def _build_style_settings(payload: cabc.Mapping[str, typ.Any]) -> StyleSettings:
    """Build a StyleSettings instance from the ``style`` section."""
    symbols_raw = payload.get("symbols")
    if symbols_raw is not None and not isinstance(symbols_raw, dict):
        msg = "Field 'style.symbols' must be a mapping of names to values."
        raise ConfigError(msg)
    symbols = (
        {str(name).lstrip("$"): str(value) for name, value in symbols_raw.items()}
        if symbols_raw is not None
        else None
    )
    return StyleSettings(symbols=symbols, strict=bool(payload.get("strict", False)))


def _build_output_format(value: object | None) -> OutputFormat:
    """Return the output format named ``value`` (PDF when absent)."""
    text = _optional_str(value)
    if text is None:
        return OutputFormat.PDF
    try:
        return OutputFormat(text.lower())
    except ValueError as exc:
        msg = f"Unknown output format {text!r}; expected 'pdf' or 'html'."
        raise ConfigError(msg) from exc


def _build_output_settings(
    payload: cabc.Mapping[str, typ.Any], *, base_dir: Path
) -> OutputSettings:
    """Build an OutputSettings instance from the ``output`` section.

    Relative output directories resolve against ``base_dir``.
    """
    defaults = OutputSettings()
    directory = Path(payload.get("directory", defaults.directory))
    if not directory.is_absolute():
        directory = base_dir / directory
    timeout = payload.get("timeout")
    return OutputSettings(
        format=_build_output_format(payload.get("format")),
        directory=directory,
        metadata_sidecar=bool(payload.get("metadata_sidecar", defaults.metadata_sidecar)),
        viewport_width=int(
            _number(payload.get("viewport_width", defaults.viewport_width), "viewport_width")
        ),
        scale=_number(payload.get("scale", defaults.scale), "scale"),
        timeout=None if timeout is None else _number(timeout, "timeout"),
    )


def _build_template_metadata(
    payload: cabc.Mapping[str, typ.Any], *, fallback_name: str
) -> TemplateMetadata:
    """Build TemplateMetadata from a bundle's ``template.yaml`` mapping."""
    return TemplateMetadata(
        name=_optional_str(payload.get("name")) or fallback_name,
        description=_optional_str(payload.get("description")) or "",
        author=_optional_str(payload.get("author")),
        keywords=_string_tuple(payload.get("keywords")),
        category=_optional_str(payload.get("category")),
        version=_optional_str(payload.get("version")),
    )


__all__ = [
    "_build_margins",
    "_build_output_settings",
    "_build_page_settings",
    "_build_style_settings",
    "_build_template_metadata",
    "_load_yaml_mapping",
    "_section",
    "_string_tuple",
]
