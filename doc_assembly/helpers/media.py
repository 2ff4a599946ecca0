"""Icon and image helpers emitting inline markup.

Every interpolated value is escaped by :class:`markupsafe.Markup`, so data
cannot break out of the generated attributes.

Examples
--------
>>> str(image("logo.png", alt='"Acme"', width=40))
'<img src="logo.png" alt="&#34;Acme&#34;" width="40" class="" />'
"""

from __future__ import annotations

from markupsafe import Markup

from doc_assembly.values import is_truthy, stringify, to_number

from .registry import HelperKind, HelperRegistry

ICON_LIBRARIES = ("material-design", "emoji")


def _option(options: dict[str, object], key: str, default: object) -> object:
    value = options.get(key)
    return value if is_truthy(value) else default


def icon(name: object = None, **options: object) -> Markup:
    """Render an icon from ``library`` (``material-design`` or ``emoji``).

    Unknown libraries render a coloured placeholder tile showing the first two
    letters of ``name``.
    """
    label = stringify(name)
    width = _option(options, "width", 24)
    height = _option(options, "height", 24)
    color = _option(options, "color", "#000")
    library = stringify(_option(options, "library", "material-design"))
    fit = is_truthy(options.get("fit"))

    if library == "material-design":
        return Markup(
            '<span class="material-icons" style="font-size: {width}px; color: {color}; '
            "width: {box_width}; height: {box_height}; display: inline-flex; "
            'align-items: center; justify-content: center;">{label}</span>'
        ).format(
            width=width,
            color=color,
            box_width=f"{stringify(width)}px" if fit else "auto",
            box_height=f"{stringify(height)}px" if fit else "auto",
            label=label,
        )
    if library == "emoji":
        return Markup(
            '<span style="font-size: {width}px; line-height: 1;">{label}</span>'
        ).format(width=width, label=label)
    return Markup(
        '<div class="icon-placeholder" style="width: {width}px; height: {height}px; '
        "background: {color}; border-radius: 4px; display: inline-flex; "
        "align-items: center; justify-content: center; color: white; "
        'font-size: {font_size}px; font-weight: bold;">{initials}</div>'
    ).format(
        width=width,
        height=height,
        color=color,
        font_size=round(to_number(width) * 0.4),
        initials=label[:2].upper(),
    )


def svg_icon(path: object = None, **options: object) -> Markup:
    """Render a single-path inline SVG icon."""
    return Markup(
        '<svg width="{width}" height="{height}" fill="{color}" viewBox="{view_box}">'
        '<path d="{path}"/></svg>'
    ).format(
        width=_option(options, "width", 24),
        height=_option(options, "height", 24),
        color=_option(options, "color", "currentColor"),
        view_box=_option(options, "viewBox", "0 0 24 24"),
        path=stringify(path),
    )


def image(src: object = None, **options: object) -> Markup:
    """Render an ``<img>`` tag with optional size, alt text and class."""
    parts = [
        Markup('<img src="{src}" alt="{alt}"').format(
            src=stringify(src), alt=stringify(options.get("alt"))
        )
    ]
    for key in ("width", "height"):
        if is_truthy(options.get(key)):
            parts.append(Markup(' {key}="{value}"').format(key=key, value=options[key]))
    css_class = stringify(options.get("class"))
    parts.append(Markup(' class="{css_class}" />').format(css_class=css_class))
    return Markup("").join(parts)


def register(registry: HelperRegistry) -> None:
    """Register the media helpers on ``registry``."""
    registry.register("$icon", HelperKind.VALUE, icon)
    registry.register("svgIcon", HelperKind.VALUE, svg_icon)
    registry.register("image", HelperKind.VALUE, image)


__all__ = ["ICON_LIBRARIES", "icon", "image", "register", "svg_icon"]
