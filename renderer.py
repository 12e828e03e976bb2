"""Badge rendering shared by the print view and the designer preview.

``render`` maps a layout document and an attendee to positioned elements;
``badge_html`` turns those elements into the absolutely positioned markup
both pages embed, so what the designer shows is what gets printed.
"""

import math
from dataclasses import dataclass
from html import escape
from typing import List, Union
from urllib.parse import urlencode

from directory import Attendee
from layout import DEFAULT_LAYOUT, TEXT_FIELDS

PLACEHOLDER = "—"
PLACEHOLDER_FIELDS = ("mobile", "designation", "role")


@dataclass(frozen=True)
class TextElement:
    field: str
    text: str
    x: float
    y: float
    font_size: float
    bold: bool


@dataclass(frozen=True)
class ImageElement:
    field: str
    kind: str  # "code128" or "qr"
    data: str
    x: float
    y: float
    width: float
    height: float
    scale: float = 1.0

    @property
    def src(self) -> str:
        if self.kind == "qr":
            return "/qr-img?" + urlencode({"data": self.data, "size": _num(self.width)})
        return "/barcode-img?" + urlencode(
            {
                "data": self.data,
                "w": _num(self.width),
                "h": _num(self.height),
                "s": _num(self.scale),
            }
        )


Element = Union[TextElement, ImageElement]


def _num(v):
    # 20.0 -> 20 so generated CSS and URLs stay stable
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return v


def _merge(defaults: dict, cfg: dict) -> dict:
    """``cfg`` over ``defaults``; numeric settings that are not finite numbers take the default."""
    merged = {**defaults, **cfg}
    for key, default in defaults.items():
        if isinstance(default, bool) or not isinstance(default, (int, float)):
            continue
        try:
            value = float(merged[key])
        except (TypeError, ValueError):
            value = default
        merged[key] = value if math.isfinite(value) else default
    return merged


def _field(layout: dict, name: str) -> dict:
    """Field config merged over the built-in default; ``{}`` when absent."""
    fields = layout.get("fields") if isinstance(layout, dict) else None
    cfg = fields.get(name) if isinstance(fields, dict) else None
    if not isinstance(cfg, dict):
        return {}
    return _merge(DEFAULT_LAYOUT["fields"][name], cfg)


def _card(layout: dict) -> dict:
    card = layout.get("card") if isinstance(layout, dict) else None
    return _merge(DEFAULT_LAYOUT["card"], card if isinstance(card, dict) else {})


def _text_value(attendee: Attendee, name: str) -> str:
    if name == "id":
        return f"ID: {attendee.id}"
    value = getattr(attendee, name)
    if name == "role":
        value = value.value
    if not value and name in PLACEHOLDER_FIELDS:
        return PLACEHOLDER
    return value or ""


def render(layout: dict, attendee: Attendee) -> List[Element]:
    """Positioned elements for ``attendee`` under ``layout``, in drawing order."""
    elements: List[Element] = []
    for name in TEXT_FIELDS:
        cfg = _field(layout, name)
        if not cfg.get("enabled"):
            continue
        elements.append(
            TextElement(
                field=name,
                text=_text_value(attendee, name),
                x=cfg["x"],
                y=cfg["y"],
                font_size=cfg["fontSize"],
                bold=bool(cfg["bold"]),
            )
        )

    b = _field(layout, "barcode")
    if b.get("enabled"):
        elements.append(
            ImageElement(
                field="barcode",
                kind="code128",
                data=attendee.barcode,
                x=b["x"],
                y=b["y"],
                width=b["width"],
                height=b["height"],
                scale=b["scale"],
            )
        )

    q = _field(layout, "qrcode")
    if q.get("enabled"):
        elements.append(
            ImageElement(
                field="qrcode",
                kind="qr",
                data=attendee.barcode,
                x=q["x"],
                y=q["y"],
                width=q["size"],
                height=q["size"],
            )
        )
    return elements


def element_html(el: Element) -> str:
    pos = f"position:absolute;left:{_num(el.x)}px;top:{_num(el.y)}px;"
    if isinstance(el, TextElement):
        weight = "bold" if el.bold else "normal"
        return (
            f'<div class="badge-field" data-field="{el.field}" '
            f'style="{pos}white-space:nowrap;font-size:{_num(el.font_size)}px;font-weight:{weight};">'
            f"{escape(el.text)}</div>"
        )
    alt = "QR" if el.kind == "qr" else "Barcode"
    return (
        f'<img data-field="{el.field}" alt="{alt}" src="{escape(el.src)}" '
        f'style="{pos}width:{_num(el.width)}px;height:{_num(el.height)}px;">'
    )


def badge_html(layout: dict, elements: List[Element], css_class: str = "badge-print") -> str:
    """The badge card with every element placed on it."""
    card = _card(layout)
    border = "border:1px solid #000;" if card["border"] else "border:none;"
    style = (
        f"position:relative;overflow:hidden;width:{_num(card['width'])}px;"
        f"height:{_num(card['height'])}px;background:{escape(str(card['background']))};{border}"
    )
    inner = "\n ".join(element_html(el) for el in elements)
    return f'<div class="{css_class}" style="{style}">\n {inner}\n</div>'
