"""
Table QR Codes

Renders the PNG printed on each table. The code opens the public menu with
the branch and table preselected; colors, module style and the center mark
follow the QR design settings.
"""

import io
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

import qrcode
from PIL import Image, ImageColor, ImageDraw
from qrcode.image.styledpil import StyledPilImage
from qrcode.image.styles.colormasks import SolidFillColorMask
from qrcode.image.styles.moduledrawers.pil import (
    CircleModuleDrawer,
    GappedSquareModuleDrawer,
    RoundedModuleDrawer,
    SquareModuleDrawer,
)

from qrmenu.core.config import get_settings
from qrmenu.schemas import AppSettings, DiningTable

logger = logging.getLogger(__name__)

MODULE_DRAWERS = {
    "square": SquareModuleDrawer,
    "dots": CircleModuleDrawer,
    "rounded": RoundedModuleDrawer,
    "extra-rounded": RoundedModuleDrawer,
    "classy": GappedSquareModuleDrawer,
    "classy-rounded": RoundedModuleDrawer,
}

# Center mark takes this share of the code's width
CENTER_RATIO = 0.22


def table_menu_url(table: DiningTable, base_url: Optional[str] = None) -> str:
    """Public menu URL encoded into a table's QR code."""
    base = (base_url or get_settings().public_base_url).rstrip("/")
    query = urlencode({"branch": table.branch_id, "table": table.id})
    return f"{base}/menu?{query}"


def _rgb(color: str, fallback: str) -> tuple[int, int, int]:
    try:
        return ImageColor.getrgb(color)[:3]
    except ValueError:
        logger.warning(f"Invalid QR color {color!r}, using {fallback}")
        return ImageColor.getrgb(fallback)[:3]


def _logo_path(logo: Optional[str]) -> Optional[Path]:
    """Resolve an ``/uploads/...`` URL to the stored file."""
    if not logo or not logo.startswith("/uploads/"):
        return None
    path = Path(get_settings().upload_directory) / logo.removeprefix("/uploads/")
    return path if path.is_file() else None


def _paste_logo(img: Image.Image, path: Path) -> None:
    size = int(img.size[0] * CENTER_RATIO)
    with Image.open(path) as logo:
        logo = logo.convert("RGBA")
        logo.thumbnail((size, size))
        offset = ((img.size[0] - logo.size[0]) // 2, (img.size[1] - logo.size[1]) // 2)
        img.paste(logo, offset, mask=logo)


def _draw_center_text(img: Image.Image, text: str, fill, background) -> None:
    draw = ImageDraw.Draw(img)
    left, top, right, bottom = draw.textbbox((0, 0), text)
    width, height = right - left, bottom - top
    cx, cy = img.size[0] // 2, img.size[1] // 2
    pad = 6
    draw.rectangle(
        (cx - width // 2 - pad, cy - height // 2 - pad, cx + width // 2 + pad, cy + height // 2 + pad),
        fill=background,
    )
    draw.text((cx - width // 2 - left, cy - height // 2 - top), text, fill=fill)


def render_qr_png(data: str, design: AppSettings, box_size: int = 10, border: int = 4) -> bytes:
    """
    Render ``data`` as a PNG styled by the QR design settings.

    Returns:
        PNG bytes
    """
    foreground = _rgb(design.qr_foreground_color, "#000000")
    background = _rgb(design.qr_background_color, "#FFFFFF")
    has_center = design.qr_center_type in ("logo", "text")

    qr = qrcode.QRCode(
        version=None,
        # High correction keeps the code readable under a center mark
        error_correction=qrcode.constants.ERROR_CORRECT_H if has_center else qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    drawer = MODULE_DRAWERS.get(design.qr_dots_style, SquareModuleDrawer)
    eye_drawer = SquareModuleDrawer if design.qr_eye_border_shape == "square" else RoundedModuleDrawer
    img = qr.make_image(
        image_factory=StyledPilImage,
        module_drawer=drawer(),
        eye_drawer=eye_drawer(),
        color_mask=SolidFillColorMask(back_color=background, front_color=foreground),
    ).get_image().convert("RGB")

    if design.qr_center_type == "logo":
        logo = _logo_path(design.qr_logo or design.restaurant_logo)
        if logo is not None:
            _paste_logo(img, logo)
    elif design.qr_center_type == "text" and design.qr_center_text:
        _draw_center_text(img, design.qr_center_text, _rgb(design.qr_text_color, "#000000"), background)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_table_qr(table: DiningTable, design: AppSettings) -> bytes:
    url = table_menu_url(table)
    logger.debug(f"Rendering QR for table {table.table_number}: {url}")
    return render_qr_png(url, design)
