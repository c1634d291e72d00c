"""
Table QR code rendering.
"""

import io
from pathlib import Path

import pytest
from PIL import Image

from qrmenu.core.config import get_settings
from qrmenu.defaults import DEFAULT_SETTINGS
from qrmenu.schemas import AppSettings, DiningTable
from qrmenu.services.qr import render_qr_png, render_table_qr, table_menu_url

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def design(**overrides) -> AppSettings:
    return AppSettings.model_validate({**DEFAULT_SETTINGS, **overrides})


def open_png(data: bytes) -> Image.Image:
    assert data.startswith(PNG_SIGNATURE)
    return Image.open(io.BytesIO(data)).convert("RGB")


@pytest.fixture
def table():
    return DiningTable(id="tbl42", table_number="T42", branch_id="2")


def test_menu_url_carries_branch_and_table(table):
    assert table_menu_url(table, "https://menu.example.com/") == "https://menu.example.com/menu?branch=2&table=tbl42"
    assert table_menu_url(table).startswith(get_settings().public_base_url.rstrip("/"))


@pytest.mark.parametrize("dots", ["square", "dots", "rounded", "extra-rounded", "classy", "classy-rounded", "unknown"])
def test_every_dot_style_renders(dots):
    img = open_png(render_qr_png("https://example.com/menu", design(qr_dots_style=dots, qr_center_type="none")))
    assert img.size[0] == img.size[1]


def test_colors_follow_design():
    img = open_png(render_qr_png(
        "https://example.com/menu",
        design(qr_background_color="#FFFF00", qr_foreground_color="#000080", qr_center_type="none"),
    ))
    # Quiet zone is background
    assert img.getpixel((0, 0)) == (255, 255, 0)


def test_invalid_color_falls_back():
    img = open_png(render_qr_png("x", design(qr_background_color="not-a-color", qr_center_type="none")))
    assert img.getpixel((0, 0)) == (255, 255, 255)


def test_center_logo_from_uploads():
    upload_dir = Path(get_settings().upload_directory)
    upload_dir.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (64, 64), (255, 0, 0)).save(upload_dir / "qr-logo.png")

    img = open_png(render_qr_png(
        "https://example.com/menu",
        design(qr_center_type="logo", qr_logo="/uploads/qr-logo.png"),
    ))
    center = (img.size[0] // 2, img.size[1] // 2)
    assert img.getpixel(center) == (255, 0, 0)


def test_missing_logo_is_ignored():
    data = render_qr_png("x", design(qr_center_type="logo", qr_logo="/uploads/does-not-exist.png"))
    assert data.startswith(PNG_SIGNATURE)


def test_center_text():
    data = render_qr_png("x", design(qr_center_type="text", qr_center_text="MENU"))
    assert data.startswith(PNG_SIGNATURE)


def test_render_table_qr(table):
    assert render_table_qr(table, design()).startswith(PNG_SIGNATURE)
