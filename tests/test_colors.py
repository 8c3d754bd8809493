import asyncio
import io

import pytest
from PIL import Image

from scoreboard import colors
from scoreboard.colors import ColorDerivationError, average_hex


def test_average_of_solid_image():
    assert average_hex(Image.new("RGB", (10, 10), (255, 0, 0))) == "#ff0000"


def test_average_mixes_halves():
    image = Image.new("RGB", (2, 1))
    image.putpixel((0, 0), (0, 0, 0))
    image.putpixel((1, 0), (200, 100, 50))
    assert average_hex(image) == "#643219"


def test_transparent_pixels_are_ignored():
    image = Image.new("RGBA", (2, 1), (0, 0, 0, 0))
    image.putpixel((1, 0), (10, 20, 30, 255))
    assert average_hex(image) == "#0a141e"


def test_fully_transparent_or_empty_is_black():
    assert average_hex(Image.new("RGBA", (4, 4), (255, 255, 255, 0))) == "#000000"
    assert average_hex(Image.new("RGB", (0, 0))) == "#000000"


def test_large_image_is_sampled():
    assert average_hex(Image.new("RGB", (1000, 1000), (1, 2, 3))) == "#010203"


def test_undecodable_bytes():
    with pytest.raises(ColorDerivationError):
        colors._average_from_bytes(b"definitely not an image")


def test_average_color_from_url_decodes_fetched_image(monkeypatch):
    buf = io.BytesIO()
    Image.new("RGB", (3, 3), (0, 128, 255)).save(buf, format="PNG")

    async def fake_fetch(url, timeout):
        return buf.getvalue()

    monkeypatch.setattr(colors, "fetch_image", fake_fetch)
    assert asyncio.run(colors.average_color_from_url("http://logos/blue.png")) == "#0080ff"


def test_fetch_failure_is_reported(monkeypatch):
    async def fake_fetch(url, timeout):
        raise ColorDerivationError("HTTP status 500")

    monkeypatch.setattr(colors, "fetch_image", fake_fetch)
    with pytest.raises(ColorDerivationError):
        asyncio.run(colors.average_color_from_url("http://logos/down.png"))
