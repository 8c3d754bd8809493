"""Average colour of a team logo, used to suggest primary/secondary colours."""
import asyncio
import io
import logging

import aiohttp
from PIL import Image

logger = logging.getLogger(__name__)

MAX_SAMPLES = 160_000
MIN_ALPHA = 32  # mostly transparent pixels are ignored


class ColorDerivationError(Exception):
    pass


def average_hex(image: Image.Image) -> str:
    """Mean colour of the visible pixels as ``#rrggbb``; ``#000000`` if there are none.

    Large images are sampled on a grid, doubling the step along the denser
    axis until at most MAX_SAMPLES pixels remain.
    """
    width, height = image.size
    if width == 0 or height == 0:
        return "#000000"
    step_x = step_y = 1
    while (width // step_x) * (height // step_y) > MAX_SAMPLES:
        if step_x <= step_y:
            step_x *= 2
        else:
            step_y *= 2

    pixels = image.convert("RGBA").load()
    r_sum = g_sum = b_sum = count = 0
    for y in range(0, height, step_y):
        for x in range(0, width, step_x):
            r, g, b, a = pixels[x, y]
            if a < MIN_ALPHA:
                continue
            r_sum += r
            g_sum += g
            b_sum += b
            count += 1
    if not count:
        return "#000000"
    return f"#{r_sum // count:02x}{g_sum // count:02x}{b_sum // count:02x}"


def _average_from_bytes(data: bytes) -> str:
    try:
        with Image.open(io.BytesIO(data)) as image:
            return average_hex(image)
    except (OSError, Image.DecompressionBombError) as exc:
        raise ColorDerivationError(f"cannot decode image: {exc}") from exc


async def fetch_image(url: str, timeout: float) -> bytes:
    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.get(url) as resp:
                if not 200 <= resp.status < 300:
                    raise ColorDerivationError(f"HTTP status {resp.status}")
                return await resp.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise ColorDerivationError(f"cannot fetch {url}: {exc}") from exc


async def average_color_from_url(url: str, timeout: float = 7.0) -> str:
    data = await fetch_image(url, timeout)
    return await asyncio.to_thread(_average_from_bytes, data)
