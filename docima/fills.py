"""Ready-made fill functions.

Each function here is a factory: it takes the drawing parameters and returns
a callable matching the fill contract ``fill(buffer, width, height)``, where
``buffer`` is the flat uint8 RGB array owned by the generator.

Manifests reference these as ``docima.fills:<name>`` with ``fill_args``.

Usage:
    from docima import ImageFile, fills
    ImageFile().path("images/noise.html").width(32).height(32) \\
        .generate(fills.random_pixels(seed=1234))
"""

from typing import Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

RGB = Tuple[int, int, int]


def as_image(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """View the flat buffer as a (height, width, 3) array (writes go through)."""
    return buffer.reshape(height, width, 3)


def _rgb(name: str, color: Sequence[int]) -> RGB:
    """Check a color argument; returns it as an (r, g, b) tuple of ints."""
    values = np.asarray(color)
    if (
        values.shape != (3,)
        or not np.issubdtype(values.dtype, np.integer)
        or values.min() < 0
        or values.max() > 255
    ):
        raise ValueError(f"{name} must be RGB values in [0, 255], got {color!r}")
    return tuple(int(v) for v in values)


def solid(color: Sequence[int] = (255, 255, 255)):
    """Fill every pixel with one color.

    Raises
    ------
    ValueError
        If ``color`` is not three integers in [0, 255]
    """
    color = np.asarray(_rgb("color", color), dtype=np.uint8)

    def fill(buffer: np.ndarray, width: int, height: int) -> None:
        as_image(buffer, width, height)[:] = color

    return fill


def random_pixels(seed: int = 1234):
    """Uniformly random pixels from a seeded generator.

    The same seed and size always produce the same image, so regenerated
    fragments don't change between builds.
    """

    def fill(buffer: np.ndarray, width: int, height: int) -> None:
        rng = np.random.default_rng(seed)
        buffer[:] = rng.integers(0, 256, size=buffer.size, dtype=np.uint8)

    return fill


def gradient(start: Sequence[int] = (0, 0, 0), end: Sequence[int] = (255, 255, 255)):
    """Horizontal linear gradient from ``start`` (left) to ``end`` (right)."""
    start = np.asarray(_rgb("start", start), dtype=np.float64)
    end = np.asarray(_rgb("end", end), dtype=np.float64)

    def fill(buffer: np.ndarray, width: int, height: int) -> None:
        t = np.linspace(0.0, 1.0, width)[:, None]
        row = np.rint(start + (end - start) * t).astype(np.uint8)
        as_image(buffer, width, height)[:] = row[None, :, :]

    return fill


def histogram(
    data: Sequence[int],
    buckets: int = 10,
    bar_color: Sequence[int] = (230, 128, 128),
    background: Sequence[int] = (255, 255, 255),
    axis_color: Sequence[int] = (0, 0, 0),
    margin: int = 5
):
    """Vertical bar chart counting how often each bucket index occurs in ``data``.

    Parameters
    ----------
    data : Sequence[int]
        Bucket index per sample, in [0, buckets)
    buckets : int
        Number of bars
    bar_color, background, axis_color : Sequence[int]
        RGB colors
    margin : int
        Padding in pixels around the plot area

    Raises
    ------
    ValueError
        If a color is not three integers in [0, 255]; if a sample falls
        outside [0, buckets), raised when the fill runs
    """
    bar_color = _rgb("bar_color", bar_color)
    background = _rgb("background", background)
    axis_color = _rgb("axis_color", axis_color)
    values = np.asarray(data, dtype=np.int64)

    def fill(buffer: np.ndarray, width: int, height: int) -> None:
        if values.size and (values.min() < 0 or values.max() >= buckets):
            raise ValueError(f"histogram samples must lie in [0, {buckets})")
        counts = np.bincount(values, minlength=buckets)

        canvas = Image.new("RGB", (width, height), tuple(background))
        draw = ImageDraw.Draw(canvas)

        left, top = margin, margin
        right, bottom = width - 1 - margin, height - 1 - margin
        if right > left and bottom > top:
            peak = max(int(counts.max()), 1)
            slot = (right - left) / buckets
            for i, count in enumerate(counts):
                if count == 0:
                    continue
                x0 = left + round(i * slot) + 1
                x1 = left + round((i + 1) * slot) - 1
                y0 = bottom - round((bottom - top) * count / peak)
                if x1 >= x0:
                    draw.rectangle([x0, y0, x1, bottom], fill=tuple(bar_color))
            draw.line([(left, bottom), (right, bottom)], fill=tuple(axis_color))
            draw.line([(left, top), (left, bottom)], fill=tuple(axis_color))

        buffer[:] = np.asarray(canvas, dtype=np.uint8).reshape(-1)

    return fill
