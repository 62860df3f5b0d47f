from __future__ import annotations

import math
from functools import lru_cache
from pathlib import Path
from typing import Literal

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from grapher_plot.raster.canvas import RGBA


DEFAULT_FONT_FAMILY = "Lato"
DEFAULT_FONT_SIZE_PX = 16.0
SANS_FONT_FALLBACK_PATTERNS = (
    "lato",
    "helvetica",
    "arial",
    "dejavusans",
    "dejavu sans",
    "liberationsans",
    "liberation sans",
)

Anchor = Literal["left", "right", "center"]


def draw_text(
    dst: np.ndarray,
    x: int,
    y: int,
    text: str,
    color: RGBA,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
    rotate_deg: float = 0.0,
    anchor: Anchor = "left",
) -> None:
    """Draw ``text`` with its rotated bounding box hung from (x, y).

    ``anchor`` picks which edge of the box sits on ``x``; ``y`` is always the
    top edge, except for ``center`` where (x, y) is the box center.
    """
    if not text:
        return
    font = _load_font(font_family=font_family, font_size_px=font_size_px)
    mask = _rotate_mask(_render_mask(text=text, font=font), rotate_deg=rotate_deg)
    h, w = mask.shape
    if anchor == "right":
        x -= w
    elif anchor == "center":
        x -= w // 2
        y -= h // 2
    _blend_mask(dst, x, y, mask, color)


def text_size(
    text: str,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
    rotate_deg: float = 0.0,
) -> tuple[int, int]:
    font = _load_font(font_family=font_family, font_size_px=font_size_px)
    if not text:
        ascent, descent = font.getmetrics()
        return (0, max(1, int(ascent + descent)))
    left, top, right, bottom = font.getbbox(text)
    w = max(0, int(right - left))
    h = max(1, int(bottom - top))
    if rotate_deg % 90 == 0:
        if int(rotate_deg // 90) % 2 == 1:
            return (h, w)
        return (w, h)
    rad = math.radians(rotate_deg)
    cos, sin = abs(math.cos(rad)), abs(math.sin(rad))
    return (int(math.ceil(w * cos + h * sin)), int(math.ceil(w * sin + h * cos)))


def line_height(*, font_family: str = DEFAULT_FONT_FAMILY, font_size_px: float = DEFAULT_FONT_SIZE_PX) -> int:
    """Ascent plus descent of the font, the same for every string."""
    ascent, descent = _load_font(font_family=font_family, font_size_px=font_size_px).getmetrics()
    return max(1, int(ascent + descent))


def _blend_mask(dst: np.ndarray, x: int, y: int, mask: np.ndarray, color: RGBA) -> None:
    h, w = mask.shape
    if h <= 0 or w <= 0:
        return

    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(dst.shape[1], x + w)
    y1 = min(dst.shape[0], y + h)
    if x1 <= x0 or y1 <= y0:
        return

    sx0 = x0 - x
    sy0 = y0 - y
    cov = mask[sy0 : sy0 + (y1 - y0), sx0 : sx0 + (x1 - x0)].astype(np.float32) / 255.0
    src_alpha = (color[3] / 255.0) * cov
    if not np.any(src_alpha > 0):
        return

    patch = dst[y0:y1, x0:x1]
    dst_rgb = patch[:, :, :3].astype(np.float32)
    dst_alpha = patch[:, :, 3].astype(np.float32) / 255.0
    src_rgb = np.asarray(color[:3], dtype=np.float32).reshape(1, 1, 3)
    out_alpha = src_alpha + dst_alpha * (1.0 - src_alpha)
    out_rgb_num = src_rgb * src_alpha[:, :, None] + dst_rgb * dst_alpha[:, :, None] * (1.0 - src_alpha[:, :, None])
    safe_alpha = np.where(out_alpha > 1e-6, out_alpha, 1.0)
    out_rgb = out_rgb_num / safe_alpha[:, :, None]

    patch[:, :, :3] = np.clip(out_rgb, 0, 255).astype(np.uint8)
    patch[:, :, 3] = np.clip(out_alpha * 255.0, 0, 255).astype(np.uint8)


@lru_cache(maxsize=256)
def _render_mask(text: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont) -> np.ndarray:
    if not text:
        return np.zeros((1, 1), dtype=np.uint8)
    left, top, right, bottom = font.getbbox(text)
    width = max(1, int(right - left))
    height = max(1, int(bottom - top))
    image = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(image)
    draw.text((-left, -top), text, fill=255, font=font)
    return np.asarray(image, dtype=np.uint8)


@lru_cache(maxsize=64)
def _load_font(font_family: str, font_size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size = max(1, int(round(font_size_px)))
    font_path = _resolve_font_path(font_family)
    if font_path is None:
        return ImageFont.load_default()
    try:
        return ImageFont.truetype(str(font_path), size=size)
    except OSError:
        return ImageFont.load_default()


@lru_cache(maxsize=16)
def _resolve_font_path(font_family: str) -> Path | None:
    wanted = font_family.strip().lower() if font_family.strip() else DEFAULT_FONT_FAMILY.lower()
    patterns = (wanted,) + SANS_FONT_FALLBACK_PATTERNS

    font_dirs = [
        Path.home() / "Library" / "Fonts",
        Path("/Library/Fonts"),
        Path("/System/Library/Fonts"),
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
    ]

    candidates: list[Path] = []
    for base in font_dirs:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf"):
            candidates.extend(base.rglob(ext))

    for pattern in patterns:
        p = pattern.replace(" ", "")
        for path in candidates:
            stem = path.stem.lower().replace(" ", "")
            if p in stem and "mono" not in stem:
                return path
    return None


def _rotate_mask(mask: np.ndarray, *, rotate_deg: float) -> np.ndarray:
    if rotate_deg % 360 == 0:
        return mask
    if rotate_deg % 90 == 0:
        # Counter-clockwise quarter turns, same direction as PIL's rotate.
        return np.rot90(mask, k=int(rotate_deg // 90) % 4)
    image = Image.fromarray(mask).rotate(rotate_deg, resample=Image.Resampling.BICUBIC, expand=True)
    return np.asarray(image, dtype=np.uint8)
