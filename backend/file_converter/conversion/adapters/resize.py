"""Aspect-preserving resize helpers shared by the image adapters."""
import logging
from typing import Optional, Tuple

from PIL import Image

logger = logging.getLogger("converter.resize")


def fit_scale(width: float, height: float, box_width: float, box_height: float, allow_upscale: bool = False) -> float:
    """
    Scale factor that fits (width, height) inside the box, keeping aspect ratio.
    Without allow_upscale the factor is capped at 1.0.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size {width}x{height}")
    scale = min(box_width / width, box_height / height)
    if not allow_upscale:
        scale = min(scale, 1.0)
    return max(scale, 0.0)


def resize_keep_aspect(
    img: Image.Image,
    target_width: Optional[int] = None,
    target_height: Optional[int] = None,
) -> Image.Image:
    """
    Scale image to fit within target width and/or height, maintaining aspect ratio.
    If only one dimension is set, the other is computed from the image ratio.
    """
    w, h = img.size
    if target_width is None and target_height is None:
        return img.copy()
    if target_width is not None and target_height is not None:
        scale = min(target_width / w, target_height / h)
    elif target_width is not None:
        scale = target_width / w
    else:
        scale = target_height / h
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return img.resize((new_w, new_h), Image.Resampling.LANCZOS)


def pad_to_square(img: Image.Image, size: int, fill: Tuple[int, int, int, int] = (0, 0, 0, 0)) -> Image.Image:
    """Fit img inside a size x size RGBA canvas, centered."""
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    fitted = resize_keep_aspect(img, size, size)
    canvas = Image.new("RGBA", (size, size), fill)
    canvas.paste(fitted, ((size - fitted.width) // 2, (size - fitted.height) // 2), fitted)
    return canvas
