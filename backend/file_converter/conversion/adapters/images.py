"""Image adapters: raster transcode, SVG rasterization, ICO stand-ins, watermark filter."""
import base64
import io
import logging
from typing import Optional

import fitz  # PyMuPDF
from PIL import Image, ImageEnhance, ImageFilter

from file_converter import config as app_config
from file_converter.conversion.adapters.resize import pad_to_square
from file_converter.conversion.models import UnsupportedConversionError

logger = logging.getLogger("converter.images")

RASTER_OUTPUT_FORMATS = {"jpeg": "JPEG", "jpg": "JPEG", "png": "PNG", "webp": "WEBP", "avif": "AVIF"}

PLACEHOLDER_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="256" height="256" viewBox="0 0 256 256">
  <rect width="256" height="256" fill="#f3f4f6" stroke="#ef4444" stroke-width="4"/>
  <text x="128" y="120" font-family="sans-serif" font-size="20" text-anchor="middle" fill="#ef4444">Conversion Failed</text>
  <text x="128" y="150" font-family="sans-serif" font-size="12" text-anchor="middle" fill="#6b7280">ICO could not be decoded</text>
</svg>
"""


def _encode(img: Image.Image, target_format: str, quality: Optional[int] = None) -> bytes:
    fmt = RASTER_OUTPUT_FORMATS.get(target_format.lower())
    if fmt is None:
        raise UnsupportedConversionError(f"Unsupported image output format: {target_format}")
    quality = quality or app_config.DEFAULT_QUALITY
    if fmt == "JPEG" and img.mode != "RGB":
        img = img.convert("RGB")
    elif img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    save_kw: dict = {"format": fmt}
    if fmt == "JPEG":
        save_kw.update(quality=quality, optimize=True)
    elif fmt in ("WEBP", "AVIF"):
        save_kw["quality"] = quality
    elif fmt == "PNG":
        save_kw["optimize"] = True
    buf = io.BytesIO()
    img.save(buf, **save_kw)
    return buf.getvalue()


def convert_image_format(data: bytes, target_format: str, quality: Optional[int] = None) -> bytes:
    """Re-encode a raster image; lossy formats use the configured quality (90)."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return _encode(img, target_format, quality)
    except UnsupportedConversionError:
        raise
    except Exception as e:
        raise RuntimeError(f"Image conversion failed: {e}") from e


def compress_image(data: bytes, quality: Optional[int] = None) -> bytes:
    """Re-encode as JPEG at COMPRESS_QUALITY (80) unless given."""
    quality = quality or app_config.COMPRESS_QUALITY
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return _encode(img, "jpeg", quality)
    except Exception as e:
        raise RuntimeError(f"Image compression failed: {e}") from e


def remove_background(data: bytes) -> bytes:
    # Drops the alpha channel only; there is no subject detection.
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            flat = img.convert("RGB")
        buf = io.BytesIO()
        flat.save(buf, format="PNG")
        return buf.getvalue()
    except Exception as e:
        raise RuntimeError(f"Background removal failed: {e}") from e


def rasterize_svg(data: bytes, width: Optional[int] = None, height: Optional[int] = None) -> Image.Image:
    """Render SVG onto a transparent width x height canvas (default 512x512), aspect preserved."""
    width = width or app_config.SVG_RASTER_SIZE
    height = height or width
    doc = fitz.open(stream=data, filetype="svg")
    try:
        page = doc[0]
        rect = page.rect
        zoom = min(width / rect.width, height / rect.height)
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=True)
        rendered = Image.open(io.BytesIO(pix.tobytes("png")))
        rendered.load()
    finally:
        doc.close()
    if rendered.mode != "RGBA":
        rendered = rendered.convert("RGBA")
    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    canvas.paste(rendered, ((width - rendered.width) // 2, (height - rendered.height) // 2), rendered)
    return canvas


def svg_to_raster(data: bytes, target_format: str, width: Optional[int] = None, height: Optional[int] = None) -> bytes:
    try:
        canvas = rasterize_svg(data, width, height)
    except Exception as e:
        raise RuntimeError(f"SVG rasterization failed: {e}") from e
    if RASTER_OUTPUT_FORMATS.get(target_format.lower()) == "JPEG":
        # JPEG has no alpha; flatten onto white
        flat = Image.new("RGB", canvas.size, (255, 255, 255))
        flat.paste(canvas, mask=canvas.split()[3])
        canvas = flat
    return _encode(canvas, target_format)


def _ico_from_image(img: Image.Image) -> bytes:
    sizes = sorted(app_config.ICO_SIZES) or [256]
    pngs = []
    for size in sizes:
        icon = pad_to_square(img, size)
        buf = io.BytesIO()
        icon.save(buf, format="PNG")
        pngs.append(buf.getvalue())
    # Not a real ICO container: the largest PNG stands in for the icon set.
    return pngs[-1]


def image_to_ico(data: bytes) -> bytes:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return _ico_from_image(img)
    except Exception as e:
        raise RuntimeError(f"ICO conversion failed: {e}") from e


def svg_to_ico(data: bytes) -> bytes:
    size = max(app_config.ICO_SIZES or [256])
    try:
        canvas = rasterize_svg(data, size, size)
    except Exception as e:
        raise RuntimeError(f"SVG rasterization failed: {e}") from e
    return _ico_from_image(canvas)


def _decode_ico(data: bytes) -> Optional[Image.Image]:
    """Try ICO, then any format Pillow can sniff. Returns None when nothing decodes."""
    for formats in (["ICO"], None):
        try:
            img = Image.open(io.BytesIO(data), formats=formats)
            img.load()
            return img
        except Exception as e:
            logger.debug("ICO decode attempt %s failed: %s", formats or "auto", e)
    return None


def ico_to_svg(data: bytes) -> bytes:
    """
    Wrap the decoded icon as a base64 PNG inside a minimal SVG (no vector trace).
    If the icon cannot be decoded, return a placeholder SVG stating the failure.
    """
    img = _decode_ico(data)
    if img is None:
        if app_config.STRICT_CONVERSIONS:
            raise RuntimeError("ICO to SVG conversion failed: could not decode icon")
        logger.warning("ICO decode failed, returning placeholder SVG")
        return PLACEHOLDER_SVG.encode("utf-8")
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    b64 = base64.b64encode(buf.getvalue()).decode("ascii")
    w, h = img.size
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'width="{w}" height="{h}" viewBox="0 0 {w} {h}">'
        f'<image width="{w}" height="{h}" href="data:image/png;base64,{b64}" '
        f'xlink:href="data:image/png;base64,{b64}"/></svg>'
    )
    return svg.encode("utf-8")


def _gamma(img: Image.Image, gamma: float) -> Image.Image:
    lut = [min(255, int(round(255 * ((i / 255) ** (1 / gamma))))) for i in range(256)]
    bands = len(img.getbands())
    if img.mode == "RGBA":
        # leave alpha untouched
        return img.point(lut * 3 + list(range(256)))
    return img.point(lut * bands)


def remove_watermark(data: bytes) -> bytes:
    """
    Fixed filter chain meant to visually soften overlays. No detection is done;
    every input goes through the same steps and nothing is guaranteed removed.
    """
    try:
        with Image.open(io.BytesIO(data)) as src:
            img = src.convert("RGBA" if "A" in src.getbands() else "RGB")
        img = img.filter(ImageFilter.SHARPEN)
        img = img.filter(ImageFilter.MedianFilter(size=3))
        img = img.filter(ImageFilter.GaussianBlur(radius=0.5))
        img = ImageEnhance.Brightness(img).enhance(1.05)
        img = ImageEnhance.Color(img).enhance(1.1)
        img = _gamma(img, 1.1)
        img = img.filter(ImageFilter.SHARPEN)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
    except Exception as e:
        raise RuntimeError(f"Watermark removal failed: {e}") from e

