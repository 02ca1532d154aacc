"""PDF adapters: image to single-page PDF via reportlab, merge and stamp via PyMuPDF."""
import io
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import fitz  # PyMuPDF
from PIL import Image
from reportlab.lib.pagesizes import A4, LEGAL, LETTER, landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from file_converter import config as app_config
from file_converter.conversion.adapters.resize import fit_scale

logger = logging.getLogger("converter.pdf")

PAGE_SIZES = {
    "a4": A4,
    "letter": LETTER,
    "legal": LEGAL,
}


@dataclass(frozen=True)
class PdfPlacement:
    page_width: float
    page_height: float
    x: float
    y: float
    width: float
    height: float
    scale: float


def page_dimensions(page_size: str = "a4", orientation: str = "portrait") -> tuple[float, float]:
    size = PAGE_SIZES.get((page_size or "a4").lower())
    if size is None:
        raise ValueError(f"Unknown page size: {page_size}")
    if (orientation or "portrait").lower() == "landscape":
        return landscape(size)
    return portrait(size)


def compute_placement(
    img_width: int,
    img_height: int,
    page_size: str = "a4",
    orientation: str = "portrait",
    margin: Optional[float] = None,
) -> PdfPlacement:
    """
    Fit the image inside the page minus margins. The image is scaled down
    (never up), keeps its aspect ratio, and is centered on the page.
    """
    margin = app_config.PDF_MARGIN if margin is None else margin
    page_w, page_h = page_dimensions(page_size, orientation)
    scale = fit_scale(img_width, img_height, page_w - 2 * margin, page_h - 2 * margin)
    width = img_width * scale
    height = img_height * scale
    return PdfPlacement(
        page_width=page_w,
        page_height=page_h,
        x=(page_w - width) / 2,
        y=(page_h - height) / 2,
        width=width,
        height=height,
        scale=scale,
    )


def image_to_pdf(
    data: bytes,
    page_size: Optional[str] = None,
    orientation: Optional[str] = None,
    margin: Optional[float] = None,
) -> bytes:
    page_size = page_size or app_config.PDF_PAGE_SIZE
    orientation = orientation or app_config.PDF_ORIENTATION
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")
            png = io.BytesIO()
            img.save(png, format="PNG")
            img_w, img_h = img.size
        png.seek(0)
        placement = compute_placement(img_w, img_h, page_size, orientation, margin)
        out = io.BytesIO()
        c = canvas.Canvas(out, pagesize=(placement.page_width, placement.page_height))
        c.drawImage(
            ImageReader(png),
            placement.x,
            placement.y,
            width=placement.width,
            height=placement.height,
            mask="auto",
        )
        c.showPage()
        c.save()
        logger.info(
            "Image %sx%s placed on %s %s page at scale %.3f",
            img_w, img_h, page_size, orientation, placement.scale,
        )
        return out.getvalue()
    except Exception as e:
        raise RuntimeError(f"Image to PDF conversion failed: {e}") from e


@dataclass(frozen=True)
class TextStamp:
    text: str
    x: float
    y: float
    size: float = 12


@dataclass(frozen=True)
class ImageStamp:
    image: bytes
    x: float
    y: float
    width: float
    height: float


def merge_pdfs(documents: Sequence[bytes]) -> bytes:
    """Concatenate all pages of each PDF, in order, into one document."""
    if not documents:
        raise ValueError("No PDF documents to merge")
    merged = fitz.open()
    try:
        for data in documents:
            with fitz.open(stream=data, filetype="pdf") as src:
                merged.insert_pdf(src)
        logger.info("Merged %s PDFs into %s pages", len(documents), merged.page_count)
        return merged.tobytes(garbage=3, deflate=True)
    except Exception as e:
        raise RuntimeError(f"PDF merge failed: {e}") from e
    finally:
        merged.close()


def edit_pdf(
    data: bytes,
    texts: Sequence[TextStamp] = (),
    stamps: Sequence[ImageStamp] = (),
) -> bytes:
    """
    Draw black text and images onto the first page. Coordinates are PDF
    points with the origin at the bottom-left corner of the page; y is the
    text baseline or the bottom edge of the image.
    """
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            if not doc.page_count:
                raise ValueError("document has no pages")
            page = doc[0]
            page_height = page.rect.height
            for t in texts:
                page.insert_text(fitz.Point(t.x, page_height - t.y), t.text, fontsize=t.size, color=(0, 0, 0))
            for s in stamps:
                rect = fitz.Rect(s.x, page_height - s.y - s.height, s.x + s.width, page_height - s.y)
                page.insert_image(rect, stream=s.image, keep_proportion=False)
            logger.info("Stamped %s text and %s image items onto page 1", len(texts), len(stamps))
            return doc.tobytes(garbage=3, deflate=True)
    except Exception as e:
        raise RuntimeError(f"PDF editing failed: {e}") from e
