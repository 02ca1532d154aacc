"""Tests for image-to-PDF placement and rendering, merging and stamping."""
import fitz
import pytest

from file_converter.conversion.adapters.pdf import (
    ImageStamp,
    TextStamp,
    compute_placement,
    edit_pdf,
    image_to_pdf,
    merge_pdfs,
    page_dimensions,
)

A4_W, A4_H = 595.2755905511812, 841.8897637795277


class TestPlacement:
    def test_large_image_fits_inside_margins(self):
        p = compute_placement(2000, 1000, "a4", "portrait", margin=50)
        assert p.scale <= 1
        assert p.width <= A4_W - 100 + 1e-6
        assert p.height <= A4_H - 100 + 1e-6
        assert p.width / p.height == pytest.approx(2.0)

    def test_image_is_centered(self):
        p = compute_placement(2000, 1000, "a4", "portrait", margin=50)
        assert p.x == pytest.approx((A4_W - p.width) / 2)
        assert p.y == pytest.approx((A4_H - p.height) / 2)

    def test_small_image_not_upscaled(self):
        p = compute_placement(100, 80, "a4", "portrait", margin=50)
        assert p.scale == 1.0
        assert (p.width, p.height) == (100, 80)

    def test_landscape_swaps_page(self):
        w, h = page_dimensions("a4", "landscape")
        assert w > h
        p = compute_placement(2000, 1000, "a4", "landscape", margin=50)
        assert p.page_width == pytest.approx(A4_H)
        assert p.width == pytest.approx(A4_H - 100)

    def test_letter(self):
        assert page_dimensions("letter") == (612.0, 792.0)

    def test_unknown_page_size(self):
        with pytest.raises(ValueError, match="Unknown page size"):
            page_dimensions("tabloid")

    def test_default_margin_from_config(self):
        p = compute_placement(5000, 5000)
        assert p.width == pytest.approx(A4_W - 100)


class TestImageToPdf:
    def test_produces_pdf(self, png_bytes):
        out = image_to_pdf(png_bytes)
        assert out.startswith(b"%PDF")
        assert b"/MediaBox" in out

    def test_rgba_and_palette_inputs(self, make_image):
        assert image_to_pdf(make_image("PNG", mode="RGBA", color=(0, 0, 0, 0))).startswith(b"%PDF")
        assert image_to_pdf(make_image("GIF", mode="P", color=3)).startswith(b"%PDF")

    def test_bad_input(self):
        with pytest.raises(RuntimeError, match="Image to PDF conversion failed"):
            image_to_pdf(b"not an image")


def _pdf(pages: int, width: float = 300, height: float = 400) -> bytes:
    doc = fitz.open()
    for _ in range(pages):
        doc.new_page(width=width, height=height)
    try:
        return doc.tobytes()
    finally:
        doc.close()


class TestMerge:
    def test_pages_in_order(self):
        merged = merge_pdfs([_pdf(2, width=300), _pdf(1, width=500)])
        with fitz.open(stream=merged, filetype="pdf") as doc:
            assert doc.page_count == 3
            assert [round(p.rect.width) for p in doc] == [300, 300, 500]

    def test_single_document(self):
        with fitz.open(stream=merge_pdfs([_pdf(1)]), filetype="pdf") as doc:
            assert doc.page_count == 1

    def test_empty_list(self):
        with pytest.raises(ValueError):
            merge_pdfs([])

    def test_bad_input(self):
        with pytest.raises(RuntimeError, match="PDF merge failed"):
            merge_pdfs([_pdf(1), b"not a pdf"])


class TestEdit:
    def test_text_lands_near_bottom_left_origin(self):
        edited = edit_pdf(_pdf(2), texts=[TextStamp("Approved", x=20, y=30, size=14)])
        with fitz.open(stream=edited, filetype="pdf") as doc:
            assert doc.page_count == 2
            first = doc[0]
            assert "Approved" in first.get_text()
            assert "Approved" not in doc[1].get_text()
            (hit,) = first.search_for("Approved")
            # 30pt above the bottom of a 400pt page
            assert hit.y1 == pytest.approx(400 - 30, abs=6)
            assert hit.x0 == pytest.approx(20, abs=2)

    def test_image_stamp_rect(self, png_bytes):
        edited = edit_pdf(_pdf(1), stamps=[ImageStamp(png_bytes, x=10, y=20, width=64, height=32)])
        with fitz.open(stream=edited, filetype="pdf") as doc:
            page = doc[0]
            (info,) = page.get_image_info()
            assert tuple(info["bbox"]) == pytest.approx((10, 400 - 52, 74, 400 - 20))

    def test_no_operations_keeps_pages(self):
        with fitz.open(stream=edit_pdf(_pdf(3)), filetype="pdf") as doc:
            assert doc.page_count == 3

    def test_bad_input(self):
        with pytest.raises(RuntimeError, match="PDF editing failed"):
            edit_pdf(b"not a pdf", texts=[TextStamp("x", 0, 0)])
