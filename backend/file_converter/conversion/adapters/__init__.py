"""Converter adapters: thin wrappers over Pillow, PyMuPDF, reportlab, ffmpeg and mammoth."""
