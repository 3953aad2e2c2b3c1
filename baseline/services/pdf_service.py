"""PDF page rasterization.

Pages are rendered with PyMuPDF at a fixed zoom so slide images stay sharp on
high-density screens.
"""
from __future__ import annotations

import io
from typing import Tuple

import fitz  # PyMuPDF
from PIL import Image, UnidentifiedImageError

from baseline.errors import PdfRenderError

RENDER_SCALE = 2.0
PDF_MIME_TYPE = "application/pdf"


def open_pdf(data: bytes) -> fitz.Document:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise PdfRenderError(f"Could not open PDF: {e}") from e
    if doc.page_count == 0:
        doc.close()
        raise PdfRenderError("PDF has no pages")
    return doc


def render_page_png(doc: fitz.Document, index: int, scale: float = RENDER_SCALE) -> bytes:
    """Rasterize one page (0-based index) to PNG bytes sized to the scaled viewport."""
    page = doc.load_page(index)
    pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
    return pix.tobytes("png")


def png_dimensions(data: bytes) -> Tuple[int, int]:
    """Return (width, height) of a PNG payload, raising ValueError for anything else."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.format != "PNG":
                raise ValueError(f"expected PNG, got {img.format}")
            img.verify()
            return img.size
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValueError(f"not a readable image: {e}") from e
