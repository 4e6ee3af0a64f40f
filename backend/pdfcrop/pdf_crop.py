"""
PDF page crop service.
Uses pypdfium2: the source page is embedded as a Form XObject into a
fresh single-page document sized to the crop rectangle.
"""
import io
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import pypdfium2 as pdfium

from .crop_params import CropPlacement, CropRequest, check_page_index, plan_placement

logger = logging.getLogger(__name__)

# PDFium is not thread-safe; every call into it goes through this lock.
_PDFIUM_LOCK = threading.Lock()


@dataclass(frozen=True)
class CropResult:
    pdf_bytes: bytes
    placement: CropPlacement
    source_width: float
    source_height: float
    duration_seconds: float


def crop_pdf_page(pdf_path: Union[str, Path], request: CropRequest) -> CropResult:
    """
    Crop one page of a PDF into a new single-page PDF.

    Args:
        pdf_path: Source PDF path
        request: Page index + top-left-origin crop rectangle

    Returns:
        CropResult with the serialized output document

    Raises:
        InvalidCropRequest: page index out of bounds
        pdfium.PdfiumError: source is not a readable PDF
    """
    start = time.monotonic()

    with _PDFIUM_LOCK:
        src = pdfium.PdfDocument(str(pdf_path))
        dest = None
        try:
            check_page_index(request.page_index, len(src))

            src_page = src[request.page_index]
            try:
                source_width, source_height = src_page.get_size()
            finally:
                src_page.close()

            placement = plan_placement(request, source_height)

            dest = pdfium.PdfDocument.new()
            xobject = src.page_as_xobject(request.page_index, dest)
            try:
                page_obj = xobject.as_pageobject()
                page_obj.transform(
                    pdfium.PdfMatrix().translate(placement.offset_x, placement.offset_y)
                )

                out_page = dest.new_page(placement.page_width, placement.page_height)
                try:
                    out_page.insert_obj(page_obj)
                    out_page.gen_content()
                finally:
                    out_page.close()
            finally:
                xobject.close()

            buffer = io.BytesIO()
            dest.save(buffer)
            pdf_bytes = buffer.getvalue()
        finally:
            if dest is not None:
                dest.close()
            src.close()

    duration = time.monotonic() - start
    logger.info(
        f"[crop] page={request.page_index} source={source_width:.1f}x{source_height:.1f} "
        f"out={placement.page_width}x{placement.page_height} "
        f"offset=({placement.offset_x:.1f}, {placement.offset_y:.1f}) "
        f"bytes={len(pdf_bytes)} in {duration:.3f}s"
    )

    return CropResult(
        pdf_bytes=pdf_bytes,
        placement=placement,
        source_width=source_width,
        source_height=source_height,
        duration_seconds=duration,
    )
