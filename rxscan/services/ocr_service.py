"""
OCR Service - Document text source
Reads the text of an uploaded prescription through one of two paths:
- PDF: direct text-layer extraction with pymupdf (no OCR fallback)
- Image: normalization followed by a per-request Tesseract session
"""
import io
import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Callable, Optional

import pymupdf
import pytesseract
from PIL import Image

from rxscan.config import settings
from rxscan.models.document import MediaType, RawDocument
from rxscan.services.image_normalizer import ImageNormalizer, image_normalizer

logger = logging.getLogger(__name__)

if settings.TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD


class DocumentExtractionError(Exception):
    """Fatal failure reading text out of an upload"""
    code = "extraction_failed"
    message = "Text extraction failed."

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class PDFParseError(DocumentExtractionError):
    code = "pdf_parse_failed"
    message = "Failed to parse PDF."


class OCRError(DocumentExtractionError):
    code = "ocr_failed"
    message = "OCR Failed."


class TesseractSession:
    """
    Scoped Tesseract engine

    Acquired for a single raster, configured for English with automatic
    page segmentation, and released on every exit path.
    """

    def __init__(self, raster_bytes: bytes, language: str = None,
                 page_segmentation_mode: int = None, timeout: float = None):
        self.raster_bytes = raster_bytes
        self.language = language or settings.OCR_LANGUAGE
        self.page_segmentation_mode = (
            page_segmentation_mode if page_segmentation_mode is not None
            else settings.OCR_PAGE_SEGMENTATION_MODE
        )
        self.timeout = timeout if timeout is not None else settings.OCR_TIMEOUT_SECONDS
        self._image: Optional[Image.Image] = None

    @property
    def config(self) -> str:
        return f"--psm {self.page_segmentation_mode}"

    def __enter__(self) -> "TesseractSession":
        try:
            self._image = Image.open(io.BytesIO(self.raster_bytes))
            self._image.load()
        except Exception as e:
            self.close()
            raise OCRError(f"Unreadable image: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        if self._image is not None:
            self._image.close()
            self._image = None

    def recognize(self) -> str:
        if self._image is None:
            raise OCRError("Tesseract session is not open")
        try:
            return pytesseract.image_to_string(
                self._image,
                lang=self.language,
                config=self.config,
                timeout=self.timeout
            )
        except RuntimeError as e:
            # pytesseract reports a killed process as RuntimeError('Tesseract process timeout')
            raise OCRError(str(e)) from e
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise OCRError(str(e)) from e


def recognize_image(raster_bytes: bytes) -> str:
    """Run OCR on a normalized raster in a fresh Tesseract session"""
    with TesseractSession(raster_bytes) as session:
        return session.recognize()


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """Read the embedded text layer of a PDF"""
    try:
        doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise PDFParseError(f"Could not open PDF: {e}") from e

    try:
        if doc.needs_pass:
            raise PDFParseError("PDF is password protected")
        text = "\n".join(page.get_text() for page in doc)
    except PDFParseError:
        raise
    except Exception as e:
        raise PDFParseError(f"Could not read PDF text: {e}") from e
    finally:
        doc.close()

    if not text.strip():
        raise PDFParseError("PDF has no extractable text layer")
    return text


class DocumentTextSource:
    """Chooses the PDF or OCR path for an upload and enforces engine timeouts"""

    def __init__(
        self,
        normalizer: ImageNormalizer = None,
        pdf_extractor: Callable[[bytes], str] = None,
        recognizer: Callable[[bytes], str] = None,
        executor: Executor = None,
        ocr_timeout: float = None,
        pdf_timeout: float = None,
    ):
        self.normalizer = normalizer or image_normalizer
        self.pdf_extractor = pdf_extractor or extract_pdf_text
        self.recognizer = recognizer or recognize_image
        self.executor = executor or ThreadPoolExecutor(
            max_workers=settings.MAX_WORKERS, thread_name_prefix="text-source"
        )
        self.ocr_timeout = ocr_timeout if ocr_timeout is not None else settings.OCR_TIMEOUT_SECONDS
        self.pdf_timeout = pdf_timeout if pdf_timeout is not None else settings.PDF_TIMEOUT_SECONDS

    def extract_text(self, document: RawDocument) -> str:
        start = time.time()

        if document.media_type == MediaType.PDF:
            text = self._call_engine(self.pdf_extractor, document.content, self.pdf_timeout, PDFParseError)
            logger.info(f"PDF parsed in {int((time.time() - start) * 1000)}ms")
            return text

        logger.info("Preprocessing image...")
        raster = self.normalizer.normalize(document.content)
        text = self._call_engine(self.recognizer, raster, self.ocr_timeout, OCRError)
        logger.info(f"Image OCR completed in {int((time.time() - start) * 1000)}ms")
        return text

    def _call_engine(self, engine: Callable[[bytes], str], content: bytes,
                     timeout: float, error_cls) -> str:
        future = self.executor.submit(engine, content)
        try:
            text = future.result(timeout=timeout)
        except FuturesTimeout as e:
            future.cancel()
            logger.error(f"{error_cls.__name__}: engine timed out after {timeout}s")
            raise error_cls(f"Timed out after {timeout}s") from e
        except DocumentExtractionError as e:
            if isinstance(e, error_cls):
                logger.error(f"{error_cls.__name__}: {e.detail}")
                raise
            raise error_cls(e.detail) from e
        except Exception as e:
            logger.error(f"{error_cls.__name__}: {e}")
            raise error_cls(str(e)) from e

        return text or ""

    def shutdown(self):
        self.executor.shutdown(wait=False)
