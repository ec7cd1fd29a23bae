import io
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from datetime import date

# Settings are read at import time; point storage and the database at scratch locations first
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="rxscan-uploads-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pymupdf
import pytest
from PIL import Image, ImageDraw

from rxscan.database.connection import DatabaseManager
from rxscan.services.ocr_service import DocumentTextSource
from rxscan.services.prescription_processor import PrescriptionAnalyzer, PrescriptionProcessor
from rxscan.services.prescription_repository import PrescriptionRepository
from rxscan.services.report_service import ReportService
from rxscan.services.storage_service import StorageService

FIXED_DATE = date(2024, 3, 7)

SAMPLE_PRESCRIPTION = "\n".join([
    "Sunrise Clinic",
    "Dr. Ramesh Kumar",
    "Diagnosis: Type 2 Diabetes Mellitus",
    "Dolo 650mg twice a day for 5 days",
    "Pan 40mg once a day before food for 2 weeks",
])


def make_image(width=400, height=200, color=(240, 235, 220), fmt="PNG") -> bytes:
    img = Image.new("RGB", (width, height), color)
    draw = ImageDraw.Draw(img)
    draw.rectangle([width // 4, height // 4, width // 2, height // 2], fill=(40, 40, 90))
    output = io.BytesIO()
    img.save(output, format=fmt)
    return output.getvalue()


def make_pdf(text: str = None) -> bytes:
    doc = pymupdf.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text, fontsize=11)
    content = doc.tobytes()
    doc.close()
    return content


class StubEngine:
    """Records calls and returns a fixed text, or raises"""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def __call__(self, content: bytes) -> str:
        self.calls.append(content)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def storage(tmp_path):
    return StorageService(root=tmp_path / "uploads", url_prefix="/uploads")


@pytest.fixture
def db():
    manager = DatabaseManager()
    manager.init_db("sqlite://")
    yield manager
    manager.close()


@pytest.fixture
def repository(db, storage):
    return PrescriptionRepository(manager=db, storage=storage)


@pytest.fixture
def analyzer():
    return PrescriptionAnalyzer(today=lambda: FIXED_DATE)


@pytest.fixture
def recognizer():
    return StubEngine(text=SAMPLE_PRESCRIPTION)


@pytest.fixture
def pdf_extractor():
    return StubEngine(text=SAMPLE_PRESCRIPTION)


@pytest.fixture
def processor(recognizer, pdf_extractor, executor, analyzer, storage, repository):
    text_source = DocumentTextSource(
        pdf_extractor=pdf_extractor,
        recognizer=recognizer,
        executor=executor,
        ocr_timeout=5,
        pdf_timeout=5,
    )
    return PrescriptionProcessor(
        text_source=text_source,
        analyzer=analyzer,
        storage=storage,
        repository=repository,
        reports=ReportService(storage=storage),
        executor=executor,
    )
