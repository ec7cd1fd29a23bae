"""
Prescription Processor - full pipeline for an uploaded prescription
1. Blob storage of the upload
2. Text extraction (PDF text layer or normalized-image OCR)
3. Line segmentation and field classification
4. Fuzzy medicine resolution and attribute extraction
5. Record assembly
6. Best-effort persistence and clinical record PDF
"""
import logging
import time
import uuid
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import date
from typing import Callable, Optional

from rxscan.config import settings
from rxscan.models.document import RawDocument
from rxscan.models.prescription import (
    PrescriptionAnalysis, ProcessingResult, UNKNOWN_DOCTOR, REVIEW_REQUIRED,
    format_analysis_date
)
from rxscan.services.attribute_extractor import extract_medicine
from rxscan.services.field_classifier import classify
from rxscan.services.medicine_resolver import MedicineResolver
from rxscan.services.ocr_service import DocumentTextSource
from rxscan.services.prescription_repository import PrescriptionRepository, prescription_repository
from rxscan.services.report_service import ReportService, report_service
from rxscan.services.storage_service import StorageService, storage_service
from rxscan.services.text_segmenter import segment

logger = logging.getLogger(__name__)


class PrescriptionAnalyzer:
    """Turns recognized text into a PrescriptionAnalysis. Pure apart from the date."""

    def __init__(self, resolver: MedicineResolver = None, confidence_label: str = None,
                 today: Callable[[], date] = date.today):
        self.resolver = resolver or MedicineResolver()
        self.confidence_label = confidence_label or settings.CONFIDENCE_LABEL
        self.today = today

    def analyze(self, text: str, analysis_date: Optional[date] = None) -> PrescriptionAnalysis:
        lines = segment(text)
        classified = classify(lines)

        medicines = []
        for line in classified.medicine_candidates:
            match = self.resolver.resolve(line)
            if match:
                medicines.append(extract_medicine(match))

        return PrescriptionAnalysis(
            doctor_name=classified.doctor_name or UNKNOWN_DOCTOR,
            diagnosis=classified.diagnosis or REVIEW_REQUIRED,
            medicines=medicines,
            date=format_analysis_date(analysis_date or self.today()),
            confidence_label=self.confidence_label
        )


class PrescriptionProcessor:
    """Coordinates extraction, analysis, storage and persistence for one upload"""

    def __init__(
        self,
        text_source: DocumentTextSource = None,
        analyzer: PrescriptionAnalyzer = None,
        storage: StorageService = None,
        repository: PrescriptionRepository = None,
        reports: ReportService = None,
        executor: Executor = None,
    ):
        self.text_source = text_source or DocumentTextSource()
        self.analyzer = analyzer or PrescriptionAnalyzer()
        self.storage = storage or storage_service
        self.repository = repository or prescription_repository
        self.reports = reports or report_service
        self.executor = executor or ThreadPoolExecutor(
            max_workers=settings.MAX_WORKERS, thread_name_prefix="analysis"
        )

    def process(self, document: RawDocument, patient_id: Optional[str] = None) -> ProcessingResult:
        """
        Run the pipeline for one upload.

        Raises PDFParseError / OCRError when text cannot be read; every later
        step either fills defaults or is logged and skipped.
        """
        start_time = time.time()
        document_id = str(uuid.uuid4())

        logger.info(f"[{document_id}] Processing: {document.filename} ({document.media_type.value})")

        blob = self.storage.store_blob(document.content, document.filename)

        try:
            extracted_text = self.text_source.extract_text(document)
        except Exception:
            # No record will reference the upload
            self.storage.delete_blob(blob.url)
            raise
        logger.info(f"[{document_id}] Extracted {len(extracted_text)} chars")

        analysis = self.executor.submit(self.analyzer.analyze, extracted_text).result()
        logger.info(
            f"[{document_id}] Doctor: {analysis.doctor_name}, Diagnosis: {analysis.diagnosis}, "
            f"{len(analysis.medicines)} medicine(s)"
        )

        prescription_id = None
        if patient_id:
            prescription_id = self._persist(document_id, analysis, extracted_text, blob.url, patient_id)

        if prescription_id:
            self._attach_report(document_id, prescription_id, analysis, extracted_text)

        return ProcessingResult(
            extracted_text=extracted_text,
            analysis=analysis,
            file_url=blob.url,
            document_id=document_id,
            prescription_id=prescription_id,
            processing_time_ms=int((time.time() - start_time) * 1000)
        )

    def _persist(self, document_id: str, analysis: PrescriptionAnalysis, extracted_text: str,
                 blob_url: str, patient_id: str) -> Optional[str]:
        try:
            return self.repository.save_prescription(analysis, extracted_text, blob_url, patient_id)
        except Exception as e:
            logger.error(f"[{document_id}] DB save failed: {e}")
            return None

    def _attach_report(self, document_id: str, prescription_id: str,
                       analysis: PrescriptionAnalysis, extracted_text: str):
        try:
            report_url = self.reports.generate(prescription_id, analysis, extracted_text)
            self.repository.attach_report(prescription_id, report_url)
            analysis.report_url = report_url
        except Exception as e:
            logger.error(f"[{document_id}] PDF generation failed: {e}")

    def shutdown(self):
        self.executor.shutdown(wait=False)
        self.text_source.shutdown()


_processor: Optional[PrescriptionProcessor] = None


def get_prescription_processor() -> PrescriptionProcessor:
    """Process-wide processor, created on first use"""
    global _processor
    if _processor is None:
        _processor = PrescriptionProcessor()
    return _processor
