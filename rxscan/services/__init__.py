# Services Package
from .image_normalizer import ImageNormalizer, image_normalizer
from .ocr_service import (
    DocumentTextSource, DocumentExtractionError, PDFParseError, OCRError,
    TesseractSession, extract_pdf_text, recognize_image,
)
from .text_segmenter import segment
from .field_classifier import classify, ClassifiedLines
from .medicine_vocabulary import MedicineVocabulary, default_vocabulary, load_vocabulary
from .medicine_resolver import MedicineResolver
from .attribute_extractor import extract_dosage, extract_frequency, extract_duration, extract_medicine
from .storage_service import StorageService, BlobReference, storage_service
from .prescription_repository import PrescriptionRepository, prescription_repository, get_prescription_repository
from .report_service import ReportService, report_service
from .prescription_processor import PrescriptionAnalyzer, PrescriptionProcessor, get_prescription_processor

__all__ = [
    'ImageNormalizer',
    'image_normalizer',
    'DocumentTextSource',
    'DocumentExtractionError',
    'PDFParseError',
    'OCRError',
    'TesseractSession',
    'extract_pdf_text',
    'recognize_image',
    'segment',
    'classify',
    'ClassifiedLines',
    'MedicineVocabulary',
    'default_vocabulary',
    'load_vocabulary',
    'MedicineResolver',
    'extract_dosage',
    'extract_frequency',
    'extract_duration',
    'extract_medicine',
    'StorageService',
    'BlobReference',
    'storage_service',
    'PrescriptionRepository',
    'prescription_repository',
    'get_prescription_repository',
    'ReportService',
    'report_service',
    'PrescriptionAnalyzer',
    'PrescriptionProcessor',
    'get_prescription_processor',
]
