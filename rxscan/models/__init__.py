# Pipeline Models
from .document import MediaType, RawDocument, UnsupportedMediaTypeError
from .prescription import (
    MedicineMatch, ExtractedMedicine, PrescriptionAnalysis, ProcessingResult,
    UNKNOWN_DOCTOR, REVIEW_REQUIRED, AS_PRESCRIBED, DOSAGE_AS_DIRECTED,
)
