"""
Prescription pipeline data types
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

UNKNOWN_DOCTOR = "Unknown Doctor"
REVIEW_REQUIRED = "Review Required"
AS_PRESCRIBED = "As prescribed"
DOSAGE_AS_DIRECTED = "Dosage as directed"


def format_analysis_date(day: date) -> str:
    """Render a date as month/day/year without zero padding"""
    return f"{day.month}/{day.day}/{day.year}"


@dataclass(frozen=True)
class MedicineMatch:
    """A candidate line accepted by the medicine name resolver"""
    matched_name: str
    source_line: str
    distance: int = 0


@dataclass
class ExtractedMedicine:
    """Medicine with attributes pulled from its source line"""
    name: str
    dosage: str = AS_PRESCRIBED
    frequency: str = DOSAGE_AS_DIRECTED
    duration: str = AS_PRESCRIBED
    original_line: str = ""

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "duration": self.duration,
            "originalLine": self.original_line,
        }


@dataclass
class PrescriptionAnalysis:
    """Structured analysis of one prescription document"""
    doctor_name: str = UNKNOWN_DOCTOR
    diagnosis: str = REVIEW_REQUIRED
    medicines: List[ExtractedMedicine] = field(default_factory=list)
    date: str = ""
    confidence_label: str = ""
    report_url: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {
            "Doctor Name": self.doctor_name,
            "Diagnosis": self.diagnosis,
            "Medicines": [m.to_dict() for m in self.medicines],
            "Date": self.date,
            "Raw Confidence": self.confidence_label,
        }
        if self.report_url:
            data["pdfUrl"] = self.report_url
        return data


@dataclass
class ProcessingResult:
    """Outcome of one upload through the pipeline"""
    extracted_text: str
    analysis: PrescriptionAnalysis
    file_url: str
    document_id: str
    prescription_id: Optional[str] = None
    processing_time_ms: int = 0

    def to_dict(self) -> Dict:
        return {
            "extractedText": self.extracted_text,
            "analysis": self.analysis.to_dict(),
            "prescriptionId": self.prescription_id,
            "fileUrl": self.file_url,
            "success": True,
        }
