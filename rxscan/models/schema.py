"""
API response schemas
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class MedicineOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    dosage: str
    frequency: str
    duration: str
    original_line: str = Field(alias="originalLine")


class AnalysisOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doctor_name: str = Field(alias="Doctor Name")
    diagnosis: str = Field(alias="Diagnosis")
    medicines: List[MedicineOut] = Field(alias="Medicines")
    date: str = Field(alias="Date")
    confidence_label: str = Field(alias="Raw Confidence")
    report_url: Optional[str] = Field(default=None, alias="pdfUrl")


class ProcessPrescriptionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    extracted_text: str = Field(alias="extractedText")
    analysis: AnalysisOut
    prescription_id: Optional[str] = Field(default=None, alias="prescriptionId")
    file_url: str = Field(alias="fileUrl")
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
    code: Optional[str] = None


class StoredMedicineOut(BaseModel):
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None


class StoredPrescriptionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    patient_id: str = Field(alias="patientId")
    doctor_name: Optional[str] = Field(default=None, alias="doctorName")
    diagnosis: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    pdf_url: Optional[str] = Field(default=None, alias="pdfUrl")
    extracted_text: Optional[str] = Field(default=None, alias="extractedText")
    medicines: List[StoredMedicineOut] = []
    date: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
