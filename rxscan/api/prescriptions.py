"""
Prescription API Routes - upload analysis and stored records
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from rxscan.config import settings
from rxscan.models.document import RawDocument, UnsupportedMediaTypeError
from rxscan.models.schema import ErrorResponse, ProcessPrescriptionResponse, StoredPrescriptionOut
from rxscan.services.ocr_service import DocumentExtractionError
from rxscan.services.prescription_processor import PrescriptionProcessor, get_prescription_processor
from rxscan.services.prescription_repository import PrescriptionRepository, get_prescription_repository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Prescriptions"])


def _error(status_code: int, message: str, code: Optional[str] = None) -> JSONResponse:
    content = {"error": message}
    if code:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)


@router.post(
    "/process-prescription",
    response_model=ProcessPrescriptionResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def process_prescription(
    image: Optional[UploadFile] = File(None, description="Prescription image or PDF"),
    patient_id: Optional[str] = Form(None, alias="patientId", description="Patient to file the record under"),
    processor: PrescriptionProcessor = Depends(get_prescription_processor),
):
    """
    Analyze an uploaded prescription

    Accepts: images (PNG, JPG, TIFF, BMP, WEBP) and PDF

    Returns the recognized text and the structured analysis:
    doctor name, diagnosis, medicines with dosage/frequency/duration, date.
    """
    if image is None or not image.filename:
        return _error(400, "No image or PDF file provided")

    content = await image.read()
    if not content:
        return _error(400, "No image or PDF file provided")
    if len(content) > settings.MAX_UPLOAD_SIZE:
        return _error(413, f"File exceeds {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB limit")

    try:
        document = RawDocument.from_upload(content, image.content_type, image.filename)
    except UnsupportedMediaTypeError as e:
        return _error(400, str(e))

    try:
        result = await run_in_threadpool(processor.process, document, patient_id)
    except DocumentExtractionError as e:
        logger.error(f"[OCR] {e.code}: {e.detail}")
        return _error(500, e.message, e.code)
    except Exception as e:
        logger.exception("[OCR] Fatal Error")
        return _error(500, str(e))

    return result.to_dict()


@router.get("/prescriptions", response_model=List[StoredPrescriptionOut])
async def list_prescriptions(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    repository: PrescriptionRepository = Depends(get_prescription_repository),
):
    """Stored prescriptions, newest first"""
    return await run_in_threadpool(repository.list_prescriptions, patient_id)


@router.get("/prescriptions/{prescription_id}", response_model=StoredPrescriptionOut)
async def get_prescription(
    prescription_id: str,
    repository: PrescriptionRepository = Depends(get_prescription_repository),
):
    prescription = await run_in_threadpool(repository.get_prescription, prescription_id)
    if prescription is None:
        raise HTTPException(status_code=404, detail="Prescription not found")
    return prescription


@router.delete("/prescriptions/{prescription_id}")
async def delete_prescription(
    prescription_id: str,
    repository: PrescriptionRepository = Depends(get_prescription_repository),
):
    """Delete a stored prescription together with its upload and report"""
    deleted = await run_in_threadpool(repository.delete_prescription, prescription_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Prescription not found")
    return {"message": "Prescription deleted successfully"}
