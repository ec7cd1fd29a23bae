"""
Prescription Repository - persistence of analyzed prescriptions
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from rxscan.database.connection import DatabaseManager, db_manager
from rxscan.database.models import Prescription, PrescriptionMedicine
from rxscan.models.prescription import PrescriptionAnalysis
from rxscan.services.storage_service import StorageService, storage_service

logger = logging.getLogger(__name__)


class PrescriptionRepository:
    """Repository for stored prescription analyses"""

    def __init__(self, manager: DatabaseManager = None, storage: StorageService = None):
        self.manager = manager or db_manager
        self.storage = storage or storage_service

    def save_prescription(
        self,
        analysis: PrescriptionAnalysis,
        raw_text: str,
        blob_url: str,
        patient_id: str
    ) -> str:
        """Store the analysis with its source text and upload; returns the record id"""
        uid = str(uuid.uuid4())
        with self.manager.session_scope() as session:
            prescription = Prescription(
                uid=uid,
                patient_id=str(patient_id),
                doctor_name=analysis.doctor_name,
                diagnosis=analysis.diagnosis,
                image_url=blob_url,
                extracted_text=raw_text,
                analysis=analysis.to_dict(),
                date=datetime.utcnow()
            )
            for position, medicine in enumerate(analysis.medicines):
                prescription.medicines.append(PrescriptionMedicine(
                    position=position,
                    name=medicine.name,
                    dosage=medicine.dosage,
                    frequency=medicine.frequency,
                    duration=medicine.duration,
                    original_line=medicine.original_line
                ))
            session.add(prescription)

        logger.info(f"Prescription saved with ID: {uid}")
        return uid

    def attach_report(self, uid: str, report_url: str) -> bool:
        with self.manager.session_scope() as session:
            prescription = self._find(session, uid)
            if prescription is None:
                return False
            prescription.pdf_url = report_url
            if prescription.analysis:
                prescription.analysis = {**prescription.analysis, "pdfUrl": report_url}
        return True

    def get_prescription(self, uid: str) -> Optional[Dict]:
        with self.manager.session_scope() as session:
            prescription = self._find(session, uid)
            return prescription.to_dict() if prescription else None

    def list_prescriptions(self, patient_id: Optional[str] = None, limit: int = 100) -> List[Dict]:
        """Stored prescriptions, newest first"""
        with self.manager.session_scope() as session:
            query = session.query(Prescription)
            if patient_id:
                query = query.filter(Prescription.patient_id == str(patient_id))
            prescriptions = query.order_by(desc(Prescription.date), desc(Prescription.id)).limit(limit).all()
            return [p.to_dict() for p in prescriptions]

    def delete_prescription(self, uid: str) -> bool:
        """Remove the record and its stored upload and report"""
        with self.manager.session_scope() as session:
            prescription = self._find(session, uid)
            if prescription is None:
                return False
            urls = [prescription.image_url, prescription.pdf_url]
            session.delete(prescription)

        for url in urls:
            if url:
                self.storage.delete_blob(url)
        logger.info(f"Prescription {uid} deleted")
        return True

    @staticmethod
    def _find(session: Session, uid: str) -> Optional[Prescription]:
        return session.query(Prescription).filter(Prescription.uid == uid).first()


prescription_repository = PrescriptionRepository()


def get_prescription_repository() -> PrescriptionRepository:
    """FastAPI dependency for the shared repository"""
    return prescription_repository
