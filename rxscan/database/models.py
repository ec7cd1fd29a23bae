"""
Database Models
SQLAlchemy models for stored prescription analyses
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Prescription(Base):
    """Prescription extracted from an uploaded scan or PDF"""
    __tablename__ = 'prescriptions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(36), unique=True, nullable=False, index=True)
    patient_id = Column(String(64), nullable=False)

    doctor_name = Column(String(200))
    diagnosis = Column(Text)

    # Source artifacts
    image_url = Column(String(500))
    pdf_url = Column(String(500))
    extracted_text = Column(Text)
    analysis = Column(JSON)

    date = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    medicines = relationship(
        "PrescriptionMedicine",
        back_populates="prescription",
        cascade="all, delete-orphan",
        order_by="PrescriptionMedicine.position",
    )

    __table_args__ = (
        Index('idx_prescription_patient', 'patient_id'),
    )

    def __repr__(self):
        return f"<Prescription {self.uid}>"

    def to_dict(self):
        return {
            "id": self.uid,
            "patientId": self.patient_id,
            "doctorName": self.doctor_name,
            "diagnosis": self.diagnosis,
            "imageUrl": self.image_url,
            "pdfUrl": self.pdf_url,
            "extractedText": self.extracted_text,
            "medicines": [m.to_dict() for m in self.medicines],
            "date": self.date.isoformat() if self.date else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class PrescriptionMedicine(Base):
    """One medicine line of a stored prescription"""
    __tablename__ = 'prescription_medicines'

    id = Column(Integer, primary_key=True, autoincrement=True)
    prescription_id = Column(Integer, ForeignKey('prescriptions.id'), nullable=False)
    position = Column(Integer, default=0)

    name = Column(String(200), nullable=False)
    dosage = Column(String(100))
    frequency = Column(String(50))
    duration = Column(String(100))
    original_line = Column(Text)

    prescription = relationship("Prescription", back_populates="medicines")

    def to_dict(self):
        return {
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "duration": self.duration,
        }
