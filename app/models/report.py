from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship

from ..core.database import Base

class MedicalReport(Base):
    __tablename__ = "medical_reports"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    file_path = Column(String(500), nullable=False)
    original_name = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False)
    size_bytes = Column(Integer, nullable=False)
    analysis = Column(Text, nullable=False)
    uploaded_at = Column(DateTime, nullable=False)

    patient = relationship("Patient", back_populates="reports")

    def __repr__(self):
        return f"<MedicalReport(id={self.id}, patient_id={self.patient_id}, file='{self.original_name}')>"
