from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="sales")  # sales | doctor
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    age = Column(Integer, nullable=True)
    contact = Column(String(50), nullable=True)
    notes = Column(String(255), nullable=True)
    created_by = Column(String(255), nullable=False)
    assigned_doctor_email = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)


class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    video_url = Column(String(255), nullable=False)
    scheduled_at = Column(DateTime, nullable=True)
    created_by = Column(String(255), nullable=False)
    status = Column(String(50), nullable=False, default="pending")   # pending | completed
    doctor_notes = Column(Text, nullable=True)       # doctor's final notes/prescription
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
