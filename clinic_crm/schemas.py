from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator
from typing import Any, Iterable, Literal, Optional, List
from datetime import datetime

from .errors import InvalidRecord


Role = Literal["sales", "doctor"]
Status = Literal["pending", "completed"]

ROLES = ("sales", "doctor")
PENDING = "pending"
COMPLETED = "completed"


class Identity(BaseModel):
    email: str
    role: Role

    class Config:
        frozen = True


class RegisterUser(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: Role = "sales"

class UserOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: Role

    class Config:
        from_attributes = True
        frozen = True

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    authorization: str  # "Bearer <jwt>", ready for the Authorization header

class PatientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    age: int | None = Field(None, ge=0, le=150)
    contact: str | None = None
    notes: str | None = None

    @field_validator("age", "contact", "notes", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        # form inputs post "" for untouched fields
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PatientOut(BaseModel):
    id: int
    name: str
    age: Optional[int] = None
    contact: Optional[str] = None
    notes: Optional[str] = None
    created_by: str
    assigned_doctor_email: Optional[EmailStr] = None

    class Config:
        from_attributes = True
        frozen = True

class AssignPatientRequest(BaseModel):
    patient_id: int
    doctor_email: EmailStr

class ScheduleConsultationRequest(BaseModel):
    patient_id: int
    scheduled_at: Optional[datetime] = None

    @field_validator("scheduled_at", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ConsultationOut(BaseModel):
    id: int
    patient_id: int
    scheduled_at: Optional[datetime] = None
    video_url: str
    created_by: str
    status: Status = PENDING
    doctor_notes: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if v is None:
            return PENDING
        if isinstance(v, str):
            return v.strip().lower()
        return v


class ConsultationShareRequest(BaseModel):
    consultation_id: int
    # overrides patient.contact for the deep link, e.g. "919876543210"
    phone_e164: Optional[str] = None

class ConsultationShareResponse(BaseModel):
    message: str

class WhatsAppLinkResponse(BaseModel):
    wa_link: str  # https://wa.me/<number>?text=<encoded>


class ConsultationSummary(BaseModel):
    consultation_id: int
    patient: str
    scheduled: str
    doctor: str
    video_url: str
    phone: str
    status: Status
    notes: str
    printed_at: str


# -------------------- Boundary parsing --------------------
def _parse_many(model, rows: Iterable[Any], kind: str) -> list:
    if not isinstance(rows, list):
        raise InvalidRecord(f"Expected a list of {kind} records")
    parsed = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            raise InvalidRecord(f"Invalid {kind} record: {exc.errors()[0]['msg']}") from exc
    return parsed


def parse_patients(rows) -> List[PatientOut]:
    return _parse_many(PatientOut, rows, "patient")


def parse_consultations(rows) -> List[ConsultationOut]:
    return _parse_many(ConsultationOut, rows, "consultation")


def parse_users(rows) -> List[UserOut]:
    return _parse_many(UserOut, rows, "user")
