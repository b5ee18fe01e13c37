import logging
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Query, Body, status, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi.openapi.utils import get_openapi

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from datetime import timedelta

from jose import JWTError

from . import access, gates, lifecycle, links, selector, summary
from .config import ACCESS_TOKEN_EXPIRE_MINUTES, configure_logging
from .database import get_db, init_db
from .errors import ActionNotEligible, NoContact, PreconditionFailed
from .identity import strip_bearer
from .models import User, Patient, Consultation
from .schemas import (
    ROLES, Identity,
    RegisterUser, UserOut, LoginRequest, TokenResponse,
    PatientCreate, PatientOut, AssignPatientRequest,
    ScheduleConsultationRequest, ConsultationOut, ConsultationSummary,
    ConsultationShareRequest, ConsultationShareResponse, WhatsAppLinkResponse,
)
from .utils import (
    hash_password, verify_password, create_access_token, verify_access_token, new_video_url,
)

logger = logging.getLogger("crm.api")

# -------------------- App & CORS --------------------
app = FastAPI(
    title="Prakvedaa CRM API",
    version="0.2.0",
    swagger_ui_parameters={"persistAuthorization": True},  # keep token in UI
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------- Security --------------------
bearer_scheme = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials = Security(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not creds or not creds.scheme:
        raise HTTPException(status_code=401, detail="Missing or invalid token")

    token = strip_bearer(creds.credentials)
    try:
        payload = verify_access_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_email: str | None = payload.get("sub")
    if not user_email:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = db.query(User).filter(User.email == user_email).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user

def get_identity(current_user: User = Depends(get_current_user)) -> Identity:
    # role comes from the stored user, not from the token claims
    if current_user.role not in ROLES:
        raise HTTPException(status_code=403, detail="Role not permitted")
    return Identity(email=current_user.email, role=current_user.role)

# Show a single global Authorize button
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description="Prakvedaa CRM API with JWT Auth",
        routes=app.routes,
    )
    schema.setdefault("components", {})
    schema["components"]["securitySchemes"] = {
        "HTTPBearer": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
    }
    schema["security"] = [{"HTTPBearer": []}]
    app.openapi_schema = schema
    return app.openapi_schema

app.openapi = custom_openapi

# -------------------- Lifecycle --------------------
@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db()
    logger.info("Prakvedaa CRM API ready")

# -------------------- Helpers --------------------
def _load_consultation(db: Session, consultation_id: int) -> tuple[Consultation, Patient]:
    cons = db.query(Consultation).filter(Consultation.id == consultation_id).first()
    if not cons:
        raise HTTPException(status_code=404, detail="Consultation not found")

    patient = db.query(Patient).filter(Patient.id == cons.patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return cons, patient

def _require(identity: Identity, action: access.Action, patient: Patient | None = None, detail: str = "Not allowed"):
    target = PatientOut.model_validate(patient) if patient is not None else None
    if not access.can_mutate(identity, action, target):
        logger.info("Refused %s for %s (%s)", action.value, identity.email, identity.role)
        raise HTTPException(status_code=403, detail=detail)

def _scoped(identity: Identity, db: Session) -> access.Scope:
    patients = db.query(Patient)
    consultations = db.query(Consultation)
    if identity.role == "doctor":
        # narrow at the query; access.scope re-checks below
        patients = patients.filter(Patient.assigned_doctor_email == identity.email)
        consultations = (
            consultations.join(Patient, Patient.id == Consultation.patient_id)
            .filter(Patient.assigned_doctor_email == identity.email)
        )
    return access.scope(
        identity,
        [PatientOut.model_validate(p) for p in patients.order_by(Patient.id.desc()).all()],
        [ConsultationOut.model_validate(c) for c in consultations.order_by(Consultation.id.desc()).all()],
    )

# -------------------- Health --------------------
@app.get("/health")
def health():
    return {"status": "ok"}

# -------------------- Auth --------------------
@app.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterUser, db: Session = Depends(get_db)):
    user = User(
        name=payload.name,
        email=payload.email.lower().strip(),
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")
    return user

@app.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower().strip()).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid email or password")

    access_token = create_access_token(
        data={"sub": user.email, "role": user.role},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "authorization": f"Bearer {access_token}",
    }

# -------------------- Users --------------------
@app.get("/users", response_model=list[UserOut])
def list_users(
    role: Optional[str] = Query(None, description="Filter by role, e.g. 'doctor' or 'sales'"),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    return q.order_by(User.id.desc()).all()

# -------------------- Patients --------------------
@app.post("/patients/create", response_model=PatientOut)
def create_patient(
    payload: PatientCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    _require(identity, access.Action.CREATE_PATIENT, detail="Only sales role can create patients")

    patient = Patient(
        name=payload.name,
        age=payload.age,
        contact=payload.contact,
        notes=payload.notes,
        created_by=identity.email,
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient

@app.get("/patients/list", response_model=list[PatientOut])
def list_patients(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return _scoped(identity, db).patients

@app.post("/patients/assign", response_model=PatientOut)
def assign_patient(
    payload: AssignPatientRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    _require(identity, access.Action.ASSIGN_DOCTOR, detail="Only sales can assign patients")

    patient = db.query(Patient).filter(Patient.id == payload.patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")

    # an assignment must point at a doctor-role user
    doctor = db.query(User).filter(User.email == payload.doctor_email.lower().strip()).first()
    if not doctor or doctor.role != "doctor":
        raise HTTPException(status_code=400, detail="Doctor email invalid or not a doctor")

    patient.assigned_doctor_email = doctor.email
    db.commit()
    db.refresh(patient)
    return patient

# -------------------- Consultations --------------------
@app.post("/consultations/schedule", response_model=ConsultationOut)
def schedule_consultation(
    payload: ScheduleConsultationRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    patient = db.query(Patient).filter(Patient.id == payload.patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")

    _require(identity, access.Action.SCHEDULE, patient, detail="Doctor not assigned to this patient")

    consultation = Consultation(
        patient_id=patient.id,
        scheduled_at=payload.scheduled_at,
        video_url=new_video_url(),
        created_by=identity.email,
        status="pending",
    )
    db.add(consultation)
    db.commit()
    db.refresh(consultation)
    return consultation

@app.get("/consultations/list", response_model=list[ConsultationOut])
def list_consultations(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """
    Sales -> every consultation.
    Doctor -> consultations of patients assigned to that doctor only.
    """
    return _scoped(identity, db).consultations

@app.get("/consultations/latest", response_model=list[ConsultationOut])
def latest_consultations(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """One consultation per visible patient, newest first by patient id."""
    latest = selector.latest_per_patient(_scoped(identity, db).consultations)
    return [latest[pid] for pid in sorted(latest, reverse=True)]

@app.patch("/consultations/update", response_model=ConsultationOut)
def update_consultation(
    consultation_id: int,
    notes: Optional[str] = Body(None, embed=True),
    status: Optional[str] = Body(None, embed=True),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    consultation, patient = _load_consultation(db, consultation_id)
    _require(identity, access.Action.UPDATE_CONSULTATION, patient, detail="Not allowed to update this consultation")

    try:
        updated = lifecycle.apply_update(ConsultationOut.model_validate(consultation), notes=notes, status=status)
    except PreconditionFailed as exc:
        raise HTTPException(status_code=409, detail=exc.message)

    consultation.doctor_notes = updated.doctor_notes
    consultation.status = updated.status
    db.commit()
    db.refresh(consultation)
    logger.info("Consultation %s updated by %s -> %s", consultation.id, identity.email, consultation.status)
    return consultation

@app.get("/consultations/{consultation_id}/summary", response_model=ConsultationSummary)
def consultation_summary(
    consultation_id: int,
    as_text: bool = Query(False, description="Return the printable sheet as plain text"),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    consultation, patient = _load_consultation(db, consultation_id)
    patient_out = PatientOut.model_validate(patient)
    if not access.can_view_patient(identity, patient_out):
        raise HTTPException(status_code=403, detail="Not allowed to print this consultation")

    try:
        sheet = summary.build_summary(
            ConsultationOut.model_validate(consultation), patient_out, patient.assigned_doctor_email
        )
    except ActionNotEligible as exc:
        raise HTTPException(status_code=409, detail=exc.message)

    if as_text:
        return PlainTextResponse(summary.render_text(sheet))
    return sheet

# -------------------- Sharing (message + WhatsApp link) --------------------
@app.post("/consultations/share-message", response_model=ConsultationShareResponse)
def share_message(
    payload: ConsultationShareRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    cons, patient = _load_consultation(db, payload.consultation_id)
    _require(identity, access.Action.SHARE, patient, detail="Not allowed to share this consultation")

    when_str = links.format_local(cons.scheduled_at) if cons.scheduled_at else "Now"
    doc_str = patient.assigned_doctor_email or "TBD"

    msg = (
        f"Hello {patient.name}, your video consultation is scheduled.\n"
        f"Link: {cons.video_url}\n"
        f"Doctor: {doc_str}\n"
        f"Time: {when_str}\n"
        f"Sent by {identity.email}"
    )
    return ConsultationShareResponse(message=msg)

@app.post("/consultations/whatsapp-link", response_model=WhatsAppLinkResponse)
def whatsapp_link(
    payload: ConsultationShareRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    cons, patient = _load_consultation(db, payload.consultation_id)
    _require(identity, access.Action.SHARE, patient, detail="Not allowed to share this consultation")

    consultation_out = ConsultationOut.model_validate(cons)
    patient_out = PatientOut.model_validate(patient)
    override = links.normalize_contact(payload.phone_e164)
    try:
        if not override:
            gates.require_notify(consultation_out, patient_out)
        wa = links.build(consultation_out, patient_out, phone=override or None)
    except (ActionNotEligible, NoContact):
        raise HTTPException(status_code=400, detail="No phone provided and patient.contact empty")

    return WhatsAppLinkResponse(wa_link=wa)


# -------------------- Dev runner --------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("clinic_crm.main:app", host="0.0.0.0", port=8000, reload=True)
