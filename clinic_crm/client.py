"""
HTTP client for the record service.

Every payload is parsed into the strict record shapes before it is handed
on, so malformed rows never reach the core. Retries are left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

import requests

from . import config, lifecycle
from .errors import ServiceError
from .schemas import (
    ConsultationOut, PatientOut, UserOut,
    parse_consultations, parse_patients, parse_users,
)

logger = logging.getLogger("crm.client")


@dataclass(frozen=True)
class Snapshot:
    patients: list[PatientOut]
    consultations: list[ConsultationOut]
    doctors: list[UserOut] = field(default_factory=list)


class RecordServiceClient:
    """
    ``http`` is anything with the ``requests.Session`` call surface
    (``request``, ``headers``); a FastAPI ``TestClient`` works too, with an
    empty ``base_url``.
    """

    def __init__(self, base_url: str | None = None, http=None, timeout: float = 10):
        self.base_url = (config.API_URL if base_url is None else base_url).rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def set_auth(self, credential: str | None):
        if credential:
            self.http.headers["Authorization"] = (
                credential if credential.startswith("Bearer ") else f"Bearer {credential}"
            )
        else:
            self.http.headers.pop("Authorization", None)

    def _call(self, method: str, path: str, **kwargs):
        resp = self.http.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail")
            except ValueError:
                detail = resp.text
            logger.warning("%s %s -> %s: %s", method, path, resp.status_code, detail)
            raise ServiceError(str(detail), status_code=resp.status_code)
        return resp.json()

    # -------------------- Identity --------------------
    def login(self, email: str, password: str) -> str:
        data = self._call("POST", "/login", json={"email": email, "password": password})
        return data["authorization"]

    # -------------------- Reads --------------------
    def list_patients(self) -> list[PatientOut]:
        return parse_patients(self._call("GET", "/patients/list"))

    def list_consultations(self) -> list[ConsultationOut]:
        return parse_consultations(self._call("GET", "/consultations/list"))

    def list_doctors(self) -> list[UserOut]:
        return parse_users(self._call("GET", "/users", params={"role": "doctor"}))

    def fetch_snapshot(self, include_doctors: bool = False) -> Snapshot:
        return Snapshot(
            patients=self.list_patients(),
            consultations=self.list_consultations(),
            doctors=self.list_doctors() if include_doctors else [],
        )

    # -------------------- Writes --------------------
    def create_patient(self, name: str, age: int | None = None, contact: str | None = None,
                       notes: str | None = None) -> PatientOut:
        data = self._call("POST", "/patients/create",
                          json={"name": name, "age": age, "contact": contact, "notes": notes})
        return parse_patients([data])[0]

    def assign_doctor(self, patient_id: int, doctor_email: str) -> PatientOut:
        data = self._call("POST", "/patients/assign",
                          json={"patient_id": patient_id, "doctor_email": doctor_email})
        return parse_patients([data])[0]

    def schedule(self, patient_id: int, scheduled_at: datetime | None = None) -> ConsultationOut:
        data = self._call("POST", "/consultations/schedule", json={
            "patient_id": patient_id,
            "scheduled_at": scheduled_at.isoformat() if scheduled_at else None,
        })
        return parse_consultations([data])[0]

    def update_consultation(self, consultation: ConsultationOut, notes: str | None = None,
                            status: str | None = None) -> ConsultationOut:
        # refuse locally before anything is sent
        lifecycle.apply_update(consultation, notes=notes, status=status)
        body = {"notes": notes, "status": status}
        data = self._call("PATCH", "/consultations/update",
                          params={"consultation_id": consultation.id}, json=body)
        return parse_consultations([data])[0]
