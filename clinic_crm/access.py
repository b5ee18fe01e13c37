"""
Access scope: which patients and consultations an identity may see, and
which mutations it may perform.

Rules:
  - Sales sees every patient and every consultation (data-entry role).
  - A doctor sees only patients assigned to them, and only the
    consultations of those patients.
  - Sales creates patients, assigns doctors, schedules and shares.
  - A doctor schedules, shares and updates consultations only for their
    own patients.

The record service filters too, but any payload is re-filtered here so a
broader response never reaches a view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .schemas import ConsultationOut, Identity, PatientOut

logger = logging.getLogger("crm.access")


class Action(str, Enum):
    CREATE_PATIENT = "create_patient"
    ASSIGN_DOCTOR = "assign_doctor"
    SCHEDULE = "schedule"
    SHARE = "share"
    UPDATE_CONSULTATION = "update_consultation"


_SALES_ACTIONS = {Action.CREATE_PATIENT, Action.ASSIGN_DOCTOR, Action.SCHEDULE, Action.SHARE}
_DOCTOR_ACTIONS = {Action.SCHEDULE, Action.SHARE, Action.UPDATE_CONSULTATION}


@dataclass(frozen=True)
class Scope:
    patients: list[PatientOut]
    consultations: list[ConsultationOut]


def is_assigned(identity: Identity, patient: PatientOut) -> bool:
    return patient.assigned_doctor_email is not None and patient.assigned_doctor_email == identity.email


def can_view_patient(identity: Identity, patient: PatientOut) -> bool:
    if identity.role == "sales":
        return True
    return is_assigned(identity, patient)


def can_mutate(identity: Identity, action: Action | str, patient: PatientOut | None = None) -> bool:
    """
    Whether ``identity`` may perform ``action``.

    Patient-bound doctor actions need the target patient; without one a
    doctor is refused.
    """
    action = Action(action)
    if identity.role == "sales":
        return action in _SALES_ACTIONS
    if action not in _DOCTOR_ACTIONS:
        return False
    return patient is not None and is_assigned(identity, patient)


def scope(
    identity: Identity,
    patients: Iterable[PatientOut],
    consultations: Iterable[ConsultationOut],
) -> Scope:
    patients = list(patients)
    consultations = list(consultations)

    if identity.role == "sales":
        return Scope(patients=patients, consultations=consultations)

    visible_patients = [p for p in patients if is_assigned(identity, p)]
    visible_ids = {p.id for p in visible_patients}
    visible_consultations = [c for c in consultations if c.patient_id in visible_ids]

    dropped = (len(patients) - len(visible_patients)) + (len(consultations) - len(visible_consultations))
    if dropped:
        logger.debug("Filtered %d out-of-scope records for %s", dropped, identity.email)

    return Scope(patients=visible_patients, consultations=visible_consultations)
