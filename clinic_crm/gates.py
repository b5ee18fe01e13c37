"""Eligibility checks for printing and notifying."""

import logging

from .errors import ActionNotEligible
from .lifecycle import has_notes
from .links import normalize_contact
from .schemas import COMPLETED, ConsultationOut, PatientOut

logger = logging.getLogger("crm.gates")


def can_print(c: ConsultationOut) -> bool:
    return c.status == COMPLETED and has_notes(c.doctor_notes)


def can_notify(c: ConsultationOut, patient: PatientOut) -> bool:
    # status does not matter: the message announces the link, not completion
    return bool(normalize_contact(patient.contact))


def require_print(c: ConsultationOut):
    if not can_print(c):
        logger.debug("Print refused for consultation %s", c.id)
        raise ActionNotEligible("Only completed consultations with notes can be printed")


def require_notify(c: ConsultationOut, patient: PatientOut):
    if not can_notify(c, patient):
        logger.debug("Notify refused for consultation %s", c.id)
        raise ActionNotEligible("No phone number on file for this patient")
