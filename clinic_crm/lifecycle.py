"""
Consultation lifecycle.

    pending --(notes present)--> completed

``pending -> pending`` (notes only) is always allowed. ``completed`` is
terminal: it is never reverted, and it never pairs with empty notes.
"""

import logging

from .errors import PreconditionFailed
from .schemas import COMPLETED, PENDING, ConsultationOut

logger = logging.getLogger("crm.lifecycle")

STATUSES = (PENDING, COMPLETED)

_TRANSITIONS = {
    PENDING: {PENDING, COMPLETED},
    COMPLETED: {COMPLETED},
}


def has_notes(notes: str | None) -> bool:
    return bool(notes and notes.strip())


def merge_notes(stored: str | None, submitted: str | None) -> str | None:
    # blank submissions keep what the doctor already wrote
    if has_notes(submitted):
        return submitted.strip()
    return stored


def normalize_status(status: str | None, current: str) -> str:
    if status is None:
        return current
    status = status.strip().lower()
    if status not in STATUSES:
        raise PreconditionFailed(f"Unknown consultation status: {status!r}")
    return status


def check_transition(current: str, target: str, notes: str | None):
    if target not in _TRANSITIONS.get(current, set()):
        logger.debug("Refused transition %s -> %s", current, target)
        raise PreconditionFailed(f"A {current} consultation cannot be moved back to {target}")
    if target == COMPLETED and not has_notes(notes):
        raise PreconditionFailed("Add notes before completing the consultation")


def apply_update(
    consultation: ConsultationOut,
    notes: str | None = None,
    status: str | None = None,
) -> ConsultationOut:
    """
    Validate a doctor's update against the lifecycle and return the
    resulting consultation. The input is left untouched.

    Raises PreconditionFailed when the update would revert a completed
    consultation or complete one without notes.
    """
    target = normalize_status(status, consultation.status)
    merged = merge_notes(consultation.doctor_notes, notes)
    check_transition(consultation.status, target, merged)
    return consultation.model_copy(update={"status": target, "doctor_notes": merged})
