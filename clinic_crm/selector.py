"""
Latest consultation per patient.

Consultations are ordered by ``(scheduled_at, id)``; a missing
``scheduled_at`` sorts below every real timestamp. Because ids are unique
this is a strict total order, so the result does not depend on input order.
Views that show one consultation per patient must go through here.
"""

from datetime import datetime, timezone
from typing import Iterable

from .schemas import ConsultationOut

_UNSCHEDULED = datetime.min.replace(tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # naive timestamps are read as UTC so mixed inputs stay comparable
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sort_key(consultation: ConsultationOut) -> tuple[datetime, int]:
    when = consultation.scheduled_at
    return (_as_utc(when) if when is not None else _UNSCHEDULED, consultation.id)


def is_newer(candidate: ConsultationOut, current: ConsultationOut) -> bool:
    return sort_key(candidate) > sort_key(current)


def latest_per_patient(consultations: Iterable[ConsultationOut]) -> dict[int, ConsultationOut]:
    latest: dict[int, ConsultationOut] = {}
    for c in consultations:
        prev = latest.get(c.patient_id)
        if prev is None or is_newer(c, prev):
            latest[c.patient_id] = c
    return latest


def latest_for(patient_id: int, consultations: Iterable[ConsultationOut]) -> ConsultationOut | None:
    return latest_per_patient(c for c in consultations if c.patient_id == patient_id).get(patient_id)
