"""
Role dashboards: what each role's screen shows for a snapshot.

Sales gets one row per patient (assigned doctor + latest consultation).
Doctors get one row per consultation of their patients, with print and
WhatsApp eligibility. Both go through the access scope first.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from . import config, gates, links, selector, summary
from .access import scope
from .client import RecordServiceClient, Snapshot
from .errors import ActionNotEligible, InvalidRecord, ServiceError
from .schemas import ConsultationOut, Identity, PatientOut

logger = logging.getLogger("crm.dashboard")


@dataclass(frozen=True)
class SalesRow:
    patient: PatientOut
    latest: Optional[ConsultationOut]
    can_notify: bool
    whatsapp_link: Optional[str]

    @property
    def doctor_email(self) -> Optional[str]:
        return self.patient.assigned_doctor_email


@dataclass(frozen=True)
class DoctorRow:
    consultation: ConsultationOut
    patient: PatientOut
    can_print: bool
    can_notify: bool
    whatsapp_link: Optional[str]


def _link_or_none(c: ConsultationOut, p: PatientOut) -> Optional[str]:
    return links.build(c, p) if gates.can_notify(c, p) else None


def sales_view(identity: Identity, snapshot: Snapshot) -> list[SalesRow]:
    visible = scope(identity, snapshot.patients, snapshot.consultations)
    latest = selector.latest_per_patient(visible.consultations)
    rows = []
    for p in visible.patients:
        c = latest.get(p.id)
        notify = c is not None and gates.can_notify(c, p)
        rows.append(SalesRow(
            patient=p,
            latest=c,
            can_notify=notify,
            whatsapp_link=links.build(c, p) if notify else None,
        ))
    return rows


def doctor_view(identity: Identity, snapshot: Snapshot) -> list[DoctorRow]:
    visible = scope(identity, snapshot.patients, snapshot.consultations)
    by_id = {p.id: p for p in visible.patients}
    return [
        DoctorRow(
            consultation=c,
            patient=by_id[c.patient_id],
            can_print=gates.can_print(c),
            can_notify=gates.can_notify(c, by_id[c.patient_id]),
            whatsapp_link=_link_or_none(c, by_id[c.patient_id]),
        )
        for c in visible.consultations
    ]


_VIEWS: dict[str, Callable[[Identity, Snapshot], list]] = {
    "sales": sales_view,
    "doctor": doctor_view,
}


def build_view(identity: Identity, snapshot: Snapshot) -> list:
    return _VIEWS[identity.role](identity, snapshot)


class Dashboard:
    """Keeps the current rows for a session and re-derives them on refresh."""

    def __init__(self, session, client: RecordServiceClient | None = None):
        self.session = session
        self.client = client or session.client
        self.snapshot: Snapshot | None = None
        self.rows: list = []

    def refresh(self) -> list:
        identity = self.session.identity
        self.snapshot = self.client.fetch_snapshot(include_doctors=identity.role == "sales")
        self.rows = build_view(identity, self.snapshot)
        return self.rows

    def poll(self, interval: float | None = None, iterations: int | None = None,
             sleep: Callable[[float], None] = time.sleep):
        """
        Refresh every ``interval`` seconds. Failed refreshes keep the previous
        rows. Runs forever unless ``iterations`` is given.
        """
        interval = config.REFRESH_INTERVAL_SECONDS if interval is None else interval
        done = 0
        while iterations is None or done < iterations:
            try:
                self.refresh()
            except (ServiceError, InvalidRecord) as exc:
                logger.warning("Dashboard refresh failed: %s", exc.message)
            done += 1
            if iterations is None or done < iterations:
                sleep(interval)

    def _doctor_row(self, consultation_id: int) -> DoctorRow:
        for row in self.rows:
            if isinstance(row, DoctorRow) and row.consultation.id == consultation_id:
                return row
        raise ActionNotEligible(f"Consultation {consultation_id} is not on this dashboard")

    def print_summary(self, consultation_id: int) -> str:
        row = self._doctor_row(consultation_id)
        sheet = summary.build_summary(row.consultation, row.patient, self.session.identity.email)
        return summary.render_text(sheet)

    def notify_link(self, consultation_id: int) -> str:
        row = self._doctor_row(consultation_id)
        gates.require_notify(row.consultation, row.patient)
        return links.build(row.consultation, row.patient)
