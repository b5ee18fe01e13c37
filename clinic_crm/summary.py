"""
Printable consultation summary, as handed to the doctor after completion.
"""

from datetime import datetime

from .gates import require_print
from .links import format_local
from .schemas import ConsultationOut, ConsultationSummary, PatientOut

BRAND = "PRAKVEDAA CRM"
TAGLINE = "Healing through seamless conversations - Prakvedaa"
MISSING = "—"

_ROWS = (
    ("Consultation ID", lambda s: f"#{s.consultation_id}"),
    ("Patient", lambda s: s.patient),
    ("Scheduled", lambda s: s.scheduled),
    ("Doctor", lambda s: s.doctor),
    ("Video Link", lambda s: s.video_url),
    ("Phone", lambda s: s.phone),
    ("Status", lambda s: s.status),
    ("Doctor Notes", lambda s: s.notes),
)


def build_summary(
    consultation: ConsultationOut,
    patient: PatientOut | None,
    doctor_email: str | None,
    printed_at: datetime | None = None,
) -> ConsultationSummary:
    require_print(consultation)
    when = consultation.scheduled_at
    return ConsultationSummary(
        consultation_id=consultation.id,
        patient=(patient.name if patient else None) or MISSING,
        scheduled=format_local(when) if when else MISSING,
        doctor=doctor_email or MISSING,
        video_url=consultation.video_url,
        phone=(patient.contact if patient else None) or MISSING,
        status=consultation.status,
        notes=consultation.doctor_notes.strip(),
        printed_at=format_local(printed_at or datetime.now().astimezone()),
    )


def render_text(summary: ConsultationSummary) -> str:
    width = max(len(label) for label, _ in _ROWS)
    lines = [BRAND, TAGLINE, ""]
    for label, value in _ROWS:
        text = value(summary)
        pad = " " * (width + 2)
        # keep multi-line notes aligned under the value column
        text = text.replace("\n", "\n" + pad)
        lines.append(f"{label.ljust(width)}  {text}")
    lines += ["", f"Printed on {summary.printed_at}"]
    return "\n".join(lines)
