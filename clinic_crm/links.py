"""
WhatsApp deep links announcing a consultation's video link.

Building a link is pure; opening it is up to the caller (browser, window).
"""

import re
from datetime import datetime
from urllib.parse import quote
from zoneinfo import ZoneInfo

from . import config
from .errors import NoContact
from .schemas import ConsultationOut, PatientOut

_WHITESPACE = re.compile(r"\s+")


def normalize_contact(contact: str | None) -> str:
    """'+91 98765 43210' -> '919876543210'"""
    digits = _WHITESPACE.sub("", contact or "")
    if digits.startswith("+"):
        digits = digits[1:]
    return digits


def format_local(value: datetime, tz_name: str | None = None) -> str:
    tz_name = config.DISPLAY_TIMEZONE if tz_name is None else tz_name
    # naive timestamps were entered as local wall-clock time
    if tz_name and value.tzinfo is not None:
        value = value.astimezone(ZoneInfo(tz_name))
    return value.strftime("%d/%m/%Y, %I:%M:%S ") + value.strftime("%p").lower()


def build_message(consultation: ConsultationOut, patient: PatientOut) -> str:
    msg = f"Hello {patient.name or ''}, your video consultation link: {consultation.video_url}"
    if consultation.scheduled_at is not None:
        msg += f" at {format_local(consultation.scheduled_at)}"
    return msg


def build(consultation: ConsultationOut, patient: PatientOut, phone: str | None = None) -> str:
    """
    Return ``https://wa.me/<digits>?text=<message>`` for the patient.

    ``phone`` overrides the patient's stored contact unless it has no digits.
    Raises NoContact when neither yields digits.
    """
    digits = normalize_contact(phone) or normalize_contact(patient.contact)
    if not digits:
        raise NoContact()
    text = quote(build_message(consultation, patient), safe="")
    return f"{config.WHATSAPP_BASE_URL}/{digits}?text={text}"
