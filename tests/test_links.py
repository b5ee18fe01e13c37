from datetime import datetime, timezone
from urllib.parse import parse_qs, urlsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from clinic_crm import config, links
from clinic_crm.errors import NoContact
from clinic_crm.schemas import ConsultationOut, PatientOut


@pytest.fixture(autouse=True)
def local_display(monkeypatch):
    monkeypatch.setattr(config, "DISPLAY_TIMEZONE", "")


def _c(when=None, url="https://v/x"):
    return ConsultationOut(id=1, patient_id=7, scheduled_at=when, video_url=url, created_by="meera@clinic.in")


def _p(contact="+91 98765 43210", name="Asha"):
    return PatientOut(id=7, name=name, contact=contact, created_by="meera@clinic.in")


def _split(link):
    parts = urlsplit(link)
    return parts.path.lstrip("/"), parse_qs(parts.query)["text"][0]


class TestNormalizeContact:
    def test_strips_spaces_and_plus(self):
        assert links.normalize_contact("+91 98765 43210") == "919876543210"

    def test_only_one_leading_plus(self):
        assert links.normalize_contact("++91") == "+91"

    def test_tabs_and_newlines(self):
        assert links.normalize_contact(" 98\t765\n43210 ") == "9876543210"

    def test_absent(self):
        assert links.normalize_contact(None) == ""
        assert links.normalize_contact("") == ""


class TestBuild:
    def test_unscheduled_link(self):
        link = links.build(_c(), _p())
        assert link.startswith("https://wa.me/919876543210?text=")
        digits, text = _split(link)
        assert digits == "919876543210"
        assert text.startswith("Hello Asha,")
        assert "https://v/x" in text
        assert " at " not in text

    def test_message_is_one_encoded_parameter(self):
        link = links.build(_c(url="https://meet.jit.si/a?b=1&c=2"), _p())
        query = urlsplit(link).query
        assert query.count("&") == 0
        assert " " not in link
        assert _split(link)[1].endswith("https://meet.jit.si/a?b=1&c=2")

    def test_scheduled_link_appends_time(self):
        link = links.build(_c(datetime(2026, 3, 5, 14, 30)), _p())
        text = _split(link)[1]
        assert text == "Hello Asha, your video consultation link: https://v/x at 05/03/2026, 02:30:00 pm"

    def test_missing_name(self):
        text = _split(links.build(_c(), _p(name="")))[1]
        assert text.startswith("Hello ,")

    def test_phone_override(self):
        digits, _ = _split(links.build(_c(), _p(contact=""), phone="+44 20 7946 0000"))
        assert digits == "442079460000"

    @pytest.mark.parametrize("phone", ["", " ", "+", None])
    def test_blank_override_falls_back_to_contact(self, phone):
        digits, _ = _split(links.build(_c(), _p(), phone=phone))
        assert digits == "919876543210"

    @pytest.mark.parametrize("contact", ["", None, "  ", "+"])
    def test_no_contact(self, contact):
        with pytest.raises(NoContact):
            links.build(_c(), _p(contact=contact))


class TestFormatLocal:
    def test_naive_is_rendered_as_is(self):
        assert links.format_local(datetime(2026, 10, 16, 9, 5, 7)) == "16/10/2026, 09:05:07 am"

    def test_display_timezone(self):
        try:
            ZoneInfo("Asia/Kolkata")
        except ZoneInfoNotFoundError:
            pytest.skip("no tz database")
        when = datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc)
        assert links.format_local(when, "Asia/Kolkata") == "16/10/2026, 02:30:00 pm"
