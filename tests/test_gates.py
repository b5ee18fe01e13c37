import pytest

from clinic_crm.errors import ActionNotEligible
from clinic_crm.gates import can_notify, can_print, require_notify, require_print
from clinic_crm.schemas import ConsultationOut, PatientOut


def _c(status="pending", notes=None):
    return ConsultationOut(
        id=3, patient_id=7, video_url="https://v/x", created_by="meera@clinic.in",
        status=status, doctor_notes=notes,
    )


def _p(contact):
    return PatientOut(id=7, name="Asha", contact=contact, created_by="meera@clinic.in")


class TestCanPrint:
    @pytest.mark.parametrize("status,notes,expected", [
        ("completed", "Take rest", True),
        ("completed", "  Take rest\n", True),
        ("completed", "", False),
        ("completed", "   \t\n", False),
        ("completed", None, False),
        ("pending", "Take rest", False),
        ("pending", None, False),
    ])
    def test_matrix(self, status, notes, expected):
        assert can_print(_c(status, notes)) is expected

    def test_require_print_refuses(self):
        with pytest.raises(ActionNotEligible):
            require_print(_c("pending", "Take rest"))
        require_print(_c("completed", "Take rest"))


class TestCanNotify:
    @pytest.mark.parametrize("contact,expected", [
        ("+91 98765 43210", True),
        ("9876543210", True),
        ("", False),
        (None, False),
        ("   ", False),
        ("+", False),
        (" + ", False),
    ])
    def test_contact(self, contact, expected):
        assert can_notify(_c(), _p(contact)) is expected

    def test_status_does_not_matter(self):
        assert can_notify(_c("completed", "done"), _p("98765")) is True
        assert can_notify(_c("pending"), _p("98765")) is True

    def test_require_notify_refuses(self):
        with pytest.raises(ActionNotEligible):
            require_notify(_c(), _p(""))
