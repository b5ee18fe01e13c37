import pytest

from clinic_crm.errors import InvalidRecord
from clinic_crm.schemas import PatientCreate, parse_consultations, parse_patients

ROW = {
    "id": 3, "patient_id": 7, "scheduled_at": None, "video_url": "https://v/x",
    "created_by": "meera@clinic.in", "status": "pending", "doctor_notes": None,
}


def test_missing_status_defaults_to_pending():
    row = dict(ROW, status=None)
    assert parse_consultations([row])[0].status == "pending"


def test_status_is_normalized():
    assert parse_consultations([dict(ROW, status=" COMPLETED ")])[0].status == "completed"


@pytest.mark.parametrize("bad", [
    dict(ROW, status="archived"),
    {k: v for k, v in ROW.items() if k != "id"},
    dict(ROW, patient_id="seven"),
    dict(ROW, scheduled_at="tomorrow-ish"),
])
def test_invalid_consultations_are_rejected(bad):
    with pytest.raises(InvalidRecord):
        parse_consultations([ROW, bad])


def test_payload_must_be_a_list():
    with pytest.raises(InvalidRecord):
        parse_patients({"id": 1})


def test_assigned_doctor_must_be_an_email():
    with pytest.raises(InvalidRecord):
        parse_patients([{"id": 1, "name": "Asha", "created_by": "x", "assigned_doctor_email": "not-an-email"}])


def test_optional_patient_fields_are_absent_not_errors():
    patient = parse_patients([{"id": 1, "name": "Asha", "created_by": "meera@clinic.in"}])[0]
    assert patient.contact is None
    assert patient.assigned_doctor_email is None


def test_patient_create_blank_fields():
    form = PatientCreate(name="Asha", age="", contact=" ", notes="")
    assert (form.age, form.contact, form.notes) == (None, None, None)
