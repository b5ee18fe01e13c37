import itertools
import random
from datetime import datetime, timedelta, timezone

from clinic_crm.schemas import ConsultationOut
from clinic_crm.selector import latest_for, latest_per_patient


def _c(cid, pid, when=None):
    return ConsultationOut(
        id=cid, patient_id=pid, scheduled_at=when,
        video_url=f"https://meet.jit.si/r{cid}", created_by="meera@clinic.in",
    )


BASE = datetime(2026, 10, 1, 9, 0)


def test_empty():
    assert latest_per_patient([]) == {}


def test_later_timestamp_wins():
    early, late = _c(1, 7, BASE), _c(2, 7, BASE + timedelta(days=1))
    assert latest_per_patient([late, early])[7].id == 2
    assert latest_per_patient([early, late])[7].id == 2


def test_higher_id_breaks_absent_tie():
    result = latest_per_patient([_c(3, 7), _c(5, 7)])
    assert result[7].id == 5
    result = latest_per_patient([_c(5, 7), _c(3, 7)])
    assert result[7].id == 5


def test_higher_id_breaks_equal_timestamps():
    assert latest_per_patient([_c(9, 7, BASE), _c(4, 7, BASE)])[7].id == 9


def test_scheduled_beats_unscheduled():
    # an absent time sorts below any real one, even with a larger id
    result = latest_per_patient([_c(2, 7, BASE), _c(50, 7)])
    assert result[7].id == 2


def test_one_entry_per_patient():
    result = latest_per_patient([_c(1, 7), _c(2, 8), _c(3, 7, BASE), _c(4, 9, BASE)])
    assert {pid: c.id for pid, c in result.items()} == {7: 3, 8: 2, 9: 4}


def test_mixed_naive_and_aware_timestamps():
    naive = _c(1, 7, datetime(2026, 10, 1, 10, 0))
    aware = _c(2, 7, datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc))
    assert latest_per_patient([aware, naive])[7].id == 1


def test_order_independent():
    items = [
        _c(1, 7), _c(2, 7, BASE), _c(3, 7, BASE), _c(4, 8),
        _c(5, 8, BASE - timedelta(hours=1)), _c(6, 7),
    ]
    expected = latest_per_patient(items)
    for perm in itertools.permutations(items):
        assert latest_per_patient(perm) == expected


def test_order_independent_random_shuffles():
    rng = random.Random(42)
    items = [
        _c(i, rng.randint(1, 5), BASE + timedelta(hours=rng.randint(0, 3)) if rng.random() > 0.3 else None)
        for i in range(1, 40)
    ]
    expected = latest_per_patient(items)
    for _ in range(50):
        rng.shuffle(items)
        assert latest_per_patient(items) == expected


def test_latest_for():
    items = [_c(1, 7), _c(2, 7, BASE), _c(3, 8, BASE + timedelta(days=3))]
    assert latest_for(7, items).id == 2
    assert latest_for(99, items) is None
