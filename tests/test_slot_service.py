from datetime import date

import pytest

from services.slot_service import generate_time_slots, is_time_slot_taken, available_slots


def appointment(id, day="2026-10-20", time="09:00", status="scheduled"):
    return {"id": id, "date": day, "time": time, "status": status}


def test_default_grid_has_21_half_hour_slots():
    slots = generate_time_slots()

    assert len(slots) == 21
    assert slots[0] == "08:00"
    assert slots[1] == "08:30"
    assert slots[-1] == "18:00"


def test_grid_follows_configured_hours():
    assert generate_time_slots("07:00", "09:00", 60) == ["07:00", "08:00", "09:00"]
    assert generate_time_slots("10:00", "09:00") == []


def test_grid_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        generate_time_slots("08:00", "18:00", 0)


def test_slot_taken_by_other_active_appointments():
    appointments = [appointment("a"), appointment("b", status="confirmed")]

    assert is_time_slot_taken("2026-10-20", "09:00", appointments, exclude_appointment_id="a")
    assert is_time_slot_taken("2026-10-20", "09:00", appointments, exclude_appointment_id="b")
    assert is_time_slot_taken("2026-10-20", "09:00", appointments)


def test_cancelled_appointment_frees_slot():
    appointments = [appointment("a", status="cancelled")]

    assert not is_time_slot_taken("2026-10-20", "09:00", appointments)


def test_own_appointment_is_excluded_on_edit():
    appointments = [
        appointment("a"),
        appointment("b", status="cancelled"),
        appointment("c", status="cancelled"),
        appointment("d", time="09:30"),
    ]

    assert not is_time_slot_taken("2026-10-20", "09:00", appointments, exclude_appointment_id="a")


@pytest.mark.parametrize("empty_date", [None, ""])
def test_empty_date_never_conflicts(empty_date):
    assert not is_time_slot_taken(empty_date, "09:00", [appointment("a", day=None)])


def test_date_objects_and_iso_strings_match():
    appointments = [appointment("a", day=date(2026, 10, 20))]

    assert is_time_slot_taken("2026-10-20", "09:00", appointments)
    assert is_time_slot_taken(date(2026, 10, 20), "09:00", appointments)
    assert not is_time_slot_taken(date(2026, 10, 21), "09:00", appointments)


def test_completed_and_no_show_still_occupy_slot():
    assert is_time_slot_taken("2026-10-20", "09:00", [appointment("a", status="completed")])
    assert is_time_slot_taken("2026-10-20", "09:00", [appointment("a", status="no_show")])


def test_available_slots_flags_taken_times():
    slots = available_slots("2026-10-20", [appointment("a", time="08:30")], ["08:00", "08:30", "09:00"])

    assert slots == [
        {"time": "08:00", "taken": False},
        {"time": "08:30", "taken": True},
        {"time": "09:00", "taken": False},
    ]
