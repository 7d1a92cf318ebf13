from types import SimpleNamespace

import pytest

from collegedesk.core.time_model import DayOfWeek
from collegedesk.services.conflict_service import (
    ConflictCandidate,
    ConflictService,
    ConflictType,
    has_assigned_room,
)


def make_entry(**overrides):
    entry = {
        "id": "s1",
        "day": DayOfWeek.MONDAY,
        "start_time": "09:00",
        "end_time": "10:00",
        "department_id": "cse",
        "class_section": "A",
        "subject_id": "sub-ds",
        "teacher_id": "t-rao",
        "room_id": "R101",
    }
    entry.update(overrides)
    return SimpleNamespace(**entry)


def make_candidate(**overrides):
    values = {
        "academic_year": "2025-2026",
        "semester": 3,
        "day": DayOfWeek.MONDAY,
        "start_time": "09:00",
        "end_time": "10:00",
        "department_id": "cse",
        "class_section": "B",
        "teacher_id": "t-iyer",
        "room_id": "R202",
    }
    values.update(overrides)
    return ConflictCandidate(**values)


@pytest.fixture
def service():
    return ConflictService(
        [make_entry()],
        subject_names={"sub-ds": "Data Structures"},
        teacher_names={"t-rao": "Dr. Rao"},
    )


def test_touching_intervals_never_conflict(service):
    candidate = make_candidate(
        start_time="10:00", end_time="11:00", teacher_id="t-rao", room_id="R101", class_section="A"
    )
    assert service.detect_conflicts(candidate).is_clear


def test_teacher_double_booking(service):
    report = service.detect_conflicts(make_candidate(teacher_id="t-rao", start_time="09:30", end_time="10:30"))
    assert report.types == [ConflictType.TEACHER]
    assert report.conflicts[0].message == "Teacher already assigned to A at this time"


def test_room_double_booking_names_subject_and_teacher(service):
    report = service.detect_conflicts(make_candidate(room_id="R101"))
    assert report.types == [ConflictType.ROOM]
    assert report.conflicts[0].message == "Room R101 already booked for Data Structures by Dr. Rao"


def test_class_double_booking(service):
    report = service.detect_conflicts(make_candidate(class_section="A"))
    assert report.types == [ConflictType.CLASS]
    assert report.conflicts[0].message == "Class already has Data Structures with Dr. Rao at this time"


def test_one_entry_can_raise_every_conflict_type(service):
    report = service.detect_conflicts(make_candidate(teacher_id="t-rao", room_id="R101", class_section="A"))
    assert report.types == [ConflictType.TEACHER, ConflictType.ROOM, ConflictType.CLASS]
    assert all(item.conflicting_entry.id == "s1" for item in report)
    assert len(report) == 3


@pytest.mark.parametrize("room", ["TBA", "tba", "", "   ", None])
def test_placeholder_rooms_are_ignored(room):
    service = ConflictService([make_entry(room_id="TBA")])
    assert service.detect_conflicts(make_candidate(room_id=room)).is_clear
    assert not has_assigned_room(room)


def test_missing_teacher_skips_teacher_check(service):
    assert service.detect_conflicts(make_candidate(teacher_id=None)).is_clear


def test_other_departments_share_section_names_without_clash(service):
    candidate = make_candidate(department_id="ece", class_section="A")
    assert service.detect_conflicts(candidate).is_clear


def test_detection_is_pure_and_repeatable(service):
    candidate = make_candidate(teacher_id="t-rao", room_id="R101", class_section="A")
    first = service.detect_conflicts(candidate)
    second = service.detect_conflicts(candidate)
    assert first.types == second.types
    assert [item.message for item in first] == [item.message for item in second]


def test_unknown_names_fall_back_to_placeholders():
    service = ConflictService([make_entry()])
    report = service.detect_conflicts(make_candidate(room_id="R101"))
    assert report.conflicts[0].message == "Room R101 already booked for a class by Unknown Teacher"
