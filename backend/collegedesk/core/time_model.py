"""Days, wall-clock times and half-open intervals used by the scheduler.

Times travel as zero-padded ``HH:MM`` strings everywhere (database rows,
wire payloads, grid intervals). Zero padding makes lexical order equal to
chronological order, so stored strings can be compared directly.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"

    @property
    def label(self) -> str:
        return self.value.capitalize()


DAYS_OF_WEEK: tuple[DayOfWeek, ...] = tuple(DayOfWeek)
DAY_ORDER: dict[DayOfWeek, int] = {day: index for index, day in enumerate(DAYS_OF_WEEK)}


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    if total < 0 or total >= 24 * 60:
        raise ValueError("Minutes must fall within a single day")
    return f"{total // 60:02d}:{total % 60:02d}"


def normalize_time(value: str) -> str:
    """Accept ``H:MM`` as well as ``HH:MM`` and return the padded form."""
    raw = value.strip()
    if re.match(r"^\d:[0-5]\d$", raw):
        raw = f"0{raw}"
    parse_time_to_minutes(raw)
    return raw


@dataclass(frozen=True, order=True)
class TimeInterval:
    start: str
    end: str

    def __post_init__(self) -> None:
        if parse_time_to_minutes(self.end) <= parse_time_to_minutes(self.start):
            raise ValueError(f"Interval end {self.end} must be after start {self.start}")

    @property
    def label(self) -> str:
        return f"{self.start} - {self.end}"

    @property
    def minutes(self) -> int:
        return parse_time_to_minutes(self.end) - parse_time_to_minutes(self.start)

    def overlaps(self, other: "TimeInterval") -> bool:
        # Half-open: touching endpoints do not overlap.
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end


def intervals_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    return start1 < end2 and start2 < end1
