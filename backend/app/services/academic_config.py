from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from app.models.timetable import DayOfWeek
from app.schemas.timetable import TIME_PATTERN, format_minutes, parse_time_to_minutes
from app.services.outcomes import ConfigInvalid, FieldViolation

MIN_PERIODS_PER_DAY = 1
MAX_PERIODS_PER_DAY = 10
MIN_PERIOD_DURATION = 30
MAX_PERIOD_DURATION = 120
MIN_BREAK_DURATION = 15
MAX_BREAK_DURATION = 60
EARLIEST_START_MINUTES = 6 * 60
LATEST_START_MINUTES = 10 * 60
MAX_SCHOOL_DAY_MINUTES = 12 * 60


@dataclass(frozen=True)
class AcademicConfig:
    """Weekly shape of a section's timetable."""

    periods_per_day: int
    period_duration_minutes: int
    break_after_period: int
    break_duration_minutes: int
    school_start_time: str
    working_days: tuple[DayOfWeek, ...]

    @property
    def break_period(self) -> int:
        return self.break_after_period

    def teaching_periods(self) -> list[int]:
        # The break period itself never holds an entry.
        return [period for period in range(1, self.periods_per_day + 1) if period != self.break_period]

    def period_times(self, period: int) -> tuple[str, str]:
        offset = (period - 1) * self.period_duration_minutes
        if period > self.break_after_period:
            offset += self.break_duration_minutes
        start = parse_time_to_minutes(self.school_start_time) + offset
        return format_minutes(start), format_minutes(start + self.period_duration_minutes)

    @property
    def total_daily_minutes(self) -> int:
        return self.periods_per_day * self.period_duration_minutes + self.break_duration_minutes


def validate_academic_config(
    *,
    periods_per_day: int,
    period_duration_minutes: int,
    break_after_period: int,
    break_duration_minutes: int,
    school_start_time: str,
    working_days: Iterable[str | DayOfWeek] | None,
) -> AcademicConfig | ConfigInvalid:
    """Check every field and report all violations together.

    Nothing short-circuits: a caller fixing a form sees each problem at once.
    """
    violations: list[FieldViolation] = []

    if not MIN_PERIODS_PER_DAY <= periods_per_day <= MAX_PERIODS_PER_DAY:
        violations.append(
            FieldViolation(
                "periods_per_day",
                f"Periods per day must be between {MIN_PERIODS_PER_DAY} and {MAX_PERIODS_PER_DAY}",
            )
        )
    if not MIN_PERIOD_DURATION <= period_duration_minutes <= MAX_PERIOD_DURATION:
        violations.append(
            FieldViolation(
                "period_duration_minutes",
                f"Period duration must be between {MIN_PERIOD_DURATION} and {MAX_PERIOD_DURATION} minutes",
            )
        )
    if break_after_period <= 0:
        violations.append(FieldViolation("break_after_period", "Break period must be greater than 0"))
    elif break_after_period > periods_per_day:
        violations.append(
            FieldViolation("break_after_period", "Break period must be within the total periods per day")
        )
    if not MIN_BREAK_DURATION <= break_duration_minutes <= MAX_BREAK_DURATION:
        violations.append(
            FieldViolation(
                "break_duration_minutes",
                f"Break duration must be between {MIN_BREAK_DURATION} and {MAX_BREAK_DURATION} minutes",
            )
        )

    start_text = (school_start_time or "").strip()
    if not TIME_PATTERN.match(start_text):
        violations.append(FieldViolation("school_start_time", "School start time must be in HH:MM 24-hour format"))
    elif not EARLIEST_START_MINUTES <= parse_time_to_minutes(start_text) <= LATEST_START_MINUTES:
        violations.append(FieldViolation("school_start_time", "School start time must be between 06:00 and 10:00"))

    days: list[DayOfWeek] = []
    raw_days = list(working_days or [])
    if not raw_days:
        violations.append(FieldViolation("working_days", "At least one working day must be specified"))
    else:
        unknown = []
        for raw in raw_days:
            day = DayOfWeek.parse(raw)
            if day is None:
                unknown.append(str(raw))
            else:
                days.append(day)
        if unknown:
            violations.append(FieldViolation("working_days", f"Invalid working day(s): {', '.join(unknown)}"))
        if DayOfWeek.sunday in days:
            violations.append(FieldViolation("working_days", "Sunday cannot be a working day"))
        if len(set(days)) != len(days):
            violations.append(FieldViolation("working_days", "Working days cannot contain duplicates"))

    if periods_per_day * period_duration_minutes + break_duration_minutes > MAX_SCHOOL_DAY_MINUTES:
        violations.append(
            FieldViolation("total_daily_minutes", "Total school hours exceed reasonable limits (max 12 hours per day)")
        )

    if violations:
        return ConfigInvalid(tuple(violations))
    return AcademicConfig(
        periods_per_day=periods_per_day,
        period_duration_minutes=period_duration_minutes,
        break_after_period=break_after_period,
        break_duration_minutes=break_duration_minutes,
        school_start_time=start_text,
        working_days=tuple(days),
    )
