'''Numeric helpers shared by the specific rules and the generic descriptors.

Every ratio here guards its denominator: an empty population yields 0,
never NaN or infinity.
'''

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

from gradequest.achievements.snapshot import ActivityRecord

HOUR_SECONDS = 3600


def percent(part: float, whole: float) -> float:
    if not whole or whole <= 0:
        return 0.0
    return part / whole * 100


def clamp_progress(value: float) -> float:
    if value is None or math.isnan(value):
        return 0.0
    if math.isinf(value):
        return 100.0 if value > 0 else 0.0
    return max(0.0, min(100.0, float(value)))


def approach(value: float, target: float) -> float:
    '''Progress towards `target` as a 0..100 value.'''
    if not target or target <= 0:
        return 0.0
    return clamp_progress(value / target * 100)


def graded(activities: Iterable[ActivityRecord]) -> list[ActivityRecord]:
    return [a for a in activities if a.is_graded]


def average_grade(activities: Iterable[ActivityRecord]) -> float:
    '''Points-weighted average grade in percent over graded activities.'''
    scored = graded(activities)
    total_score = sum(a.score for a in scored)  # type: ignore[misc]
    total_possible = sum(a.possible_points for a in scored)  # type: ignore[misc]
    return percent(total_score, total_possible)


def completed(
    activities: Iterable[ActivityRecord], activity_type: Optional[str] = None
) -> list[ActivityRecord]:
    return [
        a
        for a in activities
        if a.is_completed and (activity_type is None or a.type == activity_type)
    ]


def of_type(
    activities: Iterable[ActivityRecord], activity_type: Optional[str]
) -> list[ActivityRecord]:
    if activity_type is None:
        return list(activities)
    return [a for a in activities if a.type == activity_type]


def completion_rate(
    activities: Sequence[ActivityRecord], activity_type: Optional[str] = None
) -> float:
    population = of_type(activities, activity_type)
    return percent(len(completed(population)), len(population))


def submissions(activities: Iterable[ActivityRecord]) -> list[ActivityRecord]:
    '''Activities with both a submission time and a due time.'''
    return [a for a in activities if a.submitted_at and a.due_at]


def hours_early(activity: ActivityRecord) -> float:
    delta = activity.due_at - activity.submitted_at  # type: ignore[operator]
    return delta.total_seconds() / HOUR_SECONDS


def on_time(activity: ActivityRecord) -> bool:
    return activity.submitted_at <= activity.due_at  # type: ignore[operator]


def early_submission_rate(activities: Iterable[ActivityRecord], hours: float) -> float:
    '''Percent of submissions made at least `hours` before the due time.

    `hours == 0` means "on or before the due time".
    '''
    subs = submissions(activities)
    if hours <= 0:
        hits = sum(1 for a in subs if on_time(a))
    else:
        hits = sum(1 for a in subs if hours_early(a) >= hours)
    return percent(hits, len(subs))


def distinct_courses(activities: Iterable[ActivityRecord]) -> set[str]:
    return {a.course_id for a in activities}


def distinct_types(activities: Iterable[ActivityRecord]) -> set[str]:
    return {a.type for a in activities}


def high_grade_count(
    activities: Iterable[ActivityRecord],
    min_grade: float,
    activity_type: Optional[str] = None,
) -> int:
    return sum(
        1
        for a in of_type(graded(activities), activity_type)
        if (a.grade_percent or 0) >= min_grade
    )


def total_points(activities: Iterable[ActivityRecord]) -> float:
    return float(sum(a.score for a in activities if a.score is not None))
