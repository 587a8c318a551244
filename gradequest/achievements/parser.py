'''Classify a free-text calculation method into a rule descriptor.

Catalog entries without a structured rule fall back to this. Matching is
keyword based and ordered: the first archetype whose keywords appear wins.
'''

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional

from gradequest.achievements.descriptors import (
    CompletionPercent,
    ConsecutiveWeeks,
    CountThreshold,
    CourseCount,
    GradeImprovement,
    GradeThreshold,
    SubmissionTiming,
    TypeVariety,
)
from gradequest.achievements.errors import UnrecognizedRuleError
from gradequest.achievements.interface import RuleDescriptor

_CONSECUTIVE_RE = re.compile(r'\s*for\s+(\d+)\s+consecutive\s+weeks?', re.IGNORECASE)
_PERCENT_RE = re.compile(r'(\d+(?:\.\d+)?)\s*%')
_AT_LEAST_PERCENT_RE = re.compile(r'>=\s*(\d+(?:\.\d+)?)\s*%')
_HOURS_RE = re.compile(r'(\d+)\+?\s*hours?', re.IGNORECASE)
# ">= 5" but not ">= 50%" or ">= 2.5"
_COUNT_RE = re.compile(r'>=\s*(\d+)(?!\d)(?!\.\d)(?!\s*%)')

_TYPE_WORDS = {
    'exam': 'exam',
    'project': 'project',
    'reading': 'reading',
}


def _first_float(pattern: re.Pattern[str], text: str) -> Optional[float]:
    match = pattern.search(text)
    return float(match.group(1)) if match else None


def _positive(value: Optional[float], title: str, text: str) -> float:
    if value is None or value <= 0:
        raise UnrecognizedRuleError(title, text)
    return value


def _activity_type(text: str) -> Optional[str]:
    for word, activity_type in _TYPE_WORDS.items():
        if word in text:
            return activity_type
    return None


def _parse(title: str, text: str) -> RuleDescriptor:
    lowered = text.lower()

    consecutive = _CONSECUTIVE_RE.search(text)
    if consecutive:
        weeks = int(consecutive.group(1))
        inner_text = _CONSECUTIVE_RE.sub('', text, count=1)
        return ConsecutiveWeeks(
            weeks=int(_positive(weeks, title, text)),
            rule=_parse(title, inner_text),
        )

    if 'improvement' in lowered or 'previous week' in lowered:
        # rankings and other week-over-week comparisons have no generic form
        if 'grade' not in lowered and 'average' not in lowered:
            raise UnrecognizedRuleError(title, text)
        points = _first_float(_PERCENT_RE, text)
        return GradeImprovement(points=_positive(points, title, text))

    if 'submission' in lowered:
        if 'none can be after' in lowered or 'none after' in lowered:
            return SubmissionTiming(hours=0, percent=100)
        hours = _first_float(_HOURS_RE, text)
        percent = _first_float(_PERCENT_RE, text)
        return SubmissionTiming(
            hours=hours if hours is not None else 0,
            percent=_positive(percent, title, text),
        )

    if 'completion' in lowered:
        value = _first_float(_PERCENT_RE, text)
        return CompletionPercent(value=_positive(value, title, text))

    if 'average grade' in lowered:
        value = _first_float(_AT_LEAST_PERCENT_RE, text)
        if value is None and 'must be 100%' in lowered:
            value = 100.0
        return GradeThreshold(value=_positive(value, title, text))

    if 'courses' in lowered:
        value = _first_float(_COUNT_RE, text)
        return CourseCount(value=int(_positive(value, title, text)))

    if 'types' in lowered:
        value = _first_float(_COUNT_RE, text)
        return TypeVariety(value=int(_positive(value, title, text)))

    if 'points' in lowered:
        value = _first_float(_COUNT_RE, text)
        return CountThreshold(
            threshold=_positive(value, title, text),
            metric='points',
            activity_type=_activity_type(lowered),
        )

    if 'assignments' in lowered or 'count' in lowered:
        value = _first_float(_COUNT_RE, text)
        min_grade = _first_float(_PERCENT_RE, text)
        activity_type = _activity_type(lowered)
        if min_grade is not None:
            return CountThreshold(
                threshold=_positive(value, title, text),
                metric='graded',
                min_grade=min_grade,
                activity_type=activity_type,
            )
        return CountThreshold(
            threshold=_positive(value, title, text),
            metric='completed',
            activity_type=activity_type,
        )

    raise UnrecognizedRuleError(title, text)


@lru_cache(maxsize=256)
def classify_rule(title: str, calculation_method: str) -> RuleDescriptor:
    '''Return the descriptor for a calculation method.

    Raises UnrecognizedRuleError when no archetype matches or the text has
    no usable threshold.
    '''
    return _parse(title, calculation_method.strip())
