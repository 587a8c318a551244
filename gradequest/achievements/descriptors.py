'''Structured rule descriptors, one dataclass per generic archetype.

Catalog entries carry one of these instead of relying on prose. Each
descriptor evaluates a snapshot to (unlocked, progress, diagnostics).
'''

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Literal, Optional

from gradequest.achievements import metrics
from gradequest.achievements.errors import ConfigurationError
from gradequest.achievements.interface import RuleDescriptor, RuleOutcome
from gradequest.achievements.snapshot import WeeklySnapshot

CountMetric = Literal['completed', 'graded', 'points']


@dataclass(frozen=True)
class GradeThreshold:
    value: float
    kind: ClassVar[str] = 'grade-threshold'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        scored = metrics.graded(snapshot.activities)
        if not scored:
            return False, 0.0, {'threshold': self.value, 'graded_count': 0}
        average = metrics.average_grade(scored)
        return (
            average >= self.value,
            metrics.approach(average, self.value),
            {
                'average_grade': round(average, 2),
                'threshold': self.value,
                'graded_count': len(scored),
            },
        )


@dataclass(frozen=True)
class CompletionPercent:
    value: float
    activity_type: Optional[str] = None
    kind: ClassVar[str] = 'completion-percentage'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        population = metrics.of_type(snapshot.activities, self.activity_type)
        done = metrics.completed(population)
        rate = metrics.percent(len(done), len(population))
        return (
            bool(population) and rate >= self.value,
            metrics.approach(rate, self.value),
            {
                'completion_rate': round(rate, 2),
                'threshold': self.value,
                'total': len(population),
                'completed': len(done),
            },
        )


@dataclass(frozen=True)
class SubmissionTiming:
    '''`percent` of submissions made at least `hours` before their due time.

    `hours == 0` means on or before the due time.
    '''

    hours: float
    percent: float
    kind: ClassVar[str] = 'submission-timing'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        subs = metrics.submissions(snapshot.activities)
        if not subs:
            return False, 0.0, {
                'hours_required': self.hours,
                'threshold': self.percent,
                'submissions': 0,
            }
        rate = metrics.early_submission_rate(subs, self.hours)
        return (
            rate >= self.percent,
            metrics.approach(rate, self.percent),
            {
                'early_rate': round(rate, 2),
                'hours_required': self.hours,
                'threshold': self.percent,
                'submissions': len(subs),
            },
        )


@dataclass(frozen=True)
class CourseCount:
    value: int
    kind: ClassVar[str] = 'course-count'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        courses = metrics.distinct_courses(metrics.completed(snapshot.activities))
        return (
            len(courses) >= self.value,
            metrics.approach(len(courses), self.value),
            {'unique_courses': len(courses), 'threshold': self.value},
        )


@dataclass(frozen=True)
class TypeVariety:
    value: int
    kind: ClassVar[str] = 'type-variety'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        types = metrics.distinct_types(metrics.completed(snapshot.activities))
        return (
            len(types) >= self.value,
            metrics.approach(len(types), self.value),
            {'types': sorted(types), 'threshold': self.value},
        )


@dataclass(frozen=True)
class GradeImprovement:
    '''Current week's average beats the previous week's by `points`.'''

    points: float
    kind: ClassVar[str] = 'grade-improvement'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        return grade_improvement(snapshot, self.points)


@dataclass(frozen=True)
class ConsecutiveWeeks:
    '''`rule` holds for the current week and the `weeks - 1` weeks before it.'''

    weeks: int
    rule: RuleDescriptor
    kind: ClassVar[str] = 'consecutive-weeks'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        if self.weeks > 1 and snapshot.previous_week is None:
            return False, 0.0, {
                'weeks_required': self.weeks,
                'insufficient_history': True,
            }
        streak = 0
        for week in snapshot.history():
            ok, _, _ = self.rule.evaluate(week)
            if not ok:
                break
            streak += 1
            if streak >= self.weeks:
                break
        return (
            streak >= self.weeks,
            metrics.approach(streak, self.weeks),
            {'streak': streak, 'weeks_required': self.weeks, 'rule': self.rule.kind},
        )


@dataclass(frozen=True)
class CountThreshold:
    '''Count or point total against a threshold.

    metric 'completed' counts completed activities, 'graded' counts graded
    activities at or above `min_grade`, 'points' sums earned scores.
    '''

    threshold: float
    metric: CountMetric = 'completed'
    min_grade: Optional[float] = None
    activity_type: Optional[str] = None
    kind: ClassVar[str] = 'count-threshold'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        activities = snapshot.activities
        if self.metric == 'points':
            value = metrics.total_points(metrics.of_type(activities, self.activity_type))
        elif self.metric == 'graded':
            value = metrics.high_grade_count(
                activities, self.min_grade or 0.0, self.activity_type
            )
        else:
            value = len(metrics.completed(activities, self.activity_type))
        return (
            value >= self.threshold,
            metrics.approach(value, self.threshold),
            {
                'metric': self.metric,
                'value': value,
                'threshold': self.threshold,
            },
        )


def grade_improvement(snapshot: WeeklySnapshot, points: float) -> RuleOutcome:
    '''Shared by the generic archetype and the "Grade Climber" family.'''
    previous = snapshot.previous_week
    if previous is None:
        return False, 0.0, {'threshold': points, 'insufficient_history': True}
    if not metrics.graded(snapshot.activities) or not metrics.graded(
        previous.activities
    ):
        return False, 0.0, {'threshold': points, 'insufficient_history': True}

    current_avg = metrics.average_grade(snapshot.activities)
    previous_avg = metrics.average_grade(previous.activities)
    # averages are derived percentages; drop float noise before comparing
    improvement = round(current_avg - previous_avg, 9)
    return (
        improvement > 0 and improvement >= points,
        metrics.approach(max(improvement, 0.0), points),
        {
            'improvement': round(improvement, 2),
            'threshold': points,
            'current_average': round(current_avg, 2),
            'previous_average': round(previous_avg, 2),
        },
    )


_KINDS: dict[str, type] = {
    cls.kind: cls
    for cls in (
        GradeThreshold,
        CompletionPercent,
        SubmissionTiming,
        CourseCount,
        TypeVariety,
        GradeImprovement,
        ConsecutiveWeeks,
        CountThreshold,
    )
}


def descriptor_from_dict(data: dict[str, Any]) -> RuleDescriptor:
    '''Build a descriptor from its JSON form, e.g. {"kind": "course-count", "value": 3}.'''
    params = dict(data)
    kind = params.pop('kind', None)
    cls = _KINDS.get(str(kind))
    if cls is None:
        raise ConfigurationError(f'Unknown rule kind: {kind!r}')
    if cls is ConsecutiveWeeks:
        inner = params.get('rule')
        if not isinstance(inner, dict):
            raise ConfigurationError('consecutive-weeks rule needs a nested "rule"')
        params['rule'] = descriptor_from_dict(inner)
    try:
        return cls(**params)
    except TypeError as e:
        raise ConfigurationError(f'Invalid parameters for {kind!r}: {e}') from e


def descriptor_to_dict(descriptor: RuleDescriptor) -> dict[str, Any]:
    data: dict[str, Any] = {'kind': descriptor.kind}
    if isinstance(descriptor, ConsecutiveWeeks):
        data['weeks'] = descriptor.weeks
        data['rule'] = descriptor_to_dict(descriptor.rule)
        return data
    data.update(asdict(descriptor))  # type: ignore[call-overload]
    return data
