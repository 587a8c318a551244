from __future__ import annotations

from gradequest.achievements import metrics
from gradequest.achievements.descriptors import GradeThreshold
from gradequest.achievements.interface import AchievementRule, RuleOutcome
from gradequest.achievements.registry import registry
from gradequest.achievements.snapshot import WeeklySnapshot


class BaseGradeThresholdRule(AchievementRule):
    '''Weekly average grade at or above `threshold` percent.'''

    title: str = ''
    threshold: float = 0.0

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        return GradeThreshold(self.threshold).evaluate(snapshot)


class SolidWeek(BaseGradeThresholdRule):
    title = 'Solid Week'
    threshold = 80.0


class ExcellenceWeek(BaseGradeThresholdRule):
    title = 'Excellence Week'
    threshold = 90.0


class APlusWeek(BaseGradeThresholdRule):
    title = 'A+ Week'
    threshold = 95.0


class PerfectWeek(BaseGradeThresholdRule):
    title = 'Perfect Week'
    threshold = 100.0


class NinetyPercentClub(AchievementRule):
    title = '90% Club'
    min_grade = 90.0
    required_count = 5

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        count = metrics.high_grade_count(snapshot.activities, self.min_grade)
        return (
            count >= self.required_count,
            metrics.approach(count, self.required_count),
            {'high_grades': count, 'threshold': self.required_count},
        )


registry.register(SolidWeek())
registry.register(ExcellenceWeek())
registry.register(APlusWeek())
registry.register(PerfectWeek())
registry.register(NinetyPercentClub())
