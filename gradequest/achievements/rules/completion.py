from __future__ import annotations

from gradequest.achievements import metrics
from gradequest.achievements.descriptors import CompletionPercent
from gradequest.achievements.interface import AchievementRule, RuleOutcome
from gradequest.achievements.registry import registry
from gradequest.achievements.snapshot import WeeklySnapshot


class BaseCompletionRule(AchievementRule):
    '''Share of the week's activities marked completed.'''

    title: str = ''
    threshold: float = 0.0

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        return CompletionPercent(self.threshold).evaluate(snapshot)


class HighCompletion(BaseCompletionRule):
    title = 'High Completion'
    threshold = 90.0


class PerfectCompletion(BaseCompletionRule):
    title = 'Perfect Completion'
    threshold = 100.0


class AssignmentHeavy(AchievementRule):
    title = 'Assignment Heavy'
    required_count = 10

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        done = len(metrics.completed(snapshot.activities))
        return (
            done >= self.required_count,
            metrics.approach(done, self.required_count),
            {'completed': done, 'threshold': self.required_count},
        )


registry.register(HighCompletion())
registry.register(PerfectCompletion())
registry.register(AssignmentHeavy())
