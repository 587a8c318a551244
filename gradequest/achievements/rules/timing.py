from __future__ import annotations

from gradequest.achievements.descriptors import SubmissionTiming
from gradequest.achievements.interface import AchievementRule, RuleOutcome
from gradequest.achievements.registry import registry
from gradequest.achievements.snapshot import WeeklySnapshot


class BaseSubmissionTimingRule(AchievementRule):
    title: str = ''
    hours_early: float = 0.0  # 0 means on or before the due time
    percent: float = 100.0

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        return SubmissionTiming(self.hours_early, self.percent).evaluate(snapshot)


class EarlyBird(BaseSubmissionTimingRule):
    title = 'Early Bird'
    hours_early = 24.0
    percent = 80.0


class NeverLate(BaseSubmissionTimingRule):
    title = 'Never Late'
    hours_early = 0.0
    percent = 100.0


registry.register(EarlyBird())
registry.register(NeverLate())
