from __future__ import annotations

from gradequest.achievements import metrics
from gradequest.achievements.interface import AchievementRule, RuleOutcome
from gradequest.achievements.registry import registry
from gradequest.achievements.snapshot import WeeklySnapshot


class BaseStreakAchievementRule(AchievementRule):
    '''`length` consecutive weeks (this one included) at `completion_goal`.'''

    title: str = ''
    length: int = 2
    completion_goal: float = 100.0

    def week_met(self, week: WeeklySnapshot) -> bool:
        # an empty week never extends a streak
        return (
            bool(week.activities)
            and metrics.completion_rate(week.activities) >= self.completion_goal
        )

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        if self.length > 1 and snapshot.previous_week is None:
            return False, 0.0, {
                'streak': 0,
                'weeks_required': self.length,
                'insufficient_history': True,
            }
        streak = 0
        for week in snapshot.history():
            if not self.week_met(week):
                break
            streak += 1
            if streak >= self.length:
                break
        return (
            streak >= self.length,
            metrics.approach(streak, self.length),
            {'streak': streak, 'weeks_required': self.length},
        )


class PerfectStreak(BaseStreakAchievementRule):
    title = 'Perfect Streak'
    length = 2
    completion_goal = 100.0


registry.register(PerfectStreak())
