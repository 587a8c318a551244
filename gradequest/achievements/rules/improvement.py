from __future__ import annotations

from gradequest.achievements.descriptors import grade_improvement
from gradequest.achievements.interface import AchievementRule, RuleOutcome
from gradequest.achievements.registry import registry
from gradequest.achievements.snapshot import WeeklySnapshot


class GradeClimber(AchievementRule):
    '''Average grade beats last week's by at least `points` percentage points.'''

    title = 'Grade Climber'
    points = 10.0

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        return grade_improvement(snapshot, self.points)


registry.register(GradeClimber())
