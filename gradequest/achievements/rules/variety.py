from __future__ import annotations

from gradequest.achievements import metrics
from gradequest.achievements.interface import AchievementRule, RuleOutcome
from gradequest.achievements.registry import registry
from gradequest.achievements.snapshot import WeeklySnapshot
from gradequest.utils.constants import CORE_ACTIVITY_TYPES


class AssignmentMaster(AchievementRule):
    '''Completed at least one of each core activity type.'''

    title = 'Assignment Master'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        done = metrics.distinct_types(metrics.completed(snapshot.activities))
        covered = sorted(done & set(CORE_ACTIVITY_TYPES))
        return (
            len(covered) == len(CORE_ACTIVITY_TYPES),
            metrics.approach(len(covered), len(CORE_ACTIVITY_TYPES)),
            {
                'types': covered,
                'missing': [t for t in CORE_ACTIVITY_TYPES if t not in covered],
            },
        )


class ReadingChampion(AchievementRule):
    title = 'Reading Champion'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        readings = metrics.of_type(snapshot.activities, 'reading')
        done = metrics.completed(readings)
        rate = metrics.percent(len(done), len(readings))
        return (
            bool(readings) and len(done) == len(readings),
            rate,
            {'readings': len(readings), 'completed': len(done)},
        )


registry.register(AssignmentMaster())
registry.register(ReadingChampion())
