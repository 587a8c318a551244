from __future__ import annotations

from gradequest.achievements import metrics
from gradequest.achievements.descriptors import CourseCount
from gradequest.achievements.interface import AchievementRule, RuleOutcome
from gradequest.achievements.registry import registry
from gradequest.achievements.snapshot import WeeklySnapshot


class MultiCourseMaster(AchievementRule):
    title = 'Multi-Course Master'
    required_courses = 3

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        return CourseCount(self.required_courses).evaluate(snapshot)


class CourseBalancer(AchievementRule):
    '''Every enrolled course has at least one activity due this week.'''

    title = 'Course Balancer'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        enrolled = {c.id for c in snapshot.courses}
        if not enrolled:
            return False, 0.0, {'courses': 0, 'courses_with_activity': 0}
        active = enrolled & metrics.distinct_courses(snapshot.activities)
        return (
            active == enrolled,
            metrics.percent(len(active), len(enrolled)),
            {'courses': len(enrolled), 'courses_with_activity': len(active)},
        )


registry.register(MultiCourseMaster())
registry.register(CourseBalancer())
