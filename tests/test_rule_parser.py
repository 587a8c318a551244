import pytest

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
from gradequest.achievements.parser import classify_rule


@pytest.mark.parametrize(
    'text, expected',
    [
        (
            'Calculate average grade for all assignments due in the week. Must be >= 85%.',
            GradeThreshold(85),
        ),
        (
            'Calculate average grade for all assignments due in the week. Must be 100%.',
            GradeThreshold(100),
        ),
        ('Completion rate of assignments due in the week. Must be >= 95%.', CompletionPercent(95)),
        (
            'At least 50% of submissions must be made 12+ hours before the due date.',
            SubmissionTiming(12, 50),
        ),
        ('Check all submissions. None can be after due date.', SubmissionTiming(0, 100)),
        (
            'Count distinct courses with completed assignments. Must be >= 3 courses.',
            CourseCount(3),
        ),
        ('Count distinct assignment types completed. Must be >= 2.', TypeVariety(2)),
        (
            'Average grade improvement over the previous week. Must be >= 5%.',
            GradeImprovement(5),
        ),
        (
            'Average grade must be >= 90% for 2 consecutive weeks.',
            ConsecutiveWeeks(2, GradeThreshold(90)),
        ),
        ('Count completed assignments in the week. Must be >= 15.', CountThreshold(15)),
        (
            'Count exam assignments with a grade >= 90%. Must be >= 1.',
            CountThreshold(1, metric='graded', min_grade=90, activity_type='exam'),
        ),
        ('Sum all assignment scores. Must earn >= 200 points.', CountThreshold(200, metric='points')),
    ],
)
def test_classify_rule_archetypes(text, expected):
    assert classify_rule('Some Title', text) == expected


def test_count_threshold_ignores_percentages():
    rule = classify_rule('x', 'Count assignments with a grade >= 90%. Must be >= 5.')
    assert isinstance(rule, CountThreshold)
    assert rule.threshold == 5
    assert rule.min_grade == 90


@pytest.mark.parametrize(
    'text',
    [
        'Be awesome this week.',
        'Check if user has placed a bet on any assignment score.',
        'Calculate average grade for all assignments due in the week.',
        'Count completed assignments in the week. Must be >= 0.',
        'Compare current week ranking to previous week. Must improve by at least 1 position.',
        'Average grade improvement over the previous week. Must be >= 5 points.',
    ],
)
def test_unclassifiable_text_raises(text):
    with pytest.raises(UnrecognizedRuleError) as exc_info:
        classify_rule('Mystery', text)
    assert exc_info.value.title == 'Mystery'
    assert exc_info.value.rule_text == text
