from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Literal, Optional

from gradequest.achievements.descriptors import (
    CompletionPercent,
    ConsecutiveWeeks,
    CountThreshold,
    CourseCount,
    GradeImprovement,
    GradeThreshold,
    SubmissionTiming,
    TypeVariety,
    descriptor_from_dict,
)
from gradequest.achievements.errors import ConfigurationError
from gradequest.achievements.interface import RuleDescriptor
from gradequest.utils.constants import CATEGORY_WEIGHTS, TIER_POINTS, TIERS
from gradequest.utils.env import env_str

logger = logging.getLogger(__name__)

Difficulty = Literal['easy', 'medium', 'hard']
Category = Literal[
    'performance',
    'timing',
    'engagement',
    'variety',
    'improvement',
    'streak',
    'threshold',
]

CATEGORIES: tuple[str, ...] = tuple(CATEGORY_WEIGHTS)

CATEGORY_INFO: dict[str, dict[str, str]] = {
    'performance': {
        'name': 'Performance',
        'description': 'Based on grades and academic performance',
        'icon': '📊',
    },
    'timing': {
        'name': 'Timing',
        'description': 'Based on submission timing and punctuality',
        'icon': '⏰',
    },
    'engagement': {
        'name': 'Engagement',
        'description': 'Based on course participation and balance',
        'icon': '🌐',
    },
    'variety': {
        'name': 'Variety',
        'description': 'Based on assignment type diversity',
        'icon': '📝',
    },
    'improvement': {
        'name': 'Improvement',
        'description': 'Based on academic progress and growth',
        'icon': '📈',
    },
    'streak': {
        'name': 'Streak',
        'description': 'Based on consecutive performance',
        'icon': '🔥',
    },
    'threshold': {
        'name': 'Threshold',
        'description': 'Based on specific targets and milestones',
        'icon': '🎯',
    },
}

# Data field names understood by the snapshot provider
STATUS = 'activity.status'
SCORE = 'activity.score'
POSSIBLE = 'activity.possible_points'
SUBMITTED_AT = 'activity.submitted_at'
DUE_AT = 'activity.due_at'
ACTIVITY_TYPE = 'activity.type'
COURSE_ID = 'activity.course_id'
COURSES = 'courses'
PREVIOUS_WEEK = 'previous_week'
BETS = 'platform.bets'
LEADERBOARD = 'platform.leaderboard_rank'
AI_QUIZZES = 'platform.ai_quiz_results'


@dataclass(frozen=True)
class AchievementDefinition:
    title: str
    description: str
    difficulty: Difficulty
    category: Category
    points: int
    icon: str
    calculation_method: str
    required_data_fields: frozenset[str] = field(default_factory=frozenset)
    # Structured rule for generic entries; None means "specific rule or parse text"
    rule: Optional[RuleDescriptor] = None


def _entry(
    title: str,
    description: str,
    difficulty: Difficulty,
    category: Category,
    icon: str,
    calculation_method: str,
    fields: Iterable[str],
    rule: Optional[RuleDescriptor] = None,
) -> AchievementDefinition:
    return AchievementDefinition(
        title=title,
        description=description,
        difficulty=difficulty,
        category=category,
        points=TIER_POINTS[difficulty],
        icon=icon,
        calculation_method=calculation_method,
        required_data_fields=frozenset(fields),
        rule=rule,
    )


CATALOG: tuple[AchievementDefinition, ...] = (
    # Easy
    _entry(
        'Assignment Starter',
        'Complete 5 assignments from your classes',
        'easy', 'performance', '📚',
        'Count completed assignments in the week. Must be >= 5.',
        [STATUS],
        CountThreshold(5),
    ),
    _entry(
        'Test Ace',
        'Earn 90% or more on at least one exam',
        'easy', 'performance', '📊',
        'Count exam assignments with a grade >= 90%. Must be >= 1.',
        [ACTIVITY_TYPE, SCORE, POSSIBLE],
        CountThreshold(1, metric='graded', min_grade=90, activity_type='exam'),
    ),
    _entry(
        'Solid Week',
        'Keep an average of 80% or better this week',
        'easy', 'performance', '👍',
        'Calculate average grade for all assignments due in the week. Must be >= 80%.',
        [SCORE, POSSIBLE],
    ),
    _entry(
        'High Completion',
        'Complete 90% of the work due this week',
        'easy', 'threshold', '✅',
        'Completion rate of assignments due in the week. Must be >= 90%.',
        [STATUS],
    ),
    _entry(
        'Point Collector',
        'Earn 200 points across your assignments',
        'easy', 'threshold', '🪙',
        'Sum all assignment scores. Must earn >= 200 points.',
        [SCORE],
        CountThreshold(200, metric='points'),
    ),
    _entry(
        'Course Explorer',
        'Complete work in at least two courses',
        'easy', 'engagement', '🧭',
        'Count distinct courses with completed assignments. Must be >= 2 courses.',
        [STATUS, COURSE_ID],
        CourseCount(2),
    ),
    _entry(
        'Type Sampler',
        'Complete two different kinds of coursework',
        'easy', 'variety', '🎨',
        'Count distinct assignment types completed. Must be >= 2.',
        [STATUS, ACTIVITY_TYPE],
        TypeVariety(2),
    ),
    _entry(
        'Quick Turnaround',
        'Submit half of your work at least 12 hours early',
        'easy', 'timing', '⚡',
        'At least 50% of submissions must be made 12+ hours before the due date.',
        [SUBMITTED_AT, DUE_AT],
        SubmissionTiming(12, 50),
    ),
    _entry(
        'Risk Taker',
        'Gamble on a test score',
        'easy', 'engagement', '🎲',
        'Check if user has placed a bet on any assignment score.',
        [BETS],
    ),
    _entry(
        'Rank Climber',
        'Advance at least 1 place in your ranking',
        'easy', 'engagement', '📈',
        'Compare current week ranking to previous week. Must improve by at least 1 position.',
        [LEADERBOARD],
    ),
    # Medium
    _entry(
        'Assignment Master',
        'Complete an assignment, exam, project and reading',
        'medium', 'variety', '📝',
        'Count distinct core assignment types completed. Must cover all 4.',
        [STATUS, ACTIVITY_TYPE],
    ),
    _entry(
        'Early Bird',
        'Submit 80% of your work a day early',
        'medium', 'timing', '🚀',
        'At least 80% of submissions must be made 24+ hours before the due date.',
        [SUBMITTED_AT, DUE_AT],
    ),
    _entry(
        'Never Late',
        'Submit everything on time',
        'medium', 'timing', '⏰',
        'Check all submissions. None can be after due date.',
        [SUBMITTED_AT, DUE_AT],
    ),
    _entry(
        'Excellence Week',
        'Keep an average of 90% or better this week',
        'medium', 'performance', '⭐',
        'Calculate average grade for all assignments due in the week. Must be >= 90%.',
        [SCORE, POSSIBLE],
    ),
    _entry(
        'Strong Week',
        'Keep an average of 85% or better this week',
        'medium', 'performance', '💪',
        'Calculate average grade for all assignments due in the week. Must be >= 85%.',
        [SCORE, POSSIBLE],
        GradeThreshold(85),
    ),
    _entry(
        'Near Perfect',
        'Complete 95% of the work due this week',
        'medium', 'threshold', '🎯',
        'Completion rate of assignments due in the week. Must be >= 95%.',
        [STATUS],
        CompletionPercent(95),
    ),
    _entry(
        'Multi-Course Master',
        'Complete work in three or more courses',
        'medium', 'engagement', '🌐',
        'Count distinct courses with completed assignments. Must be >= 3 courses.',
        [STATUS, COURSE_ID],
    ),
    _entry(
        'Reading Champion',
        'Finish every reading due this week',
        'medium', 'variety', '📖',
        'Completion rate of reading assignments. Must be 100%.',
        [STATUS, ACTIVITY_TYPE],
    ),
    _entry(
        'Consistent Improver',
        'Raise your average by 5 points over last week',
        'medium', 'improvement', '📶',
        'Average grade improvement over the previous week. Must be >= 5%.',
        [SCORE, POSSIBLE, PREVIOUS_WEEK],
        GradeImprovement(5),
    ),
    _entry(
        'AI Quiz Champion',
        'Get 100% on an AI quiz',
        'medium', 'performance', '🤖',
        'Filter AI quiz results. At least one must have 100% grade.',
        [AI_QUIZZES],
    ),
    # Hard
    _entry(
        'Perfect Week',
        'Earn 100% on all graded assignments',
        'hard', 'performance', '💯',
        'Calculate average grade for all assignments due in the week. Must be 100%.',
        [SCORE, POSSIBLE],
    ),
    _entry(
        'A+ Week',
        'Keep an average of 95% or better this week',
        'hard', 'performance', '🅰️',
        'Calculate average grade for all assignments due in the week. Must be >= 95%.',
        [SCORE, POSSIBLE],
    ),
    _entry(
        'Perfect Completion',
        'Complete everything due this week',
        'hard', 'threshold', '🏁',
        'Completion rate of assignments due in the week. Must be 100%.',
        [STATUS],
    ),
    _entry(
        'Leaderboard Champion',
        'Get 1st place in your leaderboard',
        'hard', 'engagement', '🏆',
        'Check if user is ranked #1 in the leaderboard for the week.',
        [LEADERBOARD],
    ),
    _entry(
        'Course Balancer',
        'Have work due in every one of your courses',
        'hard', 'engagement', '⚖️',
        'Every enrolled course must have at least one assignment due in the week.',
        [COURSE_ID, COURSES],
    ),
    _entry(
        'Grade Climber',
        'Raise your average by 10 points over last week',
        'hard', 'improvement', '🧗',
        'Average grade improvement over the previous week. Must be >= 10%.',
        [SCORE, POSSIBLE, PREVIOUS_WEEK],
    ),
    _entry(
        'Perfect Streak',
        'Complete everything two weeks in a row',
        'hard', 'streak', '🔥',
        'Completion rate must be 100% for 2 consecutive weeks.',
        [STATUS, PREVIOUS_WEEK],
    ),
    _entry(
        'Excellence Streak',
        'Average 90% or better two weeks in a row',
        'hard', 'streak', '🌟',
        'Average grade must be >= 90% for 2 consecutive weeks.',
        [SCORE, POSSIBLE, PREVIOUS_WEEK],
        ConsecutiveWeeks(2, GradeThreshold(90)),
    ),
    _entry(
        '90% Club',
        'Score 90% or better on five assignments',
        'hard', 'threshold', '🎖️',
        'Count assignments with a grade >= 90%. Must be >= 5.',
        [SCORE, POSSIBLE],
    ),
    _entry(
        'Assignment Heavy',
        'Complete 10 assignments this week',
        'hard', 'threshold', '🏋️',
        'Count completed assignments in the week. Must be >= 10.',
        [STATUS],
    ),
)


def by_title(catalog: Iterable[AchievementDefinition] = CATALOG) -> dict[str, AchievementDefinition]:
    return {a.title: a for a in catalog}


def by_category(
    category: str, catalog: Iterable[AchievementDefinition] = CATALOG
) -> list[AchievementDefinition]:
    return [a for a in catalog if a.category == category]


def by_difficulty(
    difficulty: str, catalog: Iterable[AchievementDefinition] = CATALOG
) -> list[AchievementDefinition]:
    return [a for a in catalog if a.difficulty == difficulty]


def by_data_fields(
    fields: Iterable[str], catalog: Iterable[AchievementDefinition] = CATALOG
) -> list[AchievementDefinition]:
    '''Entries that need every one of `fields`.'''
    wanted = set(fields)
    return [a for a in catalog if wanted <= a.required_data_fields]


def all_required_data_fields(
    catalog: Iterable[AchievementDefinition] = CATALOG,
) -> list[str]:
    found: set[str] = set()
    for a in catalog:
        found |= a.required_data_fields
    return sorted(found)


def validate_catalog(catalog: Iterable[AchievementDefinition]) -> tuple[AchievementDefinition, ...]:
    '''Raise ConfigurationError unless the catalog is usable for selection.'''
    entries = tuple(catalog)
    dupes = [t for t, n in Counter(a.title for a in entries).items() if n > 1]
    if dupes:
        raise ConfigurationError(f'Duplicate achievement titles: {sorted(dupes)}')
    for a in entries:
        if a.difficulty not in TIERS:
            raise ConfigurationError(f'{a.title!r} has unknown difficulty {a.difficulty!r}')
        if a.category not in CATEGORIES:
            raise ConfigurationError(f'{a.title!r} has unknown category {a.category!r}')
        if a.points <= 0:
            raise ConfigurationError(f'{a.title!r} must be worth a positive number of points')
    for tier in TIERS:
        if not any(a.difficulty == tier for a in entries):
            raise ConfigurationError(f'Catalog has no {tier} achievements')
    return entries


def _definition_from_dict(data: dict[str, Any]) -> AchievementDefinition:
    try:
        difficulty = data['difficulty']
        rule = data.get('rule')
        return AchievementDefinition(
            title=data['title'],
            description=data.get('description', ''),
            difficulty=difficulty,
            category=data['category'],
            points=int(data.get('points') or TIER_POINTS.get(difficulty, 0)),
            icon=data.get('icon', '🏅'),
            calculation_method=data.get('calculation_method', ''),
            required_data_fields=frozenset(data.get('required_data_fields', ())),
            rule=descriptor_from_dict(rule) if rule else None,
        )
    except KeyError as e:
        raise ConfigurationError(f'Catalog entry missing field {e}: {data!r}') from e


def load_catalog(path: str | Path) -> tuple[AchievementDefinition, ...]:
    '''Load and validate a JSON list of achievement definitions.'''
    try:
        raw = json.loads(Path(path).read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f'Could not read achievement catalog {path}: {e}') from e
    if not isinstance(raw, list):
        raise ConfigurationError(f'Achievement catalog {path} must be a JSON list')
    catalog = validate_catalog(_definition_from_dict(item) for item in raw)
    logger.info(f'Loaded {len(catalog)} achievements from {path}')
    return catalog


def get_catalog(path: str | Path | None = None) -> tuple[AchievementDefinition, ...]:
    '''The catalog file at `path` or ACHIEVEMENT_CATALOG_PATH, else the built-in one.'''
    source = path or env_str('ACHIEVEMENT_CATALOG_PATH')
    if source:
        return load_catalog(source)
    return validate_catalog(CATALOG)
