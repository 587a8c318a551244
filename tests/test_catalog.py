import json
from dataclasses import replace

import pytest

from gradequest.achievements.catalog import (
    CATALOG,
    CATEGORIES,
    CATEGORY_INFO,
    SCORE,
    SUBMITTED_AT,
    all_required_data_fields,
    by_category,
    by_data_fields,
    by_difficulty,
    by_title,
    get_catalog,
    load_catalog,
    validate_catalog,
)
from gradequest.achievements.descriptors import CourseCount, GradeThreshold
from gradequest.achievements.errors import ConfigurationError
from gradequest.achievements.evaluator import evaluator
from gradequest.achievements.parser import classify_rule
from gradequest.utils.constants import TIER_POINTS, TIERS


def test_ten_entries_per_tier_with_unique_titles():
    for tier in TIERS:
        assert len(by_difficulty(tier)) == 10
    assert len(by_title()) == len(CATALOG) == 30


def test_points_follow_difficulty():
    for a in CATALOG:
        assert a.points == TIER_POINTS[a.difficulty]


def test_categories_are_known_and_described():
    assert set(CATEGORY_INFO) == set(CATEGORIES)
    for a in CATALOG:
        assert a.category in CATEGORIES


def test_every_entry_resolves_to_a_rule():
    for a in CATALOG:
        source, _ = evaluator.resolve(a)
        if a.rule is None:
            assert source == 'specific', a.title


def test_structured_rules_agree_with_their_text():
    for a in CATALOG:
        if a.rule is not None:
            assert classify_rule(a.title, a.calculation_method) == a.rule, a.title


def test_queries():
    assert {a.title for a in by_category('streak')} >= {'Perfect Streak', 'Excellence Streak'}
    timed = by_data_fields([SUBMITTED_AT])
    assert 'Early Bird' in {a.title for a in timed}
    assert all(SUBMITTED_AT in a.required_data_fields for a in timed)
    assert by_data_fields([SUBMITTED_AT, 'no.such.field']) == []

    fields = all_required_data_fields()
    assert fields == sorted(fields)
    assert SCORE in fields


@pytest.mark.parametrize(
    'change, message',
    [
        ({'difficulty': 'legendary'}, 'difficulty'),
        ({'category': 'luck'}, 'category'),
        ({'points': 0}, 'points'),
    ],
)
def test_validate_rejects_bad_entries(change, message):
    broken = replace(CATALOG[0], **change)
    with pytest.raises(ConfigurationError, match=message):
        validate_catalog((broken,) + CATALOG[1:])


def test_validate_rejects_duplicates_and_empty_tiers():
    with pytest.raises(ConfigurationError, match='Duplicate'):
        validate_catalog(CATALOG + (CATALOG[0],))
    with pytest.raises(ConfigurationError, match='hard'):
        validate_catalog(by_difficulty('easy') + by_difficulty('medium'))


def _write(tmp_path, entries):
    path = tmp_path / 'catalog.json'
    path.write_text(json.dumps(entries), encoding='utf-8')
    return path


ENTRIES = [
    {
        'title': 'Warm Up',
        'difficulty': 'easy',
        'category': 'engagement',
        'calculation_method': 'Must be >= 1 courses.',
        'rule': {'kind': 'course-count', 'value': 1},
    },
    {
        'title': 'Steady',
        'difficulty': 'medium',
        'category': 'performance',
        'calculation_method': 'Average grade must be >= 80%.',
        'required_data_fields': ['activity.score'],
    },
    {
        'title': 'Summit',
        'difficulty': 'hard',
        'category': 'performance',
        'points': 250,
        'calculation_method': 'Average grade must be >= 99%.',
        'rule': {'kind': 'grade-threshold', 'value': 99},
    },
]


def test_load_catalog_from_json(tmp_path):
    loaded = load_catalog(_write(tmp_path, ENTRIES))
    warm_up, steady, summit = loaded

    assert warm_up.rule == CourseCount(1)
    assert warm_up.points == TIER_POINTS['easy']
    assert steady.rule is None
    assert steady.required_data_fields == frozenset({'activity.score'})
    assert summit.points == 250
    assert summit.rule == GradeThreshold(99)


def test_load_catalog_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        load_catalog(tmp_path / 'missing.json')

    bad = tmp_path / 'bad.json'
    bad.write_text('{not json', encoding='utf-8')
    with pytest.raises(ConfigurationError):
        load_catalog(bad)

    with pytest.raises(ConfigurationError, match='list'):
        load_catalog(_write(tmp_path, {'title': 'x'}))

    with pytest.raises(ConfigurationError, match='missing field'):
        load_catalog(_write(tmp_path, [{'title': 'No Tier'}]))


def test_get_catalog_env_override(tmp_path, monkeypatch):
    monkeypatch.delenv('ACHIEVEMENT_CATALOG_PATH', raising=False)
    assert get_catalog() == CATALOG

    monkeypatch.setenv('ACHIEVEMENT_CATALOG_PATH', str(_write(tmp_path, ENTRIES)))
    assert [a.title for a in get_catalog()] == ['Warm Up', 'Steady', 'Summit']
