import logging

import pytest

from gradequest.achievements.catalog import CATALOG
from gradequest.achievements.descriptors import CountThreshold
from gradequest.achievements.evaluator import EvaluationResult, RuleEvaluator, evaluator
from gradequest.achievements.interface import AchievementRule
from gradequest.achievements.registry import AchievementRegistry
from tests.conftest import graded, make_activity, make_definition, make_snapshot


class AlwaysUnlocked(AchievementRule):
    title = 'Custom'

    def evaluate(self, snapshot):
        return True, 10.0, {'why': 'always'}


class Exploding(AchievementRule):
    title = 'Custom'

    def evaluate(self, snapshot):
        raise ZeroDivisionError('boom')


def test_specific_rule_takes_priority_over_descriptor():
    rules = AchievementRegistry()
    rules.register(AlwaysUnlocked())
    result = RuleEvaluator(rules).evaluate(
        make_definition(rule=CountThreshold(99)), make_snapshot()
    )

    assert result.unlocked is True
    assert result.progress == 100.0
    assert result.diagnostics == {'why': 'always', 'source': 'specific'}


def test_descriptor_used_without_specific_rule():
    result = RuleEvaluator(AchievementRegistry()).evaluate(
        make_definition(rule=CountThreshold(4)), make_snapshot([make_activity()])
    )
    assert result.unlocked is False
    assert result.progress == 25.0
    assert result.state == 'in-progress'
    assert result.diagnostics['source'] == 'count-threshold'


def test_falls_back_to_parsing_the_text():
    result = RuleEvaluator(AchievementRegistry()).evaluate(
        make_definition(calculation_method='Average grade must be >= 80%.'),
        make_snapshot(graded(85)),
    )
    assert result.unlocked is True
    assert result.diagnostics['source'] == 'grade-threshold'


def test_unrecognized_rule_is_locked_and_logged(caplog):
    text = 'Be generally excellent.'
    with caplog.at_level(logging.WARNING, logger='gradequest.achievements.evaluator'):
        result = RuleEvaluator(AchievementRegistry()).evaluate(
            make_definition(title='Vague', calculation_method=text), make_snapshot(graded(100))
        )

    assert (result.unlocked, result.progress, result.state) == (False, 0.0, 'locked')
    assert result.diagnostics == {'unrecognized_rule': True, 'rule': text}
    assert 'Vague' in caplog.text


def test_rule_exception_becomes_error_diagnostic(caplog):
    rules = AchievementRegistry()
    rules.register(Exploding())
    with caplog.at_level(logging.ERROR, logger='gradequest.achievements.evaluator'):
        result = RuleEvaluator(rules).evaluate(make_definition(), make_snapshot())

    assert result.unlocked is False
    assert result.progress == 0.0
    assert result.diagnostics == {'error': 'ZeroDivisionError', 'source': 'specific'}
    assert 'Custom' in caplog.text


@pytest.mark.parametrize('raw, expected', [(-5, 0.0), (250, 100.0), (float('nan'), 0.0)])
def test_build_clamps_progress(raw, expected):
    result = EvaluationResult.build(make_definition(), False, raw)
    assert result.progress == expected


@pytest.mark.parametrize(
    'snapshot',
    [
        make_snapshot(),
        make_snapshot(graded(0, 100, 50)),
        make_snapshot([make_activity(id=str(i), status='upcoming') for i in range(3)]),
    ],
)
def test_whole_catalog_stays_in_bounds(snapshot):
    results = evaluator.evaluate_all(CATALOG, snapshot)
    assert len(results) == len(CATALOG)
    for r in results:
        assert 0.0 <= r.progress <= 100.0
        assert 'error' not in r.diagnostics, r.achievement.title
        if r.unlocked:
            assert r.progress == 100.0
