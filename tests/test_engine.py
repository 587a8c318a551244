import random

import pytest

from gradequest.achievements.aggregator import Aggregator
from gradequest.achievements.descriptors import CountThreshold
from gradequest.achievements.engine import WeeklyAchievementEngine
from gradequest.achievements.errors import DataFetchError, PersistenceConflictError
from gradequest.achievements.selector import WeekSelector
from gradequest.achievements.stores import InMemorySelectionStore, InMemoryUnlockBridge
from tests.conftest import (
    MONDAY,
    FakeProvider,
    fixed_clock,
    make_activity,
    make_definition,
    make_snapshot,
)

# One entry per tier keeps the selection deterministic
CATALOG = (
    make_definition('One', 'easy', rule=CountThreshold(1)),
    make_definition('Five', 'medium', rule=CountThreshold(5)),
    make_definition('Hundred', 'hard', rule=CountThreshold(100, metric='points')),
)


class ConflictingBridge(InMemoryUnlockBridge):
    def record_unlock(self, user_id, achievement):
        raise PersistenceConflictError(achievement.title)


class BrokenBridge(InMemoryUnlockBridge):
    def record_unlock(self, user_id, achievement):
        raise RuntimeError('database down')


def make_engine(provider=None, bridge=None):
    provider = provider or FakeProvider(
        {MONDAY: make_snapshot([make_activity(id=str(i)) for i in range(4)])}
    )
    selector = WeekSelector(
        InMemorySelectionStore(), catalog=CATALOG, rng=random.Random(1), clock=fixed_clock()
    )
    aggregator = Aggregator(provider, catalog=CATALOG)
    return WeeklyAchievementEngine(
        selector, aggregator, bridge or InMemoryUnlockBridge(clock=fixed_clock())
    )


def test_weekly_state_evaluates_the_selection():
    engine = make_engine()
    state = engine.weekly_state('u1')

    assert [a.title for a in state.selection.achievements] == ['One', 'Five', 'Hundred']
    assert state.results['easy'].unlocked is True
    assert state.results['medium'].progress == 80.0
    assert state.results['hard'].state == 'locked'
    assert [a.title for a in state.new_unlocks] == ['One']
    assert state.points_earned == 30


def test_unlocks_are_only_new_once():
    engine = make_engine()
    engine.weekly_state('u1')
    again = engine.weekly_state('u1')

    assert again.new_unlocks == []
    assert again.results['easy'].unlocked is True
    assert engine.unlocked_this_week('u1') == 1
    assert engine.unlocked_this_week('u1', MONDAY.replace(day=27)) == 0


def test_dashboard_covers_whole_catalog():
    engine = make_engine()
    dashboard = engine.dashboard('u1')

    assert dashboard.statistics.total == 3
    assert dashboard.statistics.unlocked == 1
    assert [a.title for a in dashboard.new_unlocks] == ['One']


def test_conflicts_count_as_already_recorded():
    state = make_engine(bridge=ConflictingBridge()).weekly_state('u1')
    assert state.new_unlocks == []
    assert state.results['easy'].unlocked is True


def test_other_bridge_errors_propagate():
    with pytest.raises(RuntimeError):
        make_engine(bridge=BrokenBridge()).weekly_state('u1')


def test_fetch_errors_propagate():
    with pytest.raises(DataFetchError):
        make_engine(provider=FakeProvider(fail=True)).weekly_state('u1')
