from datetime import datetime, timedelta, timezone

import psycopg
import pytest

from gradequest.achievements.errors import DataFetchError
from gradequest.services import snapshot_provider
from gradequest.services.snapshot_provider import (
    PostgresSnapshotProvider,
    activity_from_row,
    course_from_row,
)
from tests.conftest import MONDAY, FakeDB, patched_dbmanager

MILESTONE = {
    'id': 17,
    'course_id': 3,
    'title': 'Lab report',
    'type': 'project',
    'score': 45,
    'possible_points': 50,
    'due_date': datetime(2025, 10, 15, 23, 59),
    'submitted_at': datetime(2025, 10, 15, 10, 0, tzinfo=timezone(timedelta(hours=-4))),
    'status': 'completed',
}


def test_activity_from_row_normalizes_values():
    activity = activity_from_row(MILESTONE)

    assert activity.id == '17'
    assert activity.course_id == '3'
    assert activity.type == 'project'
    assert activity.grade_percent == 90.0
    assert activity.due_at == datetime(2025, 10, 15, 23, 59, tzinfo=timezone.utc)
    assert activity.submitted_at == datetime(2025, 10, 15, 14, 0, tzinfo=timezone.utc)


def test_activity_from_row_defaults_unknown_values():
    activity = activity_from_row(
        {'id': 1, 'course_id': 2, 'type': 'lecture', 'status': 'skipped'}
    )
    assert activity.type == 'other'
    assert activity.status == 'upcoming'
    assert activity.score is None
    assert activity.due_at is None


def test_course_from_row():
    course = course_from_row({'id': 3, 'title': 'Biology', 'code': 'BIO101', 'grade': 88})
    assert (course.id, course.code, course.grade, course.progress_percent) == ('3', 'BIO101', 88.0, 0.0)


def test_get_weekly_snapshot(monkeypatch):
    db = FakeDB(
        fetchall_results=[
            [MILESTONE],
            [{'id': 3, 'title': 'Biology', 'code': 'BIO101'}],
            [{'score': 9, 'max_score': 10}],
        ],
        fetchone_results=[{'cnt': 2}, {'rank': 4}, {'rank': 7}],
    )
    end = MONDAY + timedelta(days=7) - timedelta(milliseconds=1)
    with patched_dbmanager(monkeypatch, snapshot_provider, db):
        snapshot = PostgresSnapshotProvider().get_weekly_snapshot('u1', MONDAY, end)

    assert snapshot.week_start == MONDAY
    assert [a.title for a in snapshot.activities] == ['Lab report']
    assert [c.code for c in snapshot.courses] == ['BIO101']
    assert snapshot.previous_week is None
    platform = snapshot.platform
    assert platform.bets_placed == 2
    assert (platform.leaderboard_rank, platform.previous_leaderboard_rank) == (4, 7)
    assert platform.ai_quiz_results[0].score == 9.0
    # Last query is the previous week's rank
    assert db.last_params == ('u1', MONDAY - timedelta(days=7))


def test_get_weekly_snapshot_without_platform_rows(monkeypatch):
    db = FakeDB()
    with patched_dbmanager(monkeypatch, snapshot_provider, db):
        snapshot = PostgresSnapshotProvider().get_weekly_snapshot('u1', MONDAY, MONDAY)

    assert snapshot.activities == ()
    assert snapshot.platform.bets_placed == 0
    assert snapshot.platform.leaderboard_rank is None


class FailingDB(FakeDB):
    def fetchall(self, query, params=None):
        raise psycopg.OperationalError('connection reset')


def test_database_errors_become_data_fetch_errors(monkeypatch):
    with patched_dbmanager(monkeypatch, snapshot_provider, FailingDB()):
        with pytest.raises(DataFetchError) as exc_info:
            PostgresSnapshotProvider().get_weekly_snapshot('u1', MONDAY, MONDAY)
    assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)
