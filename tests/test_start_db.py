from gradequest.database import start_db
from tests.conftest import FakeDB

MIGRATION = '20251020_090000_index_milestones_due_date.py'


def inserted_migrations(db):
    return [
        params[0]
        for query, params in db.executed
        if query.startswith('INSERT INTO migrations')
    ]


def test_run_creates_schema_and_applies_pending_migrations():
    db = FakeDB(fetchall_results=[[{'table_name': 'courses'}], []])
    start_db.run(db)

    created = [q for q, _ in db.executed if 'CREATE TABLE IF NOT EXISTS' in q]
    for table in ('weekly_selections', 'used_achievements', 'user_achievements', 'migrations'):
        assert any(table in q for q in created), table
    assert inserted_migrations(db) == [MIGRATION]
    assert any('idx_milestones_user_due' in q for q, _ in db.executed)


def test_applied_migrations_are_skipped():
    db = FakeDB(fetchall_results=[[], [{'filename': MIGRATION}]])
    start_db.run(db)
    assert inserted_migrations(db) == []
