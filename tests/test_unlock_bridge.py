from gradequest.models import base
from gradequest.services.unlock_bridge import PostgresUnlockBridge
from tests.conftest import MONDAY, FakeDB, make_definition, patched_dbmanager

EARLY_BIRD = make_definition('Early Bird', 'medium', 'timing')


def test_first_unlock_is_created_and_notified(monkeypatch):
    db = FakeDB(fetchone_results=[{'id': 1, 'title': 'Early Bird'}])
    seen = []
    bridge = PostgresUnlockBridge(on_unlock=lambda user_id, a: seen.append((user_id, a.title)))
    with patched_dbmanager(monkeypatch, base, db):
        record = bridge.record_unlock('u1', EARLY_BIRD)

    assert record.created is True
    assert seen == [('u1', 'Early Bird')]
    assert 'ON CONFLICT (user_id, title) DO NOTHING' in db.last_query
    user_id, title, points, metadata = db.last_params
    assert (user_id, title, points) == ('u1', 'Early Bird', 50)
    assert metadata.obj == {'difficulty': 'medium', 'category': 'timing'}


def test_repeat_unlock_is_not_created(monkeypatch, fake_db):
    seen = []
    bridge = PostgresUnlockBridge(on_unlock=lambda *args: seen.append(args))
    with patched_dbmanager(monkeypatch, base, fake_db):
        record = bridge.record_unlock('u1', EARLY_BIRD)

    assert record.created is False
    assert seen == []


def test_unlocks_between(monkeypatch):
    db = FakeDB(fetchall_results=[[{'title': 'Early Bird'}, {'title': 'Solid Week'}]])
    with patched_dbmanager(monkeypatch, base, db):
        titles = PostgresUnlockBridge().unlocks_between('u1', MONDAY, MONDAY)

    assert titles == ['Early Bird', 'Solid Week']
    assert 'unlocked_at BETWEEN %s AND %s' in db.last_query
