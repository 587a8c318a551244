from gradequest.database.db_manager import DBManager


def up(db_manager: DBManager):
    # Snapshot loads filter milestones by user and due date window
    db_manager.execute(
        'CREATE INDEX IF NOT EXISTS idx_milestones_user_due '
        'ON milestones (user_id, due_date)'
    )
    db_manager.execute(
        'CREATE INDEX IF NOT EXISTS idx_user_achievements_user_unlocked '
        'ON user_achievements (user_id, unlocked_at)'
    )


def down(db_manager: DBManager):
    db_manager.execute('DROP INDEX IF EXISTS idx_user_achievements_user_unlocked')
    db_manager.execute('DROP INDEX IF EXISTS idx_milestones_user_due')
    db_manager.execute(
        'DELETE FROM migrations WHERE filename = %s',
        ('20251020_090000_index_milestones_due_date.py',),
    )
