from typing import Iterable, Optional

from gradequest.database.db_manager import DBManager
from gradequest.models.base import BaseModel, use_db


class UsedAchievement(BaseModel):
    '''The per-user ledger of titles already drawn for a weekly selection.'''

    table = 'used_achievements'

    @classmethod
    def titles_for(cls, user_id: str, db: Optional[DBManager] = None) -> list[str]:
        rows = cls.get_many('user_id = %s', (user_id,), order_by='used_at, title', db=db)
        return [row['title'] for row in rows]

    @classmethod
    def add(cls, user_id: str, titles: Iterable[str], db: Optional[DBManager] = None) -> None:
        params = [(user_id, title) for title in titles]
        if not params:
            return
        with use_db(db) as conn:
            conn.executemany(
                f'INSERT INTO {cls.table} (user_id, title) VALUES (%s, %s) '
                'ON CONFLICT (user_id, title) DO NOTHING',
                params,
            )

    @classmethod
    def clear(
        cls,
        user_id: str,
        titles: Optional[Iterable[str]] = None,
        db: Optional[DBManager] = None,
    ) -> None:
        if titles is None:
            cls.delete_where('user_id = %s', (user_id,), db=db)
            return
        cls.delete_where('user_id = %s AND title = ANY(%s)', (user_id, list(titles)), db=db)
