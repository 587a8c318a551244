from datetime import datetime
from typing import Any, Optional

from gradequest.database.db_manager import DBManager
from gradequest.models.base import BaseModel


class WeeklySelection(BaseModel):
    '''One row per (user_id, week_start): the three titles drawn for that week.'''

    table = 'weekly_selections'

    @classmethod
    def get_for_week(
        cls, user_id: str, week_start: datetime, db: Optional[DBManager] = None
    ) -> Optional[dict[str, Any]]:
        return cls.get_one('user_id = %s AND week_start = %s', (user_id, week_start), db=db)

    @classmethod
    def create_if_absent(
        cls, values: dict[str, Any], db: Optional[DBManager] = None
    ) -> dict[str, Any]:
        '''Insert the selection, or return the one already stored for the week.'''
        row = cls.insert_ignore(('user_id', 'week_start'), values, db=db)
        if row is not None:
            return row
        existing = cls.get_for_week(values['user_id'], values['week_start'], db=db)
        assert existing is not None
        return existing

    @classmethod
    def delete_for_week(
        cls, user_id: str, week_start: datetime, db: Optional[DBManager] = None
    ) -> None:
        cls.delete_where('user_id = %s AND week_start = %s', (user_id, week_start), db=db)

    @classmethod
    def history(
        cls, user_id: str, limit: int = 10, db: Optional[DBManager] = None
    ) -> list[dict[str, Any]]:
        return cls.get_many(
            'user_id = %s', (user_id,), order_by='week_start DESC', limit=limit, db=db
        )
