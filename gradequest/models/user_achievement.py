from datetime import datetime
from typing import Any, Optional

from gradequest.database.db_manager import DBManager
from gradequest.models.base import BaseModel


class UserAchievement(BaseModel):
    table = 'user_achievements'

    @classmethod
    def record(
        cls,
        user_id: str,
        title: str,
        points: int,
        metadata: Optional[dict[str, Any]] = None,
        db: Optional[DBManager] = None,
    ) -> Optional[dict[str, Any]]:
        '''Insert the unlock; None when (user_id, title) is already on record.'''
        return cls.insert_ignore(
            ('user_id', 'title'),
            {
                'user_id': user_id,
                'title': title,
                'points': points,
                'metadata': metadata or {},
            },
            db=db,
        )

    @classmethod
    def titles_between(
        cls,
        user_id: str,
        start: datetime,
        end: datetime,
        db: Optional[DBManager] = None,
    ) -> list[str]:
        rows = cls.get_many(
            'user_id = %s AND unlocked_at BETWEEN %s AND %s',
            (user_id, start, end),
            order_by='unlocked_at',
            db=db,
        )
        return [row['title'] for row in rows]
