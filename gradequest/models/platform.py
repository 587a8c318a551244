from datetime import datetime
from typing import Any, Optional

from gradequest.database.db_manager import DBManager
from gradequest.models.base import BaseModel, use_db


class Bet(BaseModel):
    table = 'bets'

    @classmethod
    def count_between(
        cls, user_id: str, start: datetime, end: datetime, db: Optional[DBManager] = None
    ) -> int:
        with use_db(db) as conn:
            row = conn.fetchone(
                f'SELECT COUNT(*) AS cnt FROM {cls.table} '
                'WHERE user_id = %s AND placed_at BETWEEN %s AND %s',
                (user_id, start, end),
            )
        return int(row['cnt']) if row and 'cnt' in row else 0


class LeaderboardRank(BaseModel):
    '''Weekly leaderboard position snapshot; 1 is first place.'''

    table = 'leaderboard_ranks'

    @classmethod
    def rank_for_week(
        cls, user_id: str, week_start: datetime, db: Optional[DBManager] = None
    ) -> Optional[int]:
        row = cls.get_one('user_id = %s AND week_start = %s', (user_id, week_start), db=db)
        return int(row['rank']) if row else None


class AIQuizAttempt(BaseModel):
    table = 'ai_quiz_results'

    @classmethod
    def taken_between(
        cls, user_id: str, start: datetime, end: datetime, db: Optional[DBManager] = None
    ) -> list[dict[str, Any]]:
        return cls.get_many(
            'user_id = %s AND taken_at BETWEEN %s AND %s',
            (user_id, start, end),
            order_by='taken_at',
            db=db,
        )
