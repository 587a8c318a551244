from datetime import datetime
from typing import Any, Optional

from gradequest.database.db_manager import DBManager
from gradequest.models.base import BaseModel


class Milestone(BaseModel):
    '''Coursework synced from the LMS: assignments, exams, projects and readings.'''

    table = 'milestones'

    @classmethod
    def due_between(
        cls,
        user_id: str,
        start: datetime,
        end: datetime,
        db: Optional[DBManager] = None,
    ) -> list[dict[str, Any]]:
        return cls.get_many(
            'user_id = %s AND due_date BETWEEN %s AND %s',
            (user_id, start, end),
            order_by='due_date, id',
            db=db,
        )
