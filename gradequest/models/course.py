from typing import Any, Optional

from gradequest.database.db_manager import DBManager
from gradequest.models.base import BaseModel


class Course(BaseModel):
    table = 'courses'

    @classmethod
    def for_user(cls, user_id: str, db: Optional[DBManager] = None) -> list[dict[str, Any]]:
        return cls.get_many('user_id = %s', (user_id,), order_by='code, id', db=db)
