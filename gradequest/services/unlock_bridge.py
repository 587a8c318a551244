import logging
from datetime import datetime
from typing import Callable, Optional

from gradequest.achievements.catalog import AchievementDefinition
from gradequest.achievements.interface import UnlockRecord
from gradequest.models.user_achievement import UserAchievement

logger = logging.getLogger(__name__)

UnlockListener = Callable[[str, AchievementDefinition], None]


class PostgresUnlockBridge:
    '''Records unlocks once per (user, title) and notifies a listener on first unlock.'''

    def __init__(self, on_unlock: Optional[UnlockListener] = None) -> None:
        self.on_unlock = on_unlock

    def record_unlock(self, user_id: str, achievement: AchievementDefinition) -> UnlockRecord:
        row = UserAchievement.record(
            user_id,
            achievement.title,
            achievement.points,
            {'difficulty': achievement.difficulty, 'category': achievement.category},
        )
        created = row is not None
        if created:
            logger.info(f'Recorded unlock of {achievement.title!r} for user {user_id}')
            if self.on_unlock is not None:
                self.on_unlock(user_id, achievement)
        return UnlockRecord(title=achievement.title, created=created)

    def unlocks_between(self, user_id: str, start: datetime, end: datetime) -> list[str]:
        return UserAchievement.titles_between(user_id, start, end)
