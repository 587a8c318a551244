import logging
from datetime import datetime
from typing import Any, Optional

import psycopg

from gradequest.achievements.errors import DataFetchError
from gradequest.achievements.snapshot import (
    AIQuizResult,
    ActivityRecord,
    CourseRecord,
    PlatformActivity,
    WeeklySnapshot,
)
from gradequest.achievements.weeks import previous_week, to_utc
from gradequest.database.db_manager import DBManager
from gradequest.models.course import Course
from gradequest.models.milestone import Milestone
from gradequest.models.platform import AIQuizAttempt, Bet, LeaderboardRank
from gradequest.utils.constants import ACTIVITY_STATUSES, ACTIVITY_TYPES

logger = logging.getLogger(__name__)


def _as_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    return to_utc(value) if value is not None else None


def activity_from_row(row: dict[str, Any]) -> ActivityRecord:
    kind = row.get('type') or 'other'
    status = row.get('status') or 'upcoming'
    return ActivityRecord(
        id=str(row['id']),
        course_id=str(row['course_id']),
        title=row.get('title') or '',
        type=kind if kind in ACTIVITY_TYPES else 'other',
        score=_as_float(row.get('score')),
        possible_points=_as_float(row.get('possible_points')),
        due_at=_as_utc(row.get('due_date')),
        submitted_at=_as_utc(row.get('submitted_at')),
        status=status if status in ACTIVITY_STATUSES else 'upcoming',
    )


def course_from_row(row: dict[str, Any]) -> CourseRecord:
    return CourseRecord(
        id=str(row['id']),
        title=row.get('title') or '',
        code=row.get('code') or '',
        progress_percent=float(row.get('progress_percent') or 0),
        grade=_as_float(row.get('grade')),
        term=row.get('term') or '',
    )


class PostgresSnapshotProvider:
    '''Builds weekly snapshots from the LMS sync tables.'''

    def get_weekly_snapshot(
        self, user_id: str, week_start: datetime, week_end: datetime
    ) -> WeeklySnapshot:
        try:
            with DBManager() as db:
                milestones = Milestone.due_between(user_id, week_start, week_end, db=db)
                courses = Course.for_user(user_id, db=db)
                platform = self._platform(user_id, week_start, week_end, db)
        except psycopg.Error as e:
            logger.error(f'Failed to load week {week_start.date()} for user {user_id}: {e}')
            raise DataFetchError(
                f'Could not load activity data for user {user_id} '
                f'({week_start.isoformat()} to {week_end.isoformat()})'
            ) from e

        return WeeklySnapshot(
            user_id=user_id,
            week_start=week_start,
            week_end=week_end,
            activities=tuple(activity_from_row(r) for r in milestones),
            courses=tuple(course_from_row(r) for r in courses),
            platform=platform,
        )

    def _platform(
        self, user_id: str, week_start: datetime, week_end: datetime, db: DBManager
    ) -> PlatformActivity:
        prev_start, _ = previous_week(week_start)
        quizzes = AIQuizAttempt.taken_between(user_id, week_start, week_end, db=db)
        return PlatformActivity(
            bets_placed=Bet.count_between(user_id, week_start, week_end, db=db),
            leaderboard_rank=LeaderboardRank.rank_for_week(user_id, week_start, db=db),
            previous_leaderboard_rank=LeaderboardRank.rank_for_week(user_id, prev_start, db=db),
            ai_quiz_results=tuple(
                AIQuizResult(score=float(q['score']), max_score=float(q['max_score']))
                for q in quizzes
            ),
        )
