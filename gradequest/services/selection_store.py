from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Iterator, Optional

from gradequest.achievements.interface import SelectionRecord
from gradequest.achievements.weeks import to_utc
from gradequest.database.db_manager import DBManager
from gradequest.models.used_achievement import UsedAchievement
from gradequest.models.weekly_selection import WeeklySelection


def record_from_row(row: dict[str, Any]) -> SelectionRecord:
    return SelectionRecord(
        user_id=str(row['user_id']),
        week_start=to_utc(row['week_start']),
        week_end=to_utc(row['week_end']),
        selection_timestamp=to_utc(row['selection_timestamp']),
        easy_title=row['easy_title'],
        medium_title=row['medium_title'],
        hard_title=row['hard_title'],
    )


class PostgresSelectionSession:
    '''Runs inside one transaction that holds the user's advisory lock.'''

    def __init__(self, db: DBManager, user_id: str, week_start: datetime) -> None:
        self.db = db
        self.user_id = user_id
        self.week_start = week_start

    def get_selection(self) -> Optional[SelectionRecord]:
        row = WeeklySelection.get_for_week(self.user_id, self.week_start, db=self.db)
        return record_from_row(row) if row else None

    def insert_selection(self, record: SelectionRecord) -> SelectionRecord:
        row = WeeklySelection.create_if_absent(
            {
                'user_id': record.user_id,
                'week_start': record.week_start,
                'week_end': record.week_end,
                'selection_timestamp': record.selection_timestamp,
                'easy_title': record.easy_title,
                'medium_title': record.medium_title,
                'hard_title': record.hard_title,
            },
            db=self.db,
        )
        return record_from_row(row)

    def delete_selection(self) -> None:
        WeeklySelection.delete_for_week(self.user_id, self.week_start, db=self.db)

    def get_used_titles(self) -> list[str]:
        return UsedAchievement.titles_for(self.user_id, db=self.db)

    def add_used_titles(self, titles: Iterable[str]) -> None:
        UsedAchievement.add(self.user_id, titles, db=self.db)

    def clear_used_titles(self, titles: Optional[Iterable[str]] = None) -> None:
        UsedAchievement.clear(self.user_id, titles, db=self.db)


class PostgresSelectionStore:
    '''Selections and ledger in Postgres.

    A session takes a transaction-scoped advisory lock per user, so
    concurrent workers resolving the same user's week run one at a time;
    the (user_id, week_start) primary key backs that up.
    '''

    @contextmanager
    def session(self, user_id: str, week_start: datetime) -> Iterator[PostgresSelectionSession]:
        with DBManager() as db:
            db.advisory_lock(f'weekly_selection:{user_id}')
            yield PostgresSelectionSession(db, user_id, week_start)

    def get_selection(self, user_id: str, week_start: datetime) -> Optional[SelectionRecord]:
        row = WeeklySelection.get_for_week(user_id, week_start)
        return record_from_row(row) if row else None

    def get_used_titles(self, user_id: str) -> list[str]:
        return UsedAchievement.titles_for(user_id)

    def history(self, user_id: str, limit: int = 10) -> list[SelectionRecord]:
        return [record_from_row(r) for r in WeeklySelection.history(user_id, limit)]
