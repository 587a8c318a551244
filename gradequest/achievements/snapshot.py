from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterator, Literal, Optional

ActivityType = Literal['assignment', 'exam', 'project', 'reading', 'other']
ActivityStatus = Literal['completed', 'in-progress', 'at-risk', 'upcoming']


@dataclass(frozen=True)
class ActivityRecord:
    '''One assignment-like unit due during the week.'''

    id: str
    course_id: str
    title: str
    type: ActivityType = 'assignment'
    score: Optional[float] = None
    possible_points: Optional[float] = None
    due_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    status: ActivityStatus = 'upcoming'

    @property
    def is_completed(self) -> bool:
        return self.status == 'completed'

    @property
    def is_graded(self) -> bool:
        '''Both score and possible points are known and possible is positive.'''
        return (
            self.score is not None
            and self.possible_points is not None
            and self.possible_points > 0
        )

    @property
    def grade_percent(self) -> Optional[float]:
        if not self.is_graded:
            return None
        return self.score / self.possible_points * 100  # type: ignore[operator]


@dataclass(frozen=True)
class CourseRecord:
    id: str
    title: str
    code: str = ''
    progress_percent: float = 0.0
    grade: Optional[float] = None
    term: str = ''


@dataclass(frozen=True)
class AIQuizResult:
    score: float
    max_score: float

    @property
    def is_perfect(self) -> bool:
        return self.max_score > 0 and self.score >= self.max_score


@dataclass(frozen=True)
class PlatformActivity:
    '''Inputs supplied by the gambling and leaderboard features.'''

    bets_placed: int = 0
    leaderboard_rank: Optional[int] = None
    previous_leaderboard_rank: Optional[int] = None
    ai_quiz_results: tuple[AIQuizResult, ...] = ()


@dataclass(frozen=True)
class WeeklySnapshot:
    user_id: str
    week_start: datetime
    week_end: datetime
    activities: tuple[ActivityRecord, ...] = field(default_factory=tuple)
    courses: tuple[CourseRecord, ...] = field(default_factory=tuple)
    previous_week: Optional['WeeklySnapshot'] = None
    platform: Optional[PlatformActivity] = None

    def with_previous_week(self, previous: Optional['WeeklySnapshot']) -> 'WeeklySnapshot':
        return replace(self, previous_week=previous)

    def history(self) -> Iterator['WeeklySnapshot']:
        '''Yield this week, then each earlier week that is attached.'''
        current: Optional[WeeklySnapshot] = self
        while current is not None:
            yield current
            current = current.previous_week
