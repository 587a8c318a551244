import logging

from gradequest.database.db_manager import DBManager

logger = logging.getLogger(__name__)


def init_schema(db: DBManager):
    '''Create the tables if they don't already exist.'''

    # --- LMS SYNC: COURSES ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS courses (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            code TEXT NOT NULL DEFAULT '',
            progress_percent NUMERIC(5, 2) NOT NULL DEFAULT 0
                CHECK (progress_percent BETWEEN 0 AND 100),
            grade NUMERIC(5, 2),
            term TEXT NOT NULL DEFAULT '',
            synced_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- LMS SYNC: MILESTONES (assignments, exams, projects, readings) ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS milestones (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            type TEXT NOT NULL DEFAULT 'assignment',
            score NUMERIC,
            possible_points NUMERIC,
            due_date TIMESTAMPTZ,
            submitted_at TIMESTAMPTZ,
            status TEXT NOT NULL DEFAULT 'upcoming',
            synced_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- PLATFORM: BETS, LEADERBOARD, AI QUIZZES ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS bets (
            id BIGSERIAL PRIMARY KEY,
            user_id TEXT NOT NULL,
            milestone_id TEXT REFERENCES milestones(id) ON DELETE SET NULL,
            wager INTEGER NOT NULL CHECK (wager > 0),
            placed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS leaderboard_ranks (
            user_id TEXT NOT NULL,
            week_start TIMESTAMPTZ NOT NULL,
            rank INTEGER NOT NULL CHECK (rank > 0),
            PRIMARY KEY (user_id, week_start)
        )
        '''
    )
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS ai_quiz_results (
            id BIGSERIAL PRIMARY KEY,
            user_id TEXT NOT NULL,
            score NUMERIC NOT NULL,
            max_score NUMERIC NOT NULL CHECK (max_score > 0),
            taken_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )

    # --- WEEKLY ACHIEVEMENTS ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS weekly_selections (
            user_id TEXT NOT NULL,
            week_start TIMESTAMPTZ NOT NULL,
            week_end TIMESTAMPTZ NOT NULL,
            selection_timestamp TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            easy_title TEXT NOT NULL,
            medium_title TEXT NOT NULL,
            hard_title TEXT NOT NULL,
            PRIMARY KEY (user_id, week_start),
            CHECK (
                easy_title <> medium_title
                AND medium_title <> hard_title
                AND easy_title <> hard_title
            )
        )
        '''
    )
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS used_achievements (
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            used_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (user_id, title)
        )
        '''
    )
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS user_achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            points INTEGER NOT NULL CHECK (points > 0),
            metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
            unlocked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (user_id, title)
        )
        '''
    )

    # --- MIGRATIONS ---
    db.execute(
        '''
        CREATE TABLE IF NOT EXISTS migrations (
            filename TEXT PRIMARY KEY,
            applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        '''
    )
    logger.debug('Schema verified')
