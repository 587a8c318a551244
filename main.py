import asyncio
import logging

from gradequest.bot import main as run
from gradequest.database import start_db
from gradequest.database.db_manager import DBManager
from gradequest.utils.env import load_env
from gradequest.utils.logs import setup_logging

if __name__ == '__main__':
    setup_logging(logging.INFO)
    load_env()

    with DBManager() as db:
        # Schema + migrations
        start_db.run(db)

    asyncio.run(run())
