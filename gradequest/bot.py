import logging
import os
import pathlib
import random
from typing import Optional

import discord
from discord.ext import commands

from gradequest.achievements.aggregator import Aggregator
from gradequest.achievements.catalog import get_catalog
from gradequest.achievements.engine import WeeklyAchievementEngine
from gradequest.achievements.selector import WeekSelector
from gradequest.database.db_manager import DBManager
from gradequest.services.selection_store import PostgresSelectionStore
from gradequest.services.snapshot_provider import PostgresSnapshotProvider
from gradequest.services.unlock_bridge import PostgresUnlockBridge
from gradequest.utils.constants import NEAR_COMPLETION_THRESHOLD, RECENT_UNLOCKS_LIMIT
from gradequest.utils.env import env_float, env_int, env_str, load_env

logger = logging.getLogger(__name__)


def get_intents() -> discord.Intents:
    return discord.Intents.default()


def build_engine(rng: Optional[random.Random] = None) -> WeeklyAchievementEngine:
    '''Wire the weekly achievement engine to Postgres using environment settings.'''
    catalog = get_catalog()
    selector = WeekSelector(
        PostgresSelectionStore(),
        catalog=catalog,
        rng=rng,
        reset_policy=env_str('WEEKLY_LEDGER_RESET_POLICY', 'all') or 'all',
    )
    aggregator = Aggregator(
        PostgresSnapshotProvider(),
        catalog=catalog,
        near_threshold=env_float('NEAR_COMPLETION_THRESHOLD', NEAR_COMPLETION_THRESHOLD),
        recent_limit=env_int('RECENT_UNLOCKS_LIMIT', RECENT_UNLOCKS_LIMIT),
    )
    return WeeklyAchievementEngine(selector, aggregator, PostgresUnlockBridge())


class GradeQuestBot(commands.Bot):
    def __init__(self, engine: WeeklyAchievementEngine):
        super().__init__(command_prefix='/', intents=get_intents())
        self.engine = engine

    async def setup_hook(self):
        cogs_path = pathlib.Path(__file__).parent / 'cogs'
        for file in cogs_path.glob('*_cog.py'):
            module = f'gradequest.cogs.{file.stem}'
            try:
                await self.load_extension(module)
                logger.info(f'Loaded {module}')
            except Exception:
                logger.error(f'Failed to load {module}', exc_info=True)

    async def on_ready(self):
        guild_id = os.getenv('GUILD_ID')
        if not guild_id:
            raise RuntimeError('GUILD_ID not set in environment or .env')

        guild = discord.Object(id=int(guild_id))
        self.tree.copy_global_to(guild=guild)
        await self.tree.sync(guild=guild)
        logger.info(f'Bot ready! Synced commands to guild {guild_id}')


async def main():
    load_env()
    token = os.getenv('DISCORD_TOKEN')
    if not token:
        raise RuntimeError('DISCORD_TOKEN not set in environment or .env')

    # One Postgres pool for the process
    DBManager.init_pool()

    bot = GradeQuestBot(build_engine())
    try:
        async with bot:
            await bot.start(token)
    except Exception:
        logger.error('Bot failed due to an exception', exc_info=True)
    finally:
        DBManager.close_pool()
