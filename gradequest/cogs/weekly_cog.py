import asyncio
import logging

from discord import Interaction, app_commands
from discord.ext import commands

from gradequest.achievements.catalog import CATEGORY_INFO
from gradequest.achievements.engine import WeeklyAchievementEngine
from gradequest.achievements.errors import ConfigurationError, DataFetchError
from gradequest.components.weekly import dashboard_embed, weekly_embed

logger = logging.getLogger(__name__)

DATA_ERROR_MESSAGE = (
    "Couldn't load your coursework right now. Try again in a few minutes."
)
CONFIG_ERROR_MESSAGE = 'Weekly achievements are misconfigured; an admin has been notified in the logs.'


class WeeklyCog(commands.Cog):
    def __init__(self, bot: commands.Bot, engine: WeeklyAchievementEngine):
        self.bot = bot
        self.engine = engine

    @app_commands.command(name='weekly', description="This week's three challenges")
    async def weekly(self, interaction: Interaction):
        await interaction.response.defer(thinking=True, ephemeral=True)
        user_id = str(interaction.user.id)
        try:
            # Engine calls block on Postgres; keep them off the event loop
            state = await asyncio.to_thread(self.engine.weekly_state, user_id)
        except DataFetchError:
            await interaction.followup.send(DATA_ERROR_MESSAGE, ephemeral=True)
            return
        except ConfigurationError:
            logger.exception('Weekly selection failed on configuration')
            await interaction.followup.send(CONFIG_ERROR_MESSAGE, ephemeral=True)
            return

        await interaction.followup.send(
            embed=weekly_embed(interaction.user.display_name, state), ephemeral=True
        )

    @app_commands.command(
        name='achievements-week', description='Progress on every weekly achievement'
    )
    @app_commands.choices(
        category=[
            app_commands.Choice(name=info['name'], value=key)
            for key, info in CATEGORY_INFO.items()
        ]
    )
    async def achievements_week(
        self,
        interaction: Interaction,
        category: app_commands.Choice[str] | None = None,
    ):
        await interaction.response.defer(thinking=True, ephemeral=True)
        user_id = str(interaction.user.id)
        try:
            dashboard = await asyncio.to_thread(self.engine.dashboard, user_id)
        except DataFetchError:
            await interaction.followup.send(DATA_ERROR_MESSAGE, ephemeral=True)
            return

        await interaction.followup.send(
            embed=dashboard_embed(
                interaction.user.display_name,
                dashboard,
                category.value if category else None,
            ),
            ephemeral=True,
        )


async def setup(bot: commands.Bot):
    engine = getattr(bot, 'engine', None)
    if engine is None:
        raise RuntimeError('WeeklyCog needs bot.engine to be set before loading cogs')
    await bot.add_cog(WeeklyCog(bot, engine))
