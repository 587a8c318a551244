import random
from typing import Optional

import discord

from gradequest.achievements.aggregator import filter_results
from gradequest.achievements.catalog import CATEGORY_INFO, AchievementDefinition
from gradequest.achievements.engine import Dashboard, WeeklyState
from gradequest.achievements.evaluator import EvaluationResult
from gradequest.utils.constants import PROGRESS_BAR_WIDTH, STUDY_TIPS, TIER_EMOJIS


def progress_bar(progress: float, width: int = PROGRESS_BAR_WIDTH) -> str:
    filled = int(round(max(0.0, min(100.0, progress)) / 100 * width))
    return f'{"▰" * filled}{"▱" * (width - filled)} {progress:.0f}%'


def _result_line(result: EvaluationResult) -> str:
    a = result.achievement
    status = '✅ Unlocked' if result.unlocked else progress_bar(result.progress)
    return f'{a.icon} **{a.title}** (+{a.points} pts)\n_{a.description}_\n{status}'


def _unlock_lines(unlocks: list[AchievementDefinition]) -> str:
    return '\n'.join(f'🎉 {a.icon} **{a.title}** (+{a.points} pts)' for a in unlocks)


def weekly_embed(display_name: str, state: WeeklyState) -> discord.Embed:
    selection = state.selection
    embed = discord.Embed(
        title=f'📅 Weekly challenges for {display_name}',
        description=(
            f'Week of {selection.week_start.date().isoformat()} '
            f'to {selection.week_end.date().isoformat()}'
        ),
        color=discord.Color.teal(),
    )
    for tier, result in state.results.items():
        embed.add_field(
            name=f'{TIER_EMOJIS.get(tier, "")} {tier.title()}',
            value=_result_line(result),
            inline=False,
        )
    if state.new_unlocks:
        embed.add_field(name='Just unlocked', value=_unlock_lines(state.new_unlocks), inline=False)
    embed.set_footer(text=f'{state.points_earned} pts earned this week • {random.choice(STUDY_TIPS)}')
    return embed


def dashboard_embed(
    display_name: str, dashboard: Dashboard, category: Optional[str] = None
) -> discord.Embed:
    stats = dashboard.statistics
    embed = discord.Embed(
        title=f'🏅 Weekly achievements for {display_name}',
        description=(
            f'**{stats.unlocked}/{stats.total}** unlocked ({stats.completion_percent:.0f}%) • '
            f'**{stats.in_progress}** in progress'
        ),
        color=discord.Color.gold(),
    )

    if category:
        info = CATEGORY_INFO.get(category, {'name': category.title(), 'icon': ''})
        results = filter_results(stats.results, category=category)
        lines = [_result_line(r) for r in results] or ['Nothing in this category.']
        embed.add_field(
            name=f'{info["icon"]} {info["name"]}', value='\n'.join(lines)[:1024], inline=False
        )
    else:
        lines = []
        for tier, tally in stats.by_difficulty.items():
            lines.append(
                f'{TIER_EMOJIS.get(tier, "")} {tier.title()}: '
                f'{tally["unlocked"]}/{tally["total"]} unlocked, {tally["in_progress"]} in progress'
            )
        embed.add_field(name='By difficulty', value='\n'.join(lines), inline=False)

    if stats.near_completion:
        close = [
            f'{r.achievement.icon} {r.achievement.title}: {progress_bar(r.progress)}'
            for r in stats.near_completion[:5]
        ]
        embed.add_field(name='Almost there', value='\n'.join(close), inline=False)
    if stats.recent_unlocks:
        embed.add_field(
            name='Unlocked this week',
            value=', '.join(r.achievement.title for r in stats.recent_unlocks),
            inline=False,
        )
    if dashboard.new_unlocks:
        embed.add_field(
            name='Just unlocked', value=_unlock_lines(dashboard.new_unlocks), inline=False
        )
    embed.set_footer(text=random.choice(STUDY_TIPS))
    return embed
