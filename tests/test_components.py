from gradequest.achievements.aggregator import summarize_results
from gradequest.achievements.engine import Dashboard, WeeklyState
from gradequest.achievements.evaluator import EvaluationResult
from gradequest.achievements.selector import WeeklySelection
from gradequest.achievements.weeks import week_end
from gradequest.components.weekly import dashboard_embed, progress_bar, weekly_embed
from tests.conftest import MONDAY, make_definition

EASY = make_definition('Starter', 'easy', 'performance')
MEDIUM = make_definition('Punctual', 'medium', 'timing')
HARD = make_definition('Marathon', 'hard', 'streak')


def fields(embed):
    return {f.name: f.value for f in embed.fields}


def test_progress_bar():
    assert progress_bar(0) == '▱▱▱▱▱▱▱▱▱▱ 0%'
    assert progress_bar(50) == '▰▰▰▰▰▱▱▱▱▱ 50%'
    assert progress_bar(100, width=4) == '▰▰▰▰ 100%'


def state():
    selection = WeeklySelection('u1', MONDAY, week_end(MONDAY), MONDAY, EASY, MEDIUM, HARD)
    results = {
        'easy': EvaluationResult.build(EASY, True, 100),
        'medium': EvaluationResult.build(MEDIUM, False, 80),
        'hard': EvaluationResult.build(HARD, False, 0),
    }
    return WeeklyState(selection=selection, results=results, new_unlocks=[EASY])


def test_weekly_embed():
    embed = weekly_embed('Ada', state())

    assert embed.title == '📅 Weekly challenges for Ada'
    assert '2025-10-13' in embed.description
    values = list(fields(embed).values())
    assert '✅ Unlocked' in values[0]
    assert '80%' in values[1]
    assert 'Starter' in fields(embed)['Just unlocked']
    assert embed.footer.text.startswith('30 pts earned this week')


def test_dashboard_embed_overview_and_category():
    stats = summarize_results(list(state().results.values()), near_threshold=75)
    dashboard = Dashboard(statistics=stats, new_unlocks=[])

    overview = fields(dashboard_embed('Ada', dashboard))
    assert 'Easy: 1/1 unlocked, 0 in progress' in overview['By difficulty']
    assert 'Punctual' in overview['Almost there']
    assert overview['Unlocked this week'] == 'Starter'
    assert 'Just unlocked' not in overview

    timing = fields(dashboard_embed('Ada', dashboard, category='timing'))
    assert 'Punctual' in timing['⏰ Timing']
    variety = fields(dashboard_embed('Ada', dashboard, category='variety'))
    assert variety['📝 Variety'] == 'Nothing in this category.'
