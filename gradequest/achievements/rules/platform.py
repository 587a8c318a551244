'''Achievements fed by the betting, leaderboard and AI quiz features.

Without platform data on the snapshot these stay locked at progress 0.
'''

from __future__ import annotations

from gradequest.achievements.interface import AchievementRule, RuleOutcome
from gradequest.achievements.registry import registry
from gradequest.achievements.snapshot import WeeklySnapshot

_NO_DATA: RuleOutcome = (False, 0.0, {'platform_data': False})


class RiskTaker(AchievementRule):
    title = 'Risk Taker'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        platform = snapshot.platform
        if platform is None:
            return _NO_DATA
        placed = platform.bets_placed > 0
        return placed, 100.0 if placed else 0.0, {'bets_placed': platform.bets_placed}


class RankClimber(AchievementRule):
    '''Leaderboard position improved by at least one place.'''

    title = 'Rank Climber'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        platform = snapshot.platform
        if platform is None or platform.leaderboard_rank is None:
            return _NO_DATA
        previous = platform.previous_leaderboard_rank
        if previous is None:
            return False, 0.0, {
                'rank': platform.leaderboard_rank,
                'insufficient_history': True,
            }
        # Lower rank number is better
        places = previous - platform.leaderboard_rank
        return (
            places >= 1,
            100.0 if places >= 1 else 0.0,
            {'rank': platform.leaderboard_rank, 'previous_rank': previous, 'places': places},
        )


class LeaderboardChampion(AchievementRule):
    title = 'Leaderboard Champion'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        platform = snapshot.platform
        if platform is None or platform.leaderboard_rank is None:
            return _NO_DATA
        rank = platform.leaderboard_rank
        if rank <= 1:
            return True, 100.0, {'rank': rank}
        return False, 100.0 / rank, {'rank': rank}


class AIQuizChampion(AchievementRule):
    title = 'AI Quiz Champion'

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        platform = snapshot.platform
        if platform is None or not platform.ai_quiz_results:
            return _NO_DATA
        best = max(
            (r.score / r.max_score * 100 for r in platform.ai_quiz_results if r.max_score > 0),
            default=0.0,
        )
        perfect = any(r.is_perfect for r in platform.ai_quiz_results)
        return perfect, min(best, 100.0), {
            'quizzes': len(platform.ai_quiz_results),
            'best_percent': round(best, 2),
        }


registry.register(RiskTaker())
registry.register(RankClimber())
registry.register(LeaderboardChampion())
registry.register(AIQuizChampion())
