TIERS = ('easy', 'medium', 'hard')

TIER_POINTS = {
    'easy': 30,
    'medium': 50,
    'hard': 100,
}

# Soft bias for weekly selection: each entry is duplicated ceil(weight) times
CATEGORY_WEIGHTS = {
    'performance': 1.2,
    'timing': 1.0,
    'engagement': 1.1,
    'variety': 1.0,
    'improvement': 1.3,
    'streak': 0.8,
    'threshold': 1.0,
}

ACTIVITY_TYPES = ('assignment', 'exam', 'project', 'reading', 'other')

# Types that count towards "all assignment types" variety goals
CORE_ACTIVITY_TYPES = ('assignment', 'exam', 'project', 'reading')

ACTIVITY_STATUSES = ('completed', 'in-progress', 'at-risk', 'upcoming')

NEAR_COMPLETION_THRESHOLD = 75.0

RECENT_UNLOCKS_LIMIT = 5

LEDGER_RESET_POLICIES = ('all', 'tier')

PROGRESS_BAR_WIDTH = 10

TIER_EMOJIS = {
    'easy': '🟢',
    'medium': '🟡',
    'hard': '🔴',
}

STUDY_TIPS = [
    'Start the biggest assignment first; momentum does the rest.',
    'A submission a day early beats a perfect one an hour late.',
    'Reading assignments count too. Future you will thank you.',
    'Review last week\'s feedback before starting this week\'s work.',
    'Spread your effort across courses; balance is an achievement.',
    'Short, regular study sessions outlast all-night cramming.',
]
