from __future__ import annotations

from typing import Dict, Iterable, Optional

from gradequest.achievements.interface import AchievementRule


class AchievementRegistry:
    def __init__(self) -> None:
        self._rules: Dict[str, AchievementRule] = {}

    def register(self, rule: AchievementRule) -> None:
        # First registration for a title wins
        if rule.title not in self._rules:
            self._rules[rule.title] = rule

    def get(self, title: str) -> Optional[AchievementRule]:
        return self._rules.get(title)

    def titles(self) -> list[str]:
        return list(self._rules)

    def all(self) -> Iterable[AchievementRule]:
        return list(self._rules.values())


registry = AchievementRegistry()
