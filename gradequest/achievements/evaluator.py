from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

# Importing the rule modules registers their specific rules
from gradequest.achievements.rules import (  # noqa: F401
    completion,
    engagement,
    improvement,
    performance,
    platform,
    streaks,
    timing,
    variety,
)
from gradequest.achievements import metrics
from gradequest.achievements.catalog import AchievementDefinition
from gradequest.achievements.errors import UnrecognizedRuleError
from gradequest.achievements.interface import RuleOutcome
from gradequest.achievements.parser import classify_rule
from gradequest.achievements.registry import AchievementRegistry, registry
from gradequest.achievements.snapshot import WeeklySnapshot
from gradequest.utils.tracing import trace_span

logger = logging.getLogger(__name__)

Evaluate = Callable[[WeeklySnapshot], RuleOutcome]


@dataclass(frozen=True)
class EvaluationResult:
    achievement: AchievementDefinition
    unlocked: bool
    progress: float
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> str:
        if self.unlocked:
            return 'unlocked'
        return 'in-progress' if self.progress > 0 else 'locked'

    @classmethod
    def build(
        cls,
        achievement: AchievementDefinition,
        unlocked: bool,
        progress: float,
        diagnostics: Optional[dict[str, Any]] = None,
    ) -> 'EvaluationResult':
        '''Clamp progress to 0..100 and pin unlocked results at 100.'''
        return cls(
            achievement=achievement,
            unlocked=bool(unlocked),
            progress=100.0 if unlocked else metrics.clamp_progress(progress),
            diagnostics=dict(diagnostics or {}),
        )


class RuleEvaluator:
    '''Score one catalog entry against a weekly snapshot.

    A specific rule registered under the entry's title wins. Otherwise the
    entry's structured rule is used, and failing that its calculation
    method text is classified into one of the generic archetypes.
    '''

    def __init__(self, rules: AchievementRegistry = registry) -> None:
        self.rules = rules

    def resolve(self, achievement: AchievementDefinition) -> tuple[str, Evaluate]:
        specific = self.rules.get(achievement.title)
        if specific is not None:
            return 'specific', specific.evaluate
        if achievement.rule is not None:
            return achievement.rule.kind, achievement.rule.evaluate
        descriptor = classify_rule(achievement.title, achievement.calculation_method)
        return descriptor.kind, descriptor.evaluate

    def evaluate(
        self, achievement: AchievementDefinition, snapshot: WeeklySnapshot
    ) -> EvaluationResult:
        with trace_span(
            'achievements.rule_evaluation', {'title': achievement.title}
        ) as span:
            try:
                source, evaluate = self.resolve(achievement)
            except UnrecognizedRuleError as e:
                logger.warning(
                    f'Unrecognized rule for {e.title!r}: {e.rule_text!r}; '
                    'reporting it as locked'
                )
                return EvaluationResult.build(
                    achievement,
                    False,
                    0.0,
                    {'unrecognized_rule': True, 'rule': e.rule_text},
                )

            span.metadata['source'] = source
            try:
                unlocked, progress, diagnostics = evaluate(snapshot)
            except Exception as e:
                # One broken rule must not take down the whole dashboard
                logger.exception(f'Rule for {achievement.title!r} failed')
                return EvaluationResult.build(
                    achievement, False, 0.0, {'error': type(e).__name__, 'source': source}
                )

            span.metadata['unlocked'] = unlocked
            return EvaluationResult.build(
                achievement, unlocked, progress, {**diagnostics, 'source': source}
            )

    def evaluate_all(
        self,
        achievements: Iterable[AchievementDefinition],
        snapshot: WeeklySnapshot,
    ) -> list[EvaluationResult]:
        return [self.evaluate(a, snapshot) for a in achievements]


evaluator = RuleEvaluator()
