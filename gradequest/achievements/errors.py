from __future__ import annotations


class AchievementError(Exception):
    '''Base class for weekly achievement engine errors.'''


class ConfigurationError(AchievementError):
    '''The catalog (or a persisted selection) is inconsistent. Fatal.'''


class DataFetchError(AchievementError):
    '''The snapshot provider could not load the week's activity data.'''


class UnrecognizedRuleError(AchievementError):
    '''A calculation method could not be classified into a rule archetype.'''

    def __init__(self, title: str, rule_text: str) -> None:
        super().__init__(f'Unrecognized calculation method for {title!r}: {rule_text!r}')
        self.title = title
        self.rule_text = rule_text


class PersistenceConflictError(AchievementError):
    '''The unlock was already recorded; callers treat this as success.'''
