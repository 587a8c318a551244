from gradequest.achievements.evaluator import evaluator
from gradequest.achievements.interface import AchievementRule
from gradequest.achievements.registry import AchievementRegistry, registry


def dummy(title, tag):
    class Dummy(AchievementRule):
        def evaluate(self, snapshot):
            return False, 0.0, {'tag': tag}

    Dummy.title = title
    Dummy.tag = tag
    return Dummy()


def test_first_registration_wins():
    rules = AchievementRegistry()
    rules.register(dummy('Solo', 'first'))
    rules.register(dummy('Solo', 'second'))

    assert rules.titles() == ['Solo']
    assert rules.get('Solo').tag == 'first'
    assert rules.get('Missing') is None


def test_specific_rules_are_registered_on_import():
    assert evaluator.rules is registry
    titles = set(registry.titles())
    assert {'Perfect Week', 'Early Bird', 'Course Balancer', 'Perfect Streak'} <= titles
    for rule in registry.all():
        assert isinstance(rule, AchievementRule)


def test_clean_registry_fixture_empties_registry(clean_registry):
    assert clean_registry.titles() == []
    clean_registry.register(dummy('Temp', 'x'))
    assert clean_registry.get('Temp') is not None
