# tests/test_grouping_service.py
import random

import pytest

from grouper.config.settings import settings as app_settings
from grouper.domain.errors import (
    InvalidConfigurationError,
    NoWeightsSelectedError,
    PreferencesRequiredError,
    UnknownStrategyError,
)
from grouper.domain.models import (
    Gender,
    GenderMode,
    GroupingSettings,
    GroupingStrategy,
    PersonDTO,
    PreferenceEntry,
)
from grouper.domain.ordering import normalize_member_order
from grouper.services.grouping_service import GroupingService


@pytest.fixture
def service():
    return GroupingService(rng=random.Random(42))


def grouping(strategy=GroupingStrategy.RANDOM, group_size=3, gender_mode=GenderMode.IGNORE, **kwargs):
    return GroupingSettings(strategy=strategy, group_size=group_size, gender_mode=gender_mode, **kwargs)


def all_members(result):
    return [pid for g in result.groups for pid in g.member_ids]


def genders(group, people):
    by_id = {p.id: p.gender for p in people}
    return {by_id[pid] for pid in group.member_ids}

# -------------------------------
# Shape of the result
# -------------------------------

def test_random_grouping_is_complete(service, make_people):
    people = make_people(10)
    result = service.create_groups(people, grouping())

    assert sorted(all_members(result)) == sorted(p.id for p in people)
    assert [g.name for g in result.groups] == ["Group 1", "Group 2", "Group 3", "Group 4"]
    assert len({g.id for g in result.groups}) == 4
    assert result.strategy == GroupingStrategy.RANDOM
    assert result.settings.group_size == 3
    assert result.overall_satisfaction is None
    assert result.timestamp.tzinfo is not None

def test_group_ids_are_fresh_per_run(service, make_people):
    people = make_people(6)
    first = service.create_groups(people, grouping())
    second = service.create_groups(people, grouping())
    assert not {g.id for g in first.groups} & {g.id for g in second.groups}

@pytest.mark.parametrize("strategy", list(GroupingStrategy))
def test_size_policy_is_independent_of_strategy(service, make_people, strategy):
    people = make_people(7, weights={"skill": 1})
    result = service.create_groups(
        people,
        grouping(strategy, allow_partial_groups=False, weight_ids=["skill"]),
        preferences={},
    )
    assert [len(g.member_ids) for g in result.groups] == [4, 3]

    partial = service.create_groups(people, grouping(strategy, weight_ids=["skill"]), preferences={})
    assert [len(g.member_ids) for g in partial.groups] == [3, 3, 1]

@pytest.mark.parametrize("strategy", list(GroupingStrategy))
@pytest.mark.parametrize("gender_mode", list(GenderMode))
@pytest.mark.parametrize("total, size, expected", [(11, 4, [6, 5]), (13, 5, [7, 6])])
def test_large_remainder_keeps_everyone(service, make_people, strategy, gender_mode, total, size, expected):
    males = total // 2 + 1
    people = (make_people(males, Gender.MALE, "m", weights={"skill": 1})
              + make_people(total - males, Gender.FEMALE, "f", weights={"skill": 2}))
    result = service.create_groups(
        people,
        grouping(strategy, group_size=size, gender_mode=gender_mode,
                 allow_partial_groups=False, weight_ids=["skill"]),
        preferences={},
    )

    member_ids = all_members(result)
    assert sorted(member_ids) == sorted(p.id for p in people)
    assert len(member_ids) == len(set(member_ids))
    assert all(len(g.member_ids) >= size for g in result.groups)
    if gender_mode != GenderMode.SINGLE:
        assert sorted((len(g.member_ids) for g in result.groups), reverse=True) == expected

def test_empty_population(service):
    result = service.create_groups([], grouping())
    assert result.groups == []

# -------------------------------
# Ordering
# -------------------------------

def test_members_sorted_by_name_for_every_strategy(service):
    people = [PersonDTO(id="p1", name="Mona"), PersonDTO(id="p2", name="adam"), PersonDTO(id="p3", name="Lars")]
    for strategy in GroupingStrategy:
        result = service.create_groups(
            people, grouping(strategy, group_size=10, weight_ids=["__gender__"]), preferences={}
        )
        assert result.groups[0].member_ids == ["p2", "p3", "p1"]

def test_locale_is_passed_to_ordering(service):
    people = [PersonDTO(id="p1", name="Zulu"), PersonDTO(id="p2", name="Åse"), PersonDTO(id="p3", name="Anders")]
    result = service.create_groups(people, grouping(group_size=10), locale="da-DK")
    assert result.groups[0].member_ids == ["p3", "p1", "p2"]

def test_ordering_normalization_is_stable(service, make_people):
    people = make_people(12)
    result = service.create_groups(people, grouping(group_size=4))
    groups = [list(g.member_ids) for g in result.groups]
    normalize_member_order(groups, people)
    assert groups == [g.member_ids for g in result.groups]

# -------------------------------
# Gender modes
# -------------------------------

def test_random_single_gender(service, fifteen_and_fifteen):
    result = service.create_groups(fifteen_and_fifteen, grouping(gender_mode=GenderMode.SINGLE))
    assert len(result.groups) == 10
    assert all(len(genders(g, fifteen_and_fifteen)) == 1 for g in result.groups)

def test_random_mixed_gender(service, fifteen_and_fifteen):
    result = service.create_groups(fifteen_and_fifteen, grouping(gender_mode=GenderMode.MIXED))
    assert len(result.groups) == 10
    assert all(len(genders(g, fifteen_and_fifteen)) == 2 for g in result.groups)

def test_preference_single_gender_scores_every_group(service):
    people = [
        PersonDTO(id="m-1", name="M1", gender=Gender.MALE),
        PersonDTO(id="m-2", name="M2", gender=Gender.MALE),
        PersonDTO(id="f-1", name="F1", gender=Gender.FEMALE),
        PersonDTO(id="f-2", name="F2", gender=Gender.FEMALE),
    ]
    preferences = {
        "m-1": PreferenceEntry(want_with=["m-2"]),
        "m-2": PreferenceEntry(want_with=["m-1"]),
        "f-1": PreferenceEntry(want_with=["f-2"]),
        "f-2": PreferenceEntry(want_with=["f-1"]),
    }
    result = service.create_groups(
        people, grouping(GroupingStrategy.PREFERENCE_BASED, group_size=2, gender_mode=GenderMode.SINGLE),
        preferences=preferences,
    )

    assert len(result.groups) == 2
    assert [g.satisfaction_score for g in result.groups] == [4, 4]
    assert result.overall_satisfaction == 8

def test_preference_mixed_rescores_after_declustering(service, fifteen_and_fifteen, rng):
    ids = [p.id for p in fifteen_and_fifteen]
    preferences = {pid: PreferenceEntry(want_with=rng.sample(ids, 2)) for pid in ids}
    result = service.create_groups(
        fifteen_and_fifteen, grouping(GroupingStrategy.PREFERENCE_BASED, gender_mode=GenderMode.MIXED),
        preferences=preferences,
    )

    assert sorted(all_members(result)) == sorted(ids)
    assert result.overall_satisfaction == sum(g.satisfaction_score for g in result.groups)
    assert result.overall_satisfaction == service.calculate_satisfaction(result.groups, preferences)

def test_weighted_single_gender_stays_homogeneous(service, make_people):
    rng = random.Random(5)
    people = make_people(9, Gender.MALE, "m") + make_people(6, Gender.FEMALE, "f")
    for p in people:
        p.weights["skill"] = rng.randint(1, 10)
    result = service.create_groups(
        people, grouping(GroupingStrategy.WEIGHTED, gender_mode=GenderMode.SINGLE, weight_ids=["skill"])
    )
    assert len(result.groups) == 5
    assert all(len(genders(g, people)) == 1 for g in result.groups)

def test_weighted_mixed_balances_skill(service, make_people):
    rng = random.Random(9)
    people = make_people(8, Gender.MALE, "m") + make_people(8, Gender.FEMALE, "f")
    for p in people:
        p.weights["skill"] = rng.randint(1, 10)
    result = service.create_groups(
        people, grouping(GroupingStrategy.WEIGHTED, group_size=4, gender_mode=GenderMode.MIXED,
                         weight_ids=["skill"])
    )

    assert sorted(all_members(result)) == sorted(p.id for p in people)
    assert result.overall_satisfaction is None
    # no single swap between two groups can improve any pair any more
    groups = [g.member_ids for g in result.groups]
    skill = {p.id: p.weights["skill"] for p in people}
    for i in range(len(groups)):
        for j in range(i + 1, len(groups)):
            a = sum(skill[pid] for pid in groups[i])
            b = sum(skill[pid] for pid in groups[j])
            for x in groups[i]:
                for y in groups[j]:
                    assert abs((a - skill[x] + skill[y]) - (b - skill[y] + skill[x])) >= abs(a - b)

def test_explicit_zero_balance_passes_is_kept(make_people):
    assert GroupingService(balance_max_iterations=0).balance_max_iterations == 0
    assert GroupingService().balance_max_iterations == app_settings.BALANCE_MAX_ITERATIONS

    rng = random.Random(3)
    people = make_people(12)
    for p in people:
        p.weights["skill"] = rng.randint(1, 10)

    plain = GroupingService(rng=random.Random(8)).create_groups(people, grouping(group_size=4))
    unbalanced = GroupingService(rng=random.Random(8), balance_max_iterations=0).create_groups(
        people, grouping(GroupingStrategy.WEIGHTED, group_size=4, weight_ids=["skill"])
    )
    assert [g.member_ids for g in unbalanced.groups] == [g.member_ids for g in plain.groups]

# -------------------------------
# Errors
# -------------------------------

def test_group_size_zero_raises(service, make_people):
    with pytest.raises(InvalidConfigurationError):
        service.create_groups(make_people(4), grouping(group_size=0))

def test_preferences_required(service, make_people):
    state = service.rng.getstate()
    with pytest.raises(PreferencesRequiredError):
        service.create_groups(make_people(4), grouping(GroupingStrategy.PREFERENCE_BASED))
    assert service.rng.getstate() == state

def test_weighted_requires_weights(service, make_people):
    with pytest.raises(NoWeightsSelectedError):
        service.create_groups(make_people(4), grouping(GroupingStrategy.WEIGHTED))

def test_unknown_strategy_is_named(service, make_people):
    with pytest.raises(UnknownStrategyError) as exc:
        service.create_groups(make_people(4), grouping("ALPHABETICAL"))
    assert exc.value.to_dict() == {
        "key": "grouping.errors.unknownStrategy",
        "params": {"strategy": "ALPHABETICAL"},
    }

def test_configuration_errors_come_before_empty_population(service):
    with pytest.raises(InvalidConfigurationError):
        service.create_groups([], grouping(group_size=0))
