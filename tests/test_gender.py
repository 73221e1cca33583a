# tests/test_gender.py
from functools import partial

from grouper.domain.gender import (
    ConstructiveMixing,
    NoGenderBalancing,
    PostHocDeclustering,
    SingleGenderBucketing,
    bucket_by_gender,
    build_mixed_gender_groups,
    decluster_genders,
    dominant_gender,
    select_gender_step,
)
from grouper.domain.models import Gender, GenderMode, PersonDTO
from grouper.domain.partition import partition_people


def genders_in(group, people):
    by_id = {p.id: p.gender for p in people}
    return {by_id[pid] for pid in group}

# -------------------------------
# Helpers
# -------------------------------

def test_dominant_gender_first_seen_wins_tie():
    assert dominant_gender(["male", "female"]) == "male"
    assert dominant_gender(["female", "male", "male"]) == "male"
    assert dominant_gender([]) is None

def test_buckets_keep_first_seen_order(make_people):
    people = make_people(2, Gender.FEMALE, "f") + make_people(1, Gender.MALE, "m") + make_people(1, Gender.FEMALE, "g")
    buckets = bucket_by_gender(people)
    assert list(buckets) == ["female", "male"]
    assert [p.id for p in buckets["female"]] == ["f-1", "f-2", "g-1"]

# -------------------------------
# Constructive mixing
# -------------------------------

def test_mixed_construction_has_no_single_gender_group(fifteen_and_fifteen, rng):
    groups = build_mixed_gender_groups(fifteen_and_fifteen, 3, True, rng)

    assert len(groups) == 10
    assert all(len(g) == 3 for g in groups)
    assert all(len(genders_in(g, fifteen_and_fifteen)) == 2 for g in groups)

def test_mixed_construction_respects_size_policy(make_people, rng):
    people = make_people(4, Gender.MALE, "m") + make_people(3, Gender.FEMALE, "f")
    groups = build_mixed_gender_groups(people, 3, False, rng)

    assert [len(g) for g in groups] == [4, 3]
    assert sorted(pid for g in groups for pid in g) == sorted(p.id for p in people)
    assert all(len(genders_in(g, people)) == 2 for g in groups)

def test_mixed_construction_empty(rng):
    assert build_mixed_gender_groups([], 3, True, rng) == []

# -------------------------------
# Single gender
# -------------------------------

def test_single_gender_groups_are_homogeneous(fifteen_and_fifteen, rng):
    step = SingleGenderBucketing()
    groups = step.apply(fifteen_and_fifteen, partial(partition_people, group_size=3, rng=rng))

    assert len(groups) == 10
    assert all(len(genders_in(g, fifteen_and_fifteen)) == 1 for g in groups)

def test_single_gender_partial_groups_per_bucket(make_people, rng):
    people = make_people(4, Gender.MALE, "m") + make_people(2, Gender.NONBINARY, "n")
    groups = SingleGenderBucketing().apply(people, partial(partition_people, group_size=3, rng=rng))
    assert [len(g) for g in groups] == [3, 1, 2]

# -------------------------------
# Post-hoc declustering
# -------------------------------

def test_decluster_swaps_shared_dominant_gender():
    people = [
        PersonDTO(id="m1", gender=Gender.MALE),
        PersonDTO(id="m2", gender=Gender.MALE),
        PersonDTO(id="m3", gender=Gender.MALE),
        PersonDTO(id="f1", gender=Gender.FEMALE),
    ]
    groups = [["m1", "m2"], ["m3", "f1"]]

    swaps = decluster_genders(groups, {p.id: p for p in people})

    assert swaps == 1
    assert groups == [["f1", "m2"], ["m3", "m1"]]

def test_decluster_leaves_different_dominant_genders_alone():
    people = [PersonDTO(id=i, gender=g) for i, g in
              [("m1", Gender.MALE), ("m2", Gender.MALE), ("f1", Gender.FEMALE), ("f2", Gender.FEMALE)]]
    groups = [["m1", "m2"], ["f1", "f2"]]
    assert decluster_genders(groups, {p.id: p for p in people}) == 0
    assert groups == [["m1", "m2"], ["f1", "f2"]]

def test_decluster_is_a_single_pass(make_people):
    people = make_people(6, Gender.MALE, "m") + make_people(3, Gender.FEMALE, "f")
    groups = [[p.id for p in people[i:i + 3]] for i in range(0, 9, 3)]
    swaps = decluster_genders(groups, {p.id: p for p in people})
    # at most one swap per pair of groups
    assert swaps <= 3
    assert sorted(pid for g in groups for pid in g) == sorted(p.id for p in people)

def test_unknown_member_counts_as_unspecified():
    groups = [["ghost-1", "ghost-2"], ["ghost-3", "f1"]]
    people = {"f1": PersonDTO(id="f1", gender=Gender.FEMALE)}
    assert decluster_genders(groups, people) == 1

# -------------------------------
# Step selection
# -------------------------------

def test_select_gender_step(rng):
    assert isinstance(select_gender_step(GenderMode.IGNORE, True, 3), NoGenderBalancing)
    assert isinstance(select_gender_step(GenderMode.SINGLE, False, 3), SingleGenderBucketing)
    assert isinstance(select_gender_step(GenderMode.MIXED, True, 3, rng=rng), ConstructiveMixing)
    assert isinstance(select_gender_step("mixed", False, 3), PostHocDeclustering)

def test_post_hoc_step_runs_base_then_declusters(make_people):
    people = make_people(2, Gender.MALE, "m") + make_people(2, Gender.FEMALE, "f")
    base_calls = []

    def base(population):
        base_calls.append(len(population))
        return [["m-1", "m-2"], ["f-1", "f-2"]]

    groups = PostHocDeclustering().apply(people, base)
    assert base_calls == [4]
    assert groups == [["m-1", "m-2"], ["f-1", "f-2"]]

def test_mixed_construction_with_large_remainder(make_people, rng):
    people = make_people(6, Gender.MALE, "m") + make_people(5, Gender.FEMALE, "f")
    groups = build_mixed_gender_groups(people, 4, False, rng)

    assert [len(g) for g in groups] == [6, 5]
    assert sorted(pid for g in groups for pid in g) == sorted(p.id for p in people)
