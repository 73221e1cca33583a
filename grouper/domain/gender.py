# grouper/domain/gender.py
"""
Gender-aware grouping steps.

One capability, several strategies. A GenderBalancingStep wraps a base
algorithm (random partition, annealing, ...) and decides how gender shapes
the groups it produces:

- NoGenderBalancing: base output passes through unchanged
- SingleGenderBucketing: the base algorithm runs once per gender bucket
- ConstructiveMixing: groups are built person by person, spreading each
  gender across groups (only for base algorithms that are plain partitions)
- PostHocDeclustering: the base algorithm runs on everyone, then one pass of
  swaps breaks up groups sharing the same dominant gender
"""
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence
import random

from grouper.domain.grouping import Algorithm, MemberGroups
from grouper.domain.models import Gender, GenderMode, PersonDTO
from grouper.domain.partition import calculate_target_group_sizes


def gender_of(person: Optional[PersonDTO]) -> str:
    if person is None or person.gender is None:
        return Gender.UNSPECIFIED.value
    return Gender(person.gender).value


def bucket_by_gender(people: Sequence[PersonDTO]) -> Dict[str, List[PersonDTO]]:
    """Group people by gender, buckets in first-seen order."""
    buckets: Dict[str, List[PersonDTO]] = OrderedDict()
    for person in people:
        buckets.setdefault(gender_of(person), []).append(person)
    return buckets


def dominant_gender(genders: Sequence[str]) -> Optional[str]:
    """Most frequent gender; the first one seen wins a tie. None for an empty group."""
    counts: Dict[str, int] = OrderedDict()
    for gender in genders:
        counts[gender] = counts.get(gender, 0) + 1

    dominant = None
    best = 0
    for gender, count in counts.items():
        if count > best:
            dominant = gender
            best = count
    return dominant


# ----------------------------
# Constructive mixing
# ----------------------------

class _GroupUnderConstruction:
    def __init__(self, target_size: int):
        self.target_size = target_size
        self.member_ids: List[str] = []
        self.gender_counts: Dict[str, int] = {}

    def is_full(self) -> bool:
        return len(self.member_ids) >= self.target_size

    def add(self, person_id: str, gender: str) -> None:
        self.member_ids.append(person_id)
        self.gender_counts[gender] = self.gender_counts.get(gender, 0) + 1


def _select_mixed_group(groups: List[_GroupUnderConstruction], gender: str, rng: random.Random) -> _GroupUnderConstruction:
    """
    Pick the open group with the fewest members of this gender,
    then the smallest one, then flip a coin.
    """
    candidates = [g for g in groups if not g.is_full()]
    if not candidates:
        return groups[0]

    best = candidates[0]
    for candidate in candidates[1:]:
        candidate_count = candidate.gender_counts.get(gender, 0)
        best_count = best.gender_counts.get(gender, 0)
        if candidate_count < best_count:
            best = candidate
        elif candidate_count == best_count:
            if len(candidate.member_ids) < len(best.member_ids):
                best = candidate
            elif len(candidate.member_ids) == len(best.member_ids) and rng.random() < 0.5:
                best = candidate
    return best


def build_mixed_gender_groups(
    people: Sequence[PersonDTO],
    group_size: int,
    allow_partial_groups: bool = True,
    rng: Optional[random.Random] = None,
) -> MemberGroups:
    """
    Build groups that spread every gender as evenly as possible.

    Group capacities come from calculate_target_group_sizes, so the sizes match
    a plain random partition of the same population.
    """
    rng = rng or random.Random()
    sizes = calculate_target_group_sizes(len(people), group_size, allow_partial_groups)
    groups = [_GroupUnderConstruction(size) for size in sizes]
    if not groups:
        return []

    buckets = bucket_by_gender(people)
    for bucket in buckets.values():
        rng.shuffle(bucket)

    # largest bucket first; sorted() is stable so equal buckets keep first-seen order
    for gender, bucket in sorted(buckets.items(), key=lambda kv: len(kv[1]), reverse=True):
        while bucket:
            person = bucket.pop()
            _select_mixed_group(groups, gender, rng).add(person.id, gender)

    return [g.member_ids for g in groups]


# ----------------------------
# Post-hoc declustering
# ----------------------------

def decluster_genders(groups: MemberGroups, people_by_id: Dict[str, PersonDTO]) -> int:
    """
    Single pass over every pair of groups: when both share a dominant gender,
    swap one member of that gender from the first group with one member of
    another gender from the second. Mutates groups in place.

    Returns:
        Number of swaps made
    """
    def genders(members: Sequence[str]) -> List[str]:
        return [gender_of(people_by_id.get(pid)) for pid in members]

    swaps = 0
    for i in range(len(groups)):
        for j in range(i + 1, len(groups)):
            group_a = groups[i]
            group_b = groups[j]
            genders_a = genders(group_a)
            genders_b = genders(group_b)

            dominant_a = dominant_gender(genders_a)
            dominant_b = dominant_gender(genders_b)
            if dominant_a is None or dominant_a != dominant_b:
                continue

            index_a = next((k for k, g in enumerate(genders_a) if g == dominant_a), None)
            index_b = next((k for k, g in enumerate(genders_b) if g != dominant_b), None)
            if index_a is None or index_b is None:
                continue

            group_a[index_a], group_b[index_b] = group_b[index_b], group_a[index_a]
            swaps += 1

    return swaps


# ----------------------------
# Steps
# ----------------------------

class GenderBalancingStep:
    """Shapes the output of a base algorithm according to a gender mode."""
    mode: GenderMode

    def apply(self, people: Sequence[PersonDTO], base: Algorithm) -> MemberGroups:
        raise NotImplementedError


class NoGenderBalancing(GenderBalancingStep):
    mode = GenderMode.IGNORE

    def apply(self, people, base):
        return base(people)


class SingleGenderBucketing(GenderBalancingStep):
    mode = GenderMode.SINGLE

    def apply(self, people, base):
        groups = []
        for bucket in bucket_by_gender(people).values():
            groups.extend(base(bucket))
        return groups


class ConstructiveMixing(GenderBalancingStep):
    """
    Replaces the base partition with a gender-spreading construction.
    Only valid when the base algorithm is a plain random partition.
    """
    mode = GenderMode.MIXED

    def __init__(self, group_size: int, allow_partial_groups: bool = True, rng: Optional[random.Random] = None):
        self.group_size = group_size
        self.allow_partial_groups = allow_partial_groups
        self.rng = rng

    def apply(self, people, base):
        return build_mixed_gender_groups(people, self.group_size, self.allow_partial_groups, self.rng)


class PostHocDeclustering(GenderBalancingStep):
    """Lets the base algorithm finish, then declusters in a single pass."""
    mode = GenderMode.MIXED

    def apply(self, people, base):
        groups = base(people)
        decluster_genders(groups, {p.id: p for p in people})
        return groups


def select_gender_step(
    mode: GenderMode,
    constructive: bool,
    group_size: int,
    allow_partial_groups: bool = True,
    rng: Optional[random.Random] = None,
) -> GenderBalancingStep:
    """
    Choose the step for a gender mode.

    constructive tells whether the base algorithm is a plain partition that
    can be replaced by the constructive builder; searches that need a complete
    partition to work on get the post-hoc variant instead.
    """
    mode = GenderMode(mode)
    if mode == GenderMode.SINGLE:
        return SingleGenderBucketing()
    if mode == GenderMode.MIXED:
        if constructive:
            return ConstructiveMixing(group_size, allow_partial_groups, rng)
        return PostHocDeclustering()
    return NoGenderBalancing()
