# grouper/domain/partition.py
"""
Random partitioning of a population into groups.

Pure functions over plain lists; randomness always comes from an injected
random.Random so runs can be replayed in tests.

Functions included:
- calculate_target_group_sizes
- shuffle_people
- partition_people
"""
from typing import List, Optional, Sequence
import random

from grouper.domain.errors import InvalidConfigurationError
from grouper.domain.grouping import MemberGroups
from grouper.domain.models import PersonDTO


def check_group_size(group_size: int) -> None:
    if group_size < 1:
        raise InvalidConfigurationError({"groupSize": group_size})


def calculate_target_group_sizes(total_people: int, group_size: int, allow_partial_groups: bool = True) -> List[int]:
    """
    Sizes of the groups a population of total_people is cut into.

    With partial groups allowed (or an even division) the groups hold group_size
    members and the last one holds the remainder. Otherwise the remainder is
    dealt one by one over the groups, wrapping around when it exceeds the
    number of groups, so no group is smaller than group_size and the sizes
    always add up to total_people.

    Example:
    >>> calculate_target_group_sizes(7, 3, True)
    [3, 3, 1]
    >>> calculate_target_group_sizes(7, 3, False)
    [4, 3]
    >>> calculate_target_group_sizes(11, 4, False)
    [6, 5]
    """
    check_group_size(group_size)
    if total_people == 0:
        return []

    remainder = total_people % group_size
    number_of_full_groups = total_people // group_size

    if allow_partial_groups or remainder == 0 or number_of_full_groups == 0:
        # fewer people than one full group: everyone ends up together
        return [min(group_size, total_people - i) for i in range(0, total_people, group_size)]

    # round-robin, so a remainder larger than the group count still lands somewhere
    sizes = [group_size] * number_of_full_groups
    for i in range(remainder):
        sizes[i % number_of_full_groups] += 1
    return sizes


def shuffle_people(people: Sequence[PersonDTO], rng: Optional[random.Random] = None) -> List[PersonDTO]:
    """Return a shuffled copy of people (Fisher-Yates through rng.shuffle)."""
    rng = rng or random.Random()
    shuffled = list(people)
    rng.shuffle(shuffled)
    return shuffled


def partition_people(
    people: Sequence[PersonDTO],
    group_size: int,
    allow_partial_groups: bool = True,
    rng: Optional[random.Random] = None,
) -> MemberGroups:
    """
    Randomly partition people into member-id groups.

    Example:
    >>> people = [PersonDTO(id=str(i)) for i in range(7)]
    >>> [len(g) for g in partition_people(people, 3, False, random.Random(1))]
    [4, 3]
    """
    check_group_size(group_size)
    if not people:
        return []

    shuffled = shuffle_people(people, rng)
    groups = []
    idx = 0
    for size in calculate_target_group_sizes(len(shuffled), group_size, allow_partial_groups):
        groups.append([p.id for p in shuffled[idx: idx + size]])
        idx += size

    return groups
