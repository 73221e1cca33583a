# grouper/domain/annealing.py
"""
Preference-based grouping with simulated annealing.

Starts from a random partition and wanders through neighbouring partitions
(one member swapped between two groups), always accepting improvements and
accepting worse moves with probability exp(delta / temperature). The best
partition seen is kept aside, so the returned score is never below the score
of the starting partition.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging
import math
import random

from grouper.domain.errors import PreferencesRequiredError
from grouper.domain.grouping import AnnealingSchedule, MemberGroups, copy_groups
from grouper.domain.models import PersonDTO, PreferenceMap, PreferenceScoring
from grouper.domain.partition import check_group_size, partition_people
from grouper.domain.scoring import PreferenceScorer

logger = logging.getLogger(__name__)


@dataclass
class AnnealingResult:
    groups: MemberGroups
    score: float
    initial_score: float
    group_scores: List[float] = field(default_factory=list)
    iterations: int = 0
    accepted_moves: int = 0


def generate_neighbor(groups: MemberGroups, rng: random.Random) -> MemberGroups:
    """Copy groups and swap one random member between two distinct random groups."""
    neighbor = copy_groups(groups)
    if len(neighbor) < 2:
        return neighbor

    index1 = rng.randrange(len(neighbor))
    index2 = rng.randrange(len(neighbor))
    while index2 == index1:
        index2 = rng.randrange(len(neighbor))

    group1 = neighbor[index1]
    group2 = neighbor[index2]
    if not group1 or not group2:
        return neighbor

    member1 = rng.randrange(len(group1))
    member2 = rng.randrange(len(group2))
    group1[member1], group2[member2] = group2[member2], group1[member1]
    return neighbor


def accept_move(delta: float, temperature: float, rng: random.Random) -> bool:
    """Metropolis criterion."""
    if delta > 0:
        return True
    return rng.random() < math.exp(delta / temperature)


def anneal_groups(
    people: Sequence[PersonDTO],
    preferences: Optional[PreferenceMap],
    scoring: Optional[PreferenceScoring] = None,
    group_size: int = 4,
    allow_partial_groups: bool = True,
    rng: Optional[random.Random] = None,
    schedule: Optional[AnnealingSchedule] = None,
) -> AnnealingResult:
    """
    Search for a partition maximizing total preference satisfaction.

    Args:
        people: population to group
        preferences: want-with / avoid map, required
        scoring: point values for satisfied want-with and violated avoid pairs
        group_size: target group size
        allow_partial_groups: whether the last group may be smaller
        rng: random source, a fresh unseeded one when omitted
        schedule: temperature schedule and iteration cap

    Returns:
        AnnealingResult holding the best partition found and its score
    """
    if preferences is None:
        raise PreferencesRequiredError()
    check_group_size(group_size)

    rng = rng or random.Random()
    schedule = schedule or AnnealingSchedule()
    scorer = PreferenceScorer(preferences, scoring)

    if not people:
        return AnnealingResult(groups=[], score=0, initial_score=0)

    current_groups = partition_people(people, group_size, allow_partial_groups, rng)
    current_score = scorer.score_groups(current_groups)
    initial_score = current_score

    best_groups = copy_groups(current_groups)
    best_score = current_score

    temperature = schedule.initial_temperature
    iterations = 0
    accepted = 0

    while temperature > schedule.min_temperature and iterations < schedule.max_iterations:
        neighbor_groups = generate_neighbor(current_groups, rng)
        neighbor_score = scorer.score_groups(neighbor_groups)

        if accept_move(neighbor_score - current_score, temperature, rng):
            current_groups = neighbor_groups
            current_score = neighbor_score
            accepted += 1

            if current_score > best_score:
                best_groups = copy_groups(current_groups)
                best_score = current_score

        temperature *= schedule.cooling_rate
        iterations += 1

    logger.debug(
        f"Annealing finished after {iterations} iterations "
        f"({accepted} accepted): score {initial_score} -> {best_score}"
    )

    return AnnealingResult(
        groups=best_groups,
        score=best_score,
        initial_score=initial_score,
        group_scores=[scorer.score_group(members) for members in best_groups],
        iterations=iterations,
        accepted_moves=accepted,
    )
