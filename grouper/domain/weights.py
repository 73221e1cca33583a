# grouper/domain/weights.py
"""
Balancing numeric attributes across groups.

Weight ids are either keys of PersonDTO.weights or indicator ids. Indicator
ids are the ones a categorical sentinel such as "__gender__" expands into,
one "attribute:category" id per category; each counts 1 for a person whose
attribute equals the category and 0 otherwise. Every other id, colons
included, is looked up in PersonDTO.weights.

The balancer is a greedy pairwise descent: for every pair of groups it
commits the single swap that most reduces the pair's summed absolute
difference. Candidate swaps are scored on immutable weight vectors, nothing
is mutated until a swap is chosen.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging

from grouper.domain.errors import NoWeightsSelectedError
from grouper.domain.grouping import MemberGroups
from grouper.domain.models import Gender, PersonDTO

logger = logging.getLogger(__name__)

GENDER_WEIGHT_ID = "__gender__"

# sentinel -> (person attribute, categories)
CATEGORICAL_WEIGHTS: Dict[str, Tuple[str, List[str]]] = {
    GENDER_WEIGHT_ID: ("gender", [g.value for g in Gender]),
}

# indicator id -> (person attribute, category); only ids listed here are indicators
INDICATOR_WEIGHTS: Dict[str, Tuple[str, str]] = {
    f"{attribute}:{category}": (attribute, category)
    for attribute, categories in CATEGORICAL_WEIGHTS.values()
    for category in categories
}

WeightVector = Tuple[float, ...]

# can_swap(member_a, member_b) -> whether the two may trade groups
SwapFilter = Callable[[str, str], bool]


@dataclass
class BalanceReport:
    iterations: int
    swaps: int
    imbalance_before: float
    imbalance_after: float


def expand_weight_ids(weight_ids: Sequence[str]) -> List[str]:
    """
    Replace categorical sentinels with one indicator id per category.

    Example:
    >>> expand_weight_ids(["skill", "__gender__"])
    ['skill', 'gender:female', 'gender:male', 'gender:nonbinary', 'gender:unspecified']
    """
    expanded = []
    for weight_id in weight_ids:
        if weight_id in CATEGORICAL_WEIGHTS:
            attribute, categories = CATEGORICAL_WEIGHTS[weight_id]
            ids = [f"{attribute}:{category}" for category in categories]
        else:
            ids = [weight_id]
        expanded.extend(i for i in ids if i not in expanded)
    return expanded


def require_weight_ids(weight_ids: Sequence[str]) -> List[str]:
    expanded = expand_weight_ids(weight_ids)
    if not expanded:
        raise NoWeightsSelectedError()
    return expanded


def person_weight(person: PersonDTO, weight_id: str) -> float:
    """Indicator ids resolve against the person attribute; any other id is a key of person.weights."""
    indicator = INDICATOR_WEIGHTS.get(weight_id)
    if indicator is not None:
        attribute, category = indicator
        value = getattr(person, attribute)
        value = getattr(value, "value", value)
        return 1.0 if value == category else 0.0
    return float(person.weights.get(weight_id, 0))


def weight_vectors(people: Sequence[PersonDTO], weight_ids: Sequence[str]) -> Dict[str, WeightVector]:
    return {p.id: tuple(person_weight(p, w) for w in weight_ids) for p in people}


def _zero(size: int) -> List[float]:
    return [0.0] * size


def group_totals(members: Sequence[str], vectors: Dict[str, WeightVector], size: int) -> WeightVector:
    totals = _zero(size)
    for member_id in members:
        vector = vectors.get(member_id)
        if vector is None:
            continue
        for k, value in enumerate(vector):
            totals[k] += value
    return tuple(totals)


def totals_difference(totals_a: WeightVector, totals_b: WeightVector) -> float:
    return sum(abs(a - b) for a, b in zip(totals_a, totals_b))


def swap_difference(
    totals_a: WeightVector,
    totals_b: WeightVector,
    vector_a: WeightVector,
    vector_b: WeightVector,
) -> float:
    """Pair difference if the owners of vector_a and vector_b traded groups."""
    return sum(
        abs((ta - va + vb) - (tb - vb + va))
        for ta, tb, va, vb in zip(totals_a, totals_b, vector_a, vector_b)
    )


def _best_swap(
    group_a: Sequence[str],
    group_b: Sequence[str],
    vectors: Dict[str, WeightVector],
    size: int,
    can_swap: Optional[SwapFilter],
) -> Optional[Tuple[int, int, float]]:
    totals_a = group_totals(group_a, vectors, size)
    totals_b = group_totals(group_b, vectors, size)
    diff_before = totals_difference(totals_a, totals_b)
    zero = tuple(_zero(size))

    best = None
    for ia, member_a in enumerate(group_a):
        vector_a = vectors.get(member_a, zero)
        for ib, member_b in enumerate(group_b):
            if can_swap is not None and not can_swap(member_a, member_b):
                continue
            diff_after = swap_difference(totals_a, totals_b, vector_a, vectors.get(member_b, zero))
            if diff_after < diff_before and (best is None or diff_after < best[2]):
                best = (ia, ib, diff_after)
    return best


def total_imbalance(groups: MemberGroups, people: Sequence[PersonDTO], weight_ids: Sequence[str]) -> float:
    """Sum of the pair difference over every pair of groups."""
    vectors = weight_vectors(people, weight_ids)
    totals = [group_totals(members, vectors, len(weight_ids)) for members in groups]
    return sum(
        totals_difference(totals[i], totals[j])
        for i in range(len(totals))
        for j in range(i + 1, len(totals))
    )


def balance_weights(
    groups: MemberGroups,
    people: Sequence[PersonDTO],
    weight_ids: Sequence[str],
    max_iterations: int = 150,
    can_swap: Optional[SwapFilter] = None,
) -> BalanceReport:
    """
    Swap members between groups until no pair of groups can be improved
    or max_iterations passes have been made. Mutates groups in place.

    Args:
        groups: member-id groups to rebalance
        people: population, used to look up weights
        weight_ids: already expanded weight ids
        max_iterations: hard cap on full passes over all group pairs
        can_swap: optional filter rejecting candidate swaps

    Returns:
        BalanceReport with pass/swap counts and total imbalance before and after
    """
    vectors = weight_vectors(people, weight_ids)
    size = len(weight_ids)
    before = total_imbalance(groups, people, weight_ids)

    iterations = 0
    swaps = 0
    while iterations < max_iterations:
        iterations += 1
        improved = False
        for i in range(len(groups)):
            for j in range(i + 1, len(groups)):
                best = _best_swap(groups[i], groups[j], vectors, size, can_swap)
                if best is None:
                    continue
                ia, ib, _ = best
                groups[i][ia], groups[j][ib] = groups[j][ib], groups[i][ia]
                swaps += 1
                improved = True
        if not improved:
            break

    after = total_imbalance(groups, people, weight_ids)
    logger.debug(f"Weight balancing: {swaps} swaps in {iterations} passes, imbalance {before} -> {after}")
    return BalanceReport(iterations=iterations, swaps=swaps, imbalance_before=before, imbalance_after=after)
