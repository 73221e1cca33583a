# grouper/domain/scoring.py
"""
Preference satisfaction scoring.

Only co-located pairs are scored. For every unordered pair (A, B) in a group
up to four contributions are added: A wants B, A avoids B, B wants A,
B avoids A. Preferences that cross group boundaries never count.
"""
from typing import Dict, Optional, Sequence, Tuple
import math

from grouper.domain.grouping import MemberGroups
from grouper.domain.models import PreferenceMap, PreferenceScoring, DEFAULT_PREFERENCE_SCORING


class PreferenceScorer:
    """
    Scores groups against a preference map.

    The map is flattened once into a directed pair table, so scoring a group
    costs one dict lookup per ordered pair.
    """

    def __init__(self, preferences: PreferenceMap, scoring: Optional[PreferenceScoring] = None):
        self.scoring = scoring or DEFAULT_PREFERENCE_SCORING
        self._pairs: Dict[Tuple[str, str], float] = {}
        for person_id, entry in preferences.items():
            for other_id in set(entry.want_with):
                self._add(person_id, other_id, self.scoring.want_with)
            for other_id in set(entry.avoid):
                self._add(person_id, other_id, self.scoring.avoid)

    def _add(self, person_id: str, other_id: str, value: float) -> None:
        key = (person_id, other_id)
        self._pairs[key] = self._pairs.get(key, 0) + value

    def score_group(self, member_ids: Sequence[str]) -> float:
        score = 0
        pairs = self._pairs
        for i, a in enumerate(member_ids):
            for b in member_ids[i + 1:]:
                score += pairs.get((a, b), 0) + pairs.get((b, a), 0)
        return score

    def score_groups(self, groups: MemberGroups) -> float:
        return sum(self.score_group(members) for members in groups)


def score_group(member_ids: Sequence[str], preferences: PreferenceMap, scoring: Optional[PreferenceScoring] = None) -> float:
    """
    Satisfaction score of a single group.

    Example:
    >>> prefs = {"a": PreferenceEntry(want_with=["b"]), "b": PreferenceEntry(avoid=["a"])}
    >>> score_group(["a", "b"], prefs, PreferenceScoring(want_with=5, avoid=-9))
    -4
    """
    return PreferenceScorer(preferences, scoring).score_group(member_ids)


def score_groups(groups: MemberGroups, preferences: PreferenceMap, scoring: Optional[PreferenceScoring] = None) -> float:
    """Total satisfaction: the sum of per-group scores."""
    return PreferenceScorer(preferences, scoring).score_groups(groups)


def calculate_max_possible_score(people_count: int, group_size: int, scoring: Optional[PreferenceScoring] = None) -> float:
    """
    Upper bound used to show satisfaction as a percentage.

    Every pair in every group wanting each other:
    ceil(people / size) groups * size*(size-1)/2 pairs * want_with * 2
    """
    if people_count <= 0 or group_size < 1:
        return 0
    scoring = scoring or DEFAULT_PREFERENCE_SCORING
    number_of_groups = math.ceil(people_count / group_size)
    pairs_per_group = group_size * (group_size - 1) / 2
    return number_of_groups * pairs_per_group * scoring.want_with * 2
