# grouper/domain/grouping.py

from typing import List, Callable, Sequence
from dataclasses import dataclass

from grouper.domain.models import PersonDTO


@dataclass
class AnnealingSchedule:
    initial_temperature: float = 100.0
    cooling_rate: float = 0.95
    min_temperature: float = 0.01
    max_iterations: int = 1000


# groups are handled as plain member-id lists inside the domain layer;
# the service wraps them into GroupDTOs at the end of a run
MemberGroups = List[List[str]]

# each base algorithm must implement:
# def algorithm(people: Sequence[PersonDTO]) -> MemberGroups
# the service binds group size, rng and strategy-specific inputs with closures

Algorithm = Callable[[Sequence[PersonDTO]], MemberGroups]


def copy_groups(groups: MemberGroups) -> MemberGroups:
    return [list(members) for members in groups]


def member_count(groups: MemberGroups) -> int:
    return sum(len(members) for members in groups)
