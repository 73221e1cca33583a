# grouper/domain/validation.py
"""
Pre-flight checks and descriptive helpers for grouping settings.

Nothing here raises: problems are reported as ValidationMessages carrying a
message key and interpolation params, for the caller to render.
"""
from typing import List, Sequence
import math

from grouper.domain.grouping import MemberGroups, member_count
from grouper.domain.models import (
    GroupingSettings,
    GroupingStrategy,
    GroupSizeSuggestion,
    GroupStatistics,
    ValidationMessage,
    ValidationResult,
)
from grouper.domain.weights import expand_weight_ids

SUGGESTED_GROUP_SIZES = [2, 3, 4, 5, 6]


def validate_settings(people_count: int, settings: GroupingSettings) -> ValidationResult:
    """
    Check settings against a population size.

    Errors block a run, warnings are advisory.

    Example:
    >>> r = validate_settings(7, GroupingSettings(group_size=3, allow_partial_groups=False))
    >>> [w.key for w in r.warnings]
    ['grouping.warnings.unevenDistributionOne']
    """
    errors: List[ValidationMessage] = []
    warnings: List[ValidationMessage] = []
    group_size = settings.group_size

    if people_count == 0:
        errors.append(ValidationMessage(key="grouping.errors.noPeople"))

    if group_size < 1:
        errors.append(ValidationMessage(key="grouping.errors.groupSizeMin"))

    if settings.strategy == GroupingStrategy.WEIGHTED and not expand_weight_ids(settings.weight_ids):
        errors.append(ValidationMessage(key="grouping.errors.noWeightsSelected"))

    if group_size > people_count:
        warnings.append(ValidationMessage(
            key="grouping.warnings.groupSizeLargerThanPeople",
            params={"groupSize": group_size, "peopleCount": people_count},
        ))

    remainder = people_count % group_size if group_size >= 1 else 0
    if remainder != 0 and not settings.allow_partial_groups:
        warnings.append(ValidationMessage(
            key="grouping.warnings.unevenDistributionOne" if remainder == 1
            else "grouping.warnings.unevenDistributionMany",
            params={"peopleCount": people_count, "groupSize": group_size, "remainder": remainder},
        ))
    elif remainder != 0:
        warnings.append(ValidationMessage(
            key="grouping.warnings.partialGroupOne" if remainder == 1
            else "grouping.warnings.partialGroupMany",
            params={"remainder": remainder, "groupSize": group_size},
        ))

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def get_group_statistics(groups: MemberGroups) -> GroupStatistics:
    if not groups:
        return GroupStatistics()

    sizes = [len(members) for members in groups]
    total = member_count(groups)
    return GroupStatistics(
        total_groups=len(groups),
        total_people=total,
        average_group_size=total / len(groups),
        min_group_size=min(sizes),
        max_group_size=max(sizes),
    )


def suggest_group_sizes(people_count: int, sizes: Sequence[int] = SUGGESTED_GROUP_SIZES) -> List[GroupSizeSuggestion]:
    """Common group sizes that fit the population, smallest first."""
    suggestions = []
    for size in sizes:
        if size > people_count:
            break
        remainder = people_count % size
        suggestions.append(GroupSizeSuggestion(
            group_size=size,
            number_of_groups=math.ceil(people_count / size),
            is_even_split=remainder == 0,
            remainder=remainder,
        ))
    return suggestions
