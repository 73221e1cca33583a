# grouper/api/routers/groupings.py
"""
Grouping endpoints: run a grouping, validate settings, suggest sizes, describe groups.
The API keeps no state; callers own persistence of people and results.
"""
import random
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from grouper.config.settings import settings as app_settings
from grouper.domain.errors import GroupingError
from grouper.domain.models import (
    GroupDTO,
    GroupingResult,
    GroupingSettings,
    GroupSizeSuggestion,
    GroupStatistics,
    PersonDTO,
    PreferenceMap,
    PreferenceScoring,
    ValidationResult,
)
from grouper.services.grouping_service import GroupingService

router = APIRouter()


class CreateGroupingReq(BaseModel):
    people: List[PersonDTO] = Field(default_factory=list)
    settings: GroupingSettings = Field(default_factory=lambda: GroupingSettings(
        group_size=app_settings.GROUP_SIZE_DEFAULT,
        allow_partial_groups=app_settings.ALLOW_PARTIAL_GROUPS_DEFAULT,
        gender_mode=app_settings.GENDER_MODE_DEFAULT,
    ))
    preferences: Optional[PreferenceMap] = None
    preference_scoring: Optional[PreferenceScoring] = None
    locale: Optional[str] = None
    seed: Optional[int] = None


class ValidateReq(BaseModel):
    people_count: int
    settings: GroupingSettings


@router.post("/", response_model=GroupingResult, summary="Run the grouping algorithm for a population")
def create_grouping(req: CreateGroupingReq):
    service = GroupingService(rng=random.Random(req.seed) if req.seed is not None else None)
    try:
        return service.create_groups(
            req.people,
            req.settings,
            preferences=req.preferences,
            preference_scoring=req.preference_scoring,
            locale=req.locale,
        )
    except GroupingError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())


@router.post("/validate", response_model=ValidationResult, summary="Pre-flight check of grouping settings")
def validate(req: ValidateReq):
    return GroupingService().validate_settings(req.people_count, req.settings)


@router.get("/suggestions", response_model=List[GroupSizeSuggestion], summary="Suggest group sizes")
def suggestions(people_count: int):
    return GroupingService().suggest_group_sizes(people_count)


@router.post("/statistics", response_model=GroupStatistics, summary="Size statistics for a set of groups")
def statistics(groups: List[GroupDTO]):
    return GroupingService().get_group_statistics(groups)
