from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Dict, Optional, Union
from datetime import datetime, timezone


class Gender(str, Enum):
    FEMALE = "female"
    MALE = "male"
    NONBINARY = "nonbinary"
    UNSPECIFIED = "unspecified"


class GenderMode(str, Enum):
    MIXED = "mixed"
    SINGLE = "single"
    IGNORE = "ignore"


class GroupingStrategy(str, Enum):
    RANDOM = "RANDOM"
    PREFERENCE_BASED = "PREFERENCE_BASED"
    WEIGHTED = "WEIGHTED"


class PersonDTO(BaseModel):
    id: str
    name: str = ""
    email: Optional[str] = None
    gender: Gender = Gender.UNSPECIFIED
    weights: Dict[str, float] = Field(default_factory=dict)


class PreferenceEntry(BaseModel):
    want_with: List[str] = Field(default_factory=list)
    avoid: List[str] = Field(default_factory=list)


# person id -> what that person wants; directional
PreferenceMap = Dict[str, PreferenceEntry]


class PreferenceScoring(BaseModel):
    want_with: float = 2.0
    avoid: float = -2.0


DEFAULT_PREFERENCE_SCORING = PreferenceScoring()


class GroupDTO(BaseModel):
    id: str
    name: str
    member_ids: List[str] = Field(default_factory=list)
    satisfaction_score: Optional[float] = None


class GroupingSettings(BaseModel):
    # A plain string survives validation so the dispatcher can name it in UnknownStrategyError
    strategy: Union[GroupingStrategy, str] = GroupingStrategy.RANDOM
    group_size: int = 4
    allow_partial_groups: bool = True
    gender_mode: GenderMode = GenderMode.MIXED
    weight_ids: List[str] = Field(default_factory=list)


class GroupingResult(BaseModel):
    groups: List[GroupDTO] = Field(default_factory=list)
    strategy: Union[GroupingStrategy, str]
    settings: GroupingSettings
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    overall_satisfaction: Optional[float] = None


class ValidationMessage(BaseModel):
    key: str
    params: Dict[str, Union[int, float, str]] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[ValidationMessage] = Field(default_factory=list)
    warnings: List[ValidationMessage] = Field(default_factory=list)


class GroupStatistics(BaseModel):
    total_groups: int = 0
    total_people: int = 0
    average_group_size: float = 0.0
    min_group_size: int = 0
    max_group_size: int = 0


class GroupSizeSuggestion(BaseModel):
    group_size: int
    number_of_groups: int
    is_even_split: bool
    remainder: int
