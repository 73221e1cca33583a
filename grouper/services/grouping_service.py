import logging
import random
import uuid
from functools import partial
from typing import List, Optional, Sequence

from grouper.config.settings import settings as app_settings
from grouper.domain.annealing import anneal_groups
from grouper.domain.errors import InvalidConfigurationError, PreferencesRequiredError, UnknownStrategyError
from grouper.domain.gender import decluster_genders, gender_of, select_gender_step
from grouper.domain.grouping import AnnealingSchedule, MemberGroups
from grouper.domain.models import (
    GenderMode,
    GroupDTO,
    GroupingResult,
    GroupingSettings,
    GroupingStrategy,
    GroupSizeSuggestion,
    GroupStatistics,
    PersonDTO,
    PreferenceMap,
    PreferenceScoring,
    ValidationResult,
)
from grouper.domain.ordering import normalize_member_order
from grouper.domain.partition import partition_people
from grouper.domain.scoring import PreferenceScorer
from grouper.domain.validation import get_group_statistics, suggest_group_sizes, validate_settings
from grouper.domain.weights import balance_weights, require_weight_ids

logger = logging.getLogger(__name__)


class GroupingService:
    def __init__(self, rng: Optional[random.Random] = None, schedule: Optional[AnnealingSchedule] = None,
                 balance_max_iterations: Optional[int] = None, default_locale: Optional[str] = None):
        self.rng = rng if rng is not None else random.Random()
        if schedule is None:
            schedule = AnnealingSchedule(
                initial_temperature=app_settings.ANNEALING_INITIAL_TEMPERATURE,
                cooling_rate=app_settings.ANNEALING_COOLING_RATE,
                min_temperature=app_settings.ANNEALING_MIN_TEMPERATURE,
                max_iterations=app_settings.ANNEALING_MAX_ITERATIONS,
            )
        self.schedule = schedule
        if balance_max_iterations is None:
            balance_max_iterations = app_settings.BALANCE_MAX_ITERATIONS
        self.balance_max_iterations = balance_max_iterations
        self.default_locale = default_locale if default_locale is not None else app_settings.LOCALE_DEFAULT

    def create_groups(
        self,
        people: Sequence[PersonDTO],
        settings: GroupingSettings,
        preferences: Optional[PreferenceMap] = None,
        preference_scoring: Optional[PreferenceScoring] = None,
        locale: Optional[str] = None,
    ) -> GroupingResult:
        """
        Run one grouping.

        Configuration is checked before any randomness is drawn, so a failing
        call leaves the caller's data and the rng untouched.
        """
        strategy = self._resolve_strategy(settings.strategy)
        if settings.group_size < 1:
            raise InvalidConfigurationError({"groupSize": settings.group_size})
        if strategy == GroupingStrategy.PREFERENCE_BASED and preferences is None:
            raise PreferencesRequiredError()
        weight_ids = require_weight_ids(settings.weight_ids) if strategy == GroupingStrategy.WEIGHTED else []

        scoring = preference_scoring or PreferenceScoring(
            want_with=app_settings.WANT_WITH_SCORE, avoid=app_settings.AVOID_SCORE
        )
        gender_mode = GenderMode(settings.gender_mode)
        people = list(people)

        if strategy == GroupingStrategy.RANDOM:
            member_groups = self._random_groups(people, settings, gender_mode)
        elif strategy == GroupingStrategy.PREFERENCE_BASED:
            member_groups = self._preference_groups(people, settings, gender_mode, preferences, scoring)
        else:
            member_groups = self._weighted_groups(people, settings, gender_mode, weight_ids)

        normalize_member_order(member_groups, people, locale or self.default_locale)

        groups = [
            GroupDTO(id=str(uuid.uuid4()), name=f"Group {i + 1}", member_ids=members)
            for i, members in enumerate(member_groups)
        ]

        overall = None
        if strategy == GroupingStrategy.PREFERENCE_BASED:
            # gender steps may have moved people after the search; score the final membership
            scorer = PreferenceScorer(preferences, scoring)
            for group in groups:
                group.satisfaction_score = scorer.score_group(group.member_ids)
            overall = sum(group.satisfaction_score for group in groups)

        logger.info(
            f"Grouped {len(people)} people into {len(groups)} groups "
            f"(strategy={strategy.value}, gender_mode={gender_mode.value})"
        )
        return GroupingResult(
            groups=groups,
            strategy=strategy,
            settings=settings,
            overall_satisfaction=overall,
        )

    @staticmethod
    def _resolve_strategy(value) -> GroupingStrategy:
        try:
            return GroupingStrategy(value)
        except ValueError:
            raise UnknownStrategyError(value) from None

    def _partitioner(self, settings: GroupingSettings):
        return partial(
            partition_people,
            group_size=settings.group_size,
            allow_partial_groups=settings.allow_partial_groups,
            rng=self.rng,
        )

    def _gender_step(self, settings: GroupingSettings, gender_mode: GenderMode, constructive: bool):
        return select_gender_step(
            gender_mode, constructive, settings.group_size, settings.allow_partial_groups, self.rng
        )

    def _random_groups(self, people, settings, gender_mode) -> MemberGroups:
        step = self._gender_step(settings, gender_mode, constructive=True)
        return step.apply(people, self._partitioner(settings))

    def _preference_groups(self, people, settings, gender_mode, preferences, scoring) -> MemberGroups:
        def anneal(population):
            result = anneal_groups(
                population,
                preferences,
                scoring,
                group_size=settings.group_size,
                allow_partial_groups=settings.allow_partial_groups,
                rng=self.rng,
                schedule=self.schedule,
            )
            logger.debug(
                f"Annealing over {len(population)} people: "
                f"{result.initial_score} -> {result.score} in {result.iterations} iterations"
            )
            return result.groups

        step = self._gender_step(settings, gender_mode, constructive=False)
        return step.apply(people, anneal)

    def _weighted_groups(self, people, settings, gender_mode, weight_ids) -> MemberGroups:
        step = self._gender_step(settings, gender_mode, constructive=True)
        groups = step.apply(people, self._partitioner(settings))

        people_by_id = {p.id: p for p in people}
        can_swap = None
        if gender_mode == GenderMode.MIXED:
            decluster_genders(groups, people_by_id)
        elif gender_mode == GenderMode.SINGLE:
            # keep single-gender groups homogeneous
            def can_swap(a, b):
                return gender_of(people_by_id.get(a)) == gender_of(people_by_id.get(b))

        report = balance_weights(groups, people, weight_ids, self.balance_max_iterations, can_swap)
        logger.debug(
            f"Balanced {len(weight_ids)} weights: {report.swaps} swaps, "
            f"imbalance {report.imbalance_before} -> {report.imbalance_after}"
        )
        return groups

    # ----------------------------
    # Helpers for callers
    # ----------------------------

    def validate_settings(self, people_count: int, settings: GroupingSettings) -> ValidationResult:
        return validate_settings(people_count, settings)

    def calculate_satisfaction(self, groups: List[GroupDTO], preferences: PreferenceMap,
                               scoring: Optional[PreferenceScoring] = None) -> float:
        return PreferenceScorer(preferences, scoring).score_groups([g.member_ids for g in groups])

    def get_group_statistics(self, groups: List[GroupDTO]) -> GroupStatistics:
        return get_group_statistics([g.member_ids for g in groups])

    def suggest_group_sizes(self, people_count: int) -> List[GroupSizeSuggestion]:
        return suggest_group_sizes(people_count)
