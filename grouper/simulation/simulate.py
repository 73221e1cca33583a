# grouper/simulation/simulate.py
"""
Simulation script: creates a fake population with preferences and weights,
then runs every strategy in every gender mode and prints a summary.

Uses the service directly (no HTTP calls).
"""

import logging
import random
from faker import Faker

from grouper.config.settings import settings
from grouper.domain.models import Gender, GenderMode, GroupingSettings, GroupingStrategy, PersonDTO, PreferenceEntry
from grouper.domain.scoring import calculate_max_possible_score
from grouper.services.grouping_service import GroupingService

NUM_PEOPLE = 30
GROUP_SIZE = 4
WANTS_PER_PERSON = 2
AVOIDS_PER_PERSON = 1
WEIGHT_IDS = ["skill", "__gender__"]


def make_population(num_people=NUM_PEOPLE, seed=None):
    fake = Faker()
    rng = random.Random(seed)
    if seed is not None:
        fake.seed_instance(seed)

    people = []
    for i in range(num_people):
        people.append(PersonDTO(
            id=f"p-{i + 1}",
            name=fake.name(),
            email=fake.email(),
            gender=rng.choice(list(Gender)),
            weights={"skill": float(rng.randint(1, 10))},
        ))

    ids = [p.id for p in people]
    preferences = {}
    for p in people:
        others = [pid for pid in ids if pid != p.id]
        picked = rng.sample(others, min(len(others), WANTS_PER_PERSON + AVOIDS_PER_PERSON))
        preferences[p.id] = PreferenceEntry(
            want_with=picked[:WANTS_PER_PERSON],
            avoid=picked[WANTS_PER_PERSON:],
        )
    return people, preferences


def run_simulation(num_people=NUM_PEOPLE, group_size=GROUP_SIZE, seed=None):
    people, preferences = make_population(num_people, seed)
    service = GroupingService(rng=random.Random(seed))
    max_score = calculate_max_possible_score(len(people), group_size)

    results = {}
    for strategy in GroupingStrategy:
        for mode in GenderMode:
            grouping_settings = GroupingSettings(
                strategy=strategy,
                group_size=group_size,
                gender_mode=mode,
                weight_ids=WEIGHT_IDS if strategy == GroupingStrategy.WEIGHTED else [],
            )
            result = service.create_groups(people, grouping_settings, preferences=preferences)
            results[(strategy, mode)] = result

            line = f"{strategy.value:<17} {mode.value:<7} {len(result.groups)} groups"
            if result.overall_satisfaction is not None and max_score:
                line += f", satisfaction {result.overall_satisfaction} ({100 * result.overall_satisfaction / max_score:.1f}%)"
            print(line)

    return results


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    run_simulation()
