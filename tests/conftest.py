# tests/conftest.py
import random

import pytest
from faker import Faker

from grouper.domain.models import Gender, PersonDTO

FAKE = Faker()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def make_people():
    """
    Factory for PersonDTOs with fake names.

    make_people(3, Gender.MALE, prefix="m") -> m-1, m-2, m-3
    """
    def _make(count, gender=Gender.UNSPECIFIED, prefix="p", weights=None):
        return [
            PersonDTO(
                id=f"{prefix}-{i + 1}",
                name=FAKE.name(),
                gender=gender,
                weights=dict(weights or {}),
            )
            for i in range(count)
        ]
    return _make


@pytest.fixture
def fifteen_and_fifteen(make_people):
    return make_people(15, Gender.MALE, "m") + make_people(15, Gender.FEMALE, "f")
