"""Shared fixtures for the friends test-suite"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from friends.models import Relation, Person


class FakeClock:
    """Manually advanced clock (seconds)"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def rel(relation_type, label, subject_id="p1", **kwargs) -> Relation:
    return Relation(subject_id=subject_id, relation_type=relation_type,
                    object_label=label, **kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def roster():
    return [
        Person(id="sarah-1", name="Sarah Jones"),
        Person(id="sarah-2", name="Sarah Lee", nickname="Sal"),
        Person(id="xavier-1", name="Xavier Dolan"),
        Person(id="ola-1", name="Ola Kowalska"),
    ]
