"""Person data model"""

from pydantic import BaseModel
from typing import List, Optional

from .base import PersonType
from .relation import Relation


class Person(BaseModel):
    """A person in the fact graph

    The core only reads people (roster); it never mutates them.
    """
    id: str
    name: str
    nickname: Optional[str] = None
    person_type: PersonType = PersonType.PRIMARY
    relations: List[Relation] = []

    @property
    def first_name(self) -> str:
        parts = self.name.split()
        return parts[0] if parts else ""

    def matches_full_name(self, name: str) -> bool:
        return _norm(self.name) == _norm(name) and bool(_norm(name))

    def matches_name(self, name: str) -> bool:
        """Full name, first name or nickname match (case-insensitive)"""
        key = _norm(name)
        if not key:
            return False
        if key == _norm(self.name):
            return True
        if self.nickname and key == _norm(self.nickname):
            return True
        return key == _norm(self.first_name)


def _norm(value: Optional[str]) -> str:
    return " ".join((value or "").lower().split())
