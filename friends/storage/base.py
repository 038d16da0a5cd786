"""Fact store port

The core never owns persistence. Hosts implement FactStore over their own
database; InMemoryFactStore backs tests and small tools.

Design:
1. Minimal interface - only what conflict resolution needs
2. Relations are never deleted through this port, only demoted to past
"""

import uuid
from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, Iterable, List, Optional

from ..models import Relation, RelationStatus


class FactStore(ABC):
    """Storage interface consumed by apply_plan() and the story pipeline"""

    @abstractmethod
    def relations_for(self, subject_id: str) -> List[Relation]:
        """All relations of one person, including past ones"""
        pass

    @abstractmethod
    def insert(self, relation: Relation) -> Relation:
        """Store a relation and return it as stored (with an id)"""
        pass

    @abstractmethod
    def mark_past(self, relation_id: str) -> bool:
        """Demote a relation to status past

        Returns:
            False when no relation has this id.
        """
        pass


class InMemoryFactStore(FactStore):
    """Dictionary-backed FactStore"""

    def __init__(self, relations: Optional[Iterable[Relation]] = None):
        self._relations: Dict[str, Relation] = {}
        self._lock = Lock()
        for relation in relations or ():
            self.insert(relation)

    def relations_for(self, subject_id: str) -> List[Relation]:
        with self._lock:
            return [r for r in self._relations.values() if r.subject_id == subject_id]

    def all_relations(self) -> List[Relation]:
        with self._lock:
            return list(self._relations.values())

    def get(self, relation_id: str) -> Optional[Relation]:
        return self._relations.get(relation_id)

    def insert(self, relation: Relation) -> Relation:
        stored = relation if relation.id else relation.model_copy(
            update={'id': f"rel_{uuid.uuid4().hex[:12]}"}
        )
        with self._lock:
            self._relations[stored.id] = stored
        return stored

    def mark_past(self, relation_id: str) -> bool:
        with self._lock:
            relation = self._relations.get(relation_id)
            if relation is None:
                return False
            self._relations[relation_id] = relation.with_status(RelationStatus.PAST)
            return True

    def __len__(self) -> int:
        return len(self._relations)
