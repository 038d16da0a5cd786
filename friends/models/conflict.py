"""Conflict detection and resolution data models

All of these are ephemeral values: computed on demand, consumed by triage
or shown to the user, never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from .base import (
    ConflictType, Severity, SuggestedResolution, ResolutionActionType
)
from .relation import Relation


@dataclass
class DetectedConflict:
    """A conflict between one candidate relation and one existing relation"""
    conflict_type: ConflictType
    severity: Severity
    description: str
    reasoning: str
    existing_relation: Optional[Relation] = None
    new_relation: Optional[Relation] = None
    suggested_resolution: SuggestedResolution = SuggestedResolution.USER_REVIEW_REQUIRED
    auto_resolvable: bool = False
    source: str = "local"       # local | ai

    @property
    def existing_relation_id(self) -> Optional[str]:
        return self.existing_relation.id if self.existing_relation else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.conflict_type.value,
            'severity': self.severity.value,
            'description': self.description,
            'reasoning': self.reasoning,
            'existing_relation': _relation_brief(self.existing_relation),
            'new_relation': _relation_brief(self.new_relation),
            'suggested_resolution': self.suggested_resolution.value,
            'auto_resolvable': self.auto_resolvable,
            'source': self.source,
        }


def _relation_brief(relation: Optional[Relation]) -> Optional[Dict[str, Any]]:
    if relation is None:
        return None
    return {
        'id': relation.id,
        'relation_type': relation.relation_type.value,
        'object_label': relation.object_label,
    }


@dataclass
class RelationValidation:
    """Result of validating one candidate relation"""
    valid: bool
    conflicts: List[DetectedConflict] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    requires_user_review: bool = False


@dataclass
class AddDecision:
    """Whether a candidate relation may be committed"""
    can_add: bool
    conflicts: List[DetectedConflict] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    requires_user_review: bool = False


@dataclass
class ResolutionAction:
    """Concrete action for one conflict"""
    action: ResolutionActionType
    description: str
    affected_relation_ids: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ConflictTriage:
    """Conflicts partitioned into blockers and auto-resolvable ones"""
    critical_conflicts: List[DetectedConflict] = field(default_factory=list)
    resolvable_conflicts: List[DetectedConflict] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    suggested_actions: List[ResolutionAction] = field(default_factory=list)


@dataclass
class BlockedRelation:
    """A candidate rejected by the batch gate, with the conflict that blocked it"""
    relation: Relation
    conflict: DetectedConflict


@dataclass
class FilterResult:
    """Batch gate output"""
    safe: List[Relation] = field(default_factory=list)
    conflicts: List[BlockedRelation] = field(default_factory=list)


@dataclass
class ResolutionPlan:
    """Decisions for the external fact-store writer

    insert:        candidates to commit
    mark_past_ids: existing relations to demote to status "past"
    rejected:      candidates to leave uncommitted
    needs_review:  candidates waiting for the user
    """
    insert: List[Relation] = field(default_factory=list)
    mark_past_ids: List[str] = field(default_factory=list)
    rejected: List[Relation] = field(default_factory=list)
    needs_review: List[Relation] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.insert or self.mark_past_ids or self.rejected or self.needs_review)
