"""Extraction result data models

Shape of the candidate output produced by the (external) inference step.
Field names follow the wire format (camelCase); Python code uses the
snake_case attribute names.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict, Any
from datetime import datetime

from .base import RelationType, RelationStatus, Intensity, PersonType
from .relation import Relation, _coerce_enum_token, _coerce_value_token


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractedPerson(_WireModel):
    """A person proposed by the extraction step"""
    id: str
    name: str
    is_new: bool = False
    potential_duplicate_of: Optional[str] = None
    person_type: PersonType = PersonType.PRIMARY
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class ExtractedRelation(_WireModel):
    """A candidate relation proposed by the extraction step"""
    subject_id: str
    subject_name: str = ""
    relation_type: RelationType
    object_label: str
    object_type: Optional[str] = None
    intensity: Optional[Intensity] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    category: Optional[str] = None
    metadata: Dict[str, Any] = {}
    status: Optional[RelationStatus] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    source: str = "ai_extraction"

    @field_validator('relation_type', mode='before')
    @classmethod
    def _normalize_relation_type(cls, value):
        return _coerce_enum_token(value)

    @field_validator('intensity', 'status', mode='before')
    @classmethod
    def _normalize_lowercase_enum(cls, value):
        return _coerce_value_token(value)

    def to_relation(self) -> Relation:
        """Convert to the engine's Relation model"""
        return Relation(
            subject_id=self.subject_id,
            relation_type=self.relation_type,
            object_label=self.object_label,
            object_type=self.object_type,
            intensity=self.intensity,
            confidence=self.confidence,
            status=self.status,
            category=self.category,
            valid_from=self.valid_from,
            valid_to=self.valid_to,
            source=self.source,
        )


class ConflictRelationRef(_WireModel):
    """Partial relation echoed back inside an extraction conflict"""
    subject_id: Optional[str] = None
    relation_type: Optional[str] = None
    object_label: Optional[str] = None


class ExtractionConflict(_WireModel):
    """A conflict flagged by the extraction step itself

    The type is kept as free text; it is parsed leniently when merged with
    locally detected conflicts.
    """
    type: str = ""
    description: str
    reasoning: Optional[str] = None
    existing_relation_id: Optional[str] = None
    new_relation: Optional[ConflictRelationRef] = None


class PossibleMatch(_WireModel):
    """A roster candidate for an ambiguous mention"""
    id: str
    name: str
    reason: str = ""


class AmbiguousMatch(_WireModel):
    """A name mention that could refer to several roster people"""
    name_in_story: str
    possible_matches: List[PossibleMatch] = []


class ExtractionResult(_WireModel):
    """Complete candidate output for one story"""
    people: List[ExtractedPerson] = []
    relations: List[ExtractedRelation] = []
    conflicts: List[ExtractionConflict] = []
    ambiguous_matches: List[AmbiguousMatch] = []
    tokens_used: Optional[int] = None
    processing_time: Optional[float] = None

    # relations about ambiguous mentions, held back until the user decides
    pending_relations: List[ExtractedRelation] = Field(default=[], exclude=True)

    def ambiguous_names(self) -> List[str]:
        return [m.name_in_story for m in self.ambiguous_matches]
