"""Relation (fact) data model"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from .base import RelationType, RelationStatus, Intensity


def _coerce_enum_token(value):
    """'likes' / 'sensitive-to' / 'Sensitive To' -> 'LIKES' / 'SENSITIVE_TO'"""
    if isinstance(value, str):
        return value.strip().upper().replace('-', '_').replace(' ', '_')
    return value


def _coerce_value_token(value):
    """'Very-Strong' / 'very strong' -> 'very_strong'; blank strings become None"""
    if isinstance(value, str):
        value = value.strip().lower().replace('-', '_').replace(' ', '_')
        return value or None
    return value


class Relation(BaseModel):
    """A typed fact: subject -> relation_type -> object_label

    Manual entries carry confidence 1.0; extracted ones carry less and are
    screened for conflicts before being committed as current.
    status=None means "not specified" and is treated as current on commit.
    """
    id: Optional[str] = None
    subject_id: str = ""
    relation_type: RelationType
    object_label: str = ""
    object_type: Optional[str] = None
    intensity: Optional[Intensity] = None
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    status: Optional[RelationStatus] = None
    category: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    source: str = "manual"

    @field_validator('relation_type', mode='before')
    @classmethod
    def _normalize_relation_type(cls, value):
        return _coerce_enum_token(value)

    @field_validator('intensity', 'status', mode='before')
    @classmethod
    def _normalize_lowercase_enum(cls, value):
        return _coerce_value_token(value)

    @field_validator('object_label', mode='before')
    @classmethod
    def _none_label_to_empty(cls, value):
        return "" if value is None else value

    @property
    def effective_status(self) -> RelationStatus:
        return self.status or RelationStatus.CURRENT

    @property
    def is_past(self) -> bool:
        return self.status == RelationStatus.PAST

    def with_status(self, status: RelationStatus) -> 'Relation':
        """Return a copy carrying the given status"""
        return self.model_copy(update={'status': status})

    def describe(self) -> str:
        return f'{self.relation_type.value} "{self.object_label}"'
