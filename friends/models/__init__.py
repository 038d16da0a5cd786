"""friends data models"""

from .base import (
    RelationType,
    Intensity,
    RelationStatus,
    PersonType,
    ConflictType,
    Severity,
    SuggestedResolution,
    ResolutionActionType,
)
from .relation import Relation
from .person import Person

# === Conflict engine ===
from .conflict import (
    DetectedConflict,
    RelationValidation,
    AddDecision,
    ResolutionAction,
    ConflictTriage,
    BlockedRelation,
    FilterResult,
    ResolutionPlan,
)

# === Extraction boundary ===
from .extraction import (
    ExtractedPerson,
    ExtractedRelation,
    ConflictRelationRef,
    ExtractionConflict,
    PossibleMatch,
    AmbiguousMatch,
    ExtractionResult,
)

# === Rate limiting ===
from .rate_limit import RateLimitStatus

__all__ = [
    # enums
    'RelationType',
    'Intensity',
    'RelationStatus',
    'PersonType',
    'ConflictType',
    'Severity',
    'SuggestedResolution',
    'ResolutionActionType',

    # fact graph
    'Relation',
    'Person',

    # conflict engine
    'DetectedConflict',
    'RelationValidation',
    'AddDecision',
    'ResolutionAction',
    'ConflictTriage',
    'BlockedRelation',
    'FilterResult',
    'ResolutionPlan',

    # extraction boundary
    'ExtractedPerson',
    'ExtractedRelation',
    'ConflictRelationRef',
    'ExtractionConflict',
    'PossibleMatch',
    'AmbiguousMatch',
    'ExtractionResult',

    # rate limiting
    'RateLimitStatus',
]
