"""
friends - knowledge-consistency core for a personal relationship tracker

Keeps the facts recorded about people consistent: throttles the extraction
step, checks new facts against what is already known, and refuses to guess
which person a name refers to.

Usage:
    from friends import Relation, detect_conflicts

    existing = [Relation(subject_id="p1", relation_type="IS", object_label="vegan")]
    candidate = Relation(subject_id="p1", relation_type="LIKES", object_label="cheese")
    conflicts = detect_conflicts(candidate, existing)
"""

from .version import __version__
from .config import RateLimitConfig, AutoAcceptConfig
from .models import Person, Relation, RelationType, Severity, DetectedConflict
from .graph import (
    ConflictDetector,
    detect_conflicts,
    validate_relation,
    can_add_relation,
    filter_conflicting_relations,
)
from .processor import AmbiguityResolver, StoryPipeline, ExtractionValidationError
from .storage import FactStore, InMemoryFactStore
from .utils import ExtractionRateLimiter

__all__ = [
    '__version__',
    'RateLimitConfig',
    'AutoAcceptConfig',
    'Person',
    'Relation',
    'RelationType',
    'Severity',
    'DetectedConflict',
    'ConflictDetector',
    'detect_conflicts',
    'validate_relation',
    'can_add_relation',
    'filter_conflicting_relations',
    'AmbiguityResolver',
    'StoryPipeline',
    'ExtractionValidationError',
    'FactStore',
    'InMemoryFactStore',
    'ExtractionRateLimiter',
]
