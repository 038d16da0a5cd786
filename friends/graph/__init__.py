"""Conflict engine over the relation graph"""

from .conflict_detector import (
    ConflictDetector,
    ConflictRule,
    detect_conflicts,
    validate_relation,
    find_all_conflicts,
    explain_conflict,
    format_resolution,
    get_default_detector,
)
from .conflict_resolution import (
    suggest_resolution,
    process_conflicts,
    can_add_relation,
    filter_conflicting_relations,
    merge_conflict_sources,
    create_conflict_summary,
    explain_conflict_to_user,
    plan_resolutions,
    apply_plan,
)

__all__ = [
    # detection
    'ConflictDetector',
    'ConflictRule',
    'detect_conflicts',
    'validate_relation',
    'find_all_conflicts',
    'explain_conflict',
    'format_resolution',
    'get_default_detector',

    # triage
    'suggest_resolution',
    'process_conflicts',
    'can_add_relation',
    'filter_conflicting_relations',
    'merge_conflict_sources',
    'create_conflict_summary',
    'explain_conflict_to_user',
    'plan_resolutions',
    'apply_plan',
]
