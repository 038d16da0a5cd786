"""Conflict triage and resolution

Turns detected conflicts into concrete actions, gates batches of extracted
relations, merges conflicts reported by the extraction step with local ones,
and renders deterministic markdown for the review screen.

Nothing here writes to storage directly. Decisions are returned as a
ResolutionPlan; apply_plan() hands them to a FactStore.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..models import (
    Relation,
    RelationStatus,
    ConflictType,
    Severity,
    SuggestedResolution,
    ResolutionActionType,
    DetectedConflict,
    ResolutionAction,
    ConflictTriage,
    AddDecision,
    BlockedRelation,
    FilterResult,
    ResolutionPlan,
    ExtractionConflict,
)
from .conflict_detector import detect_conflicts


logger = logging.getLogger(__name__)


AI_CONFLICT_DEFAULT_REASONING = "Detected by AI analysis"


def _affected_ids(conflict: DetectedConflict) -> List[str]:
    relation_id = conflict.existing_relation_id
    return [relation_id] if relation_id else []


def _brief(relation: Optional[Relation]) -> str:
    if relation is None:
        return '""'
    return f'{relation.relation_type.value} "{relation.object_label}"'


# ============================================================================
# Actions
# ============================================================================

def suggest_resolution(conflict: DetectedConflict) -> ResolutionAction:
    """Map a conflict's suggested resolution to a concrete action"""
    resolution = conflict.suggested_resolution

    if resolution == SuggestedResolution.REJECT_NEW:
        return ResolutionAction(
            action=ResolutionActionType.REJECT,
            description=f"Rejecting new relation due to conflict: {conflict.description}",
            affected_relation_ids=_affected_ids(conflict),
            warnings=[conflict.reasoning],
        )

    if resolution == SuggestedResolution.REPLACE_OLD:
        return ResolutionAction(
            action=ResolutionActionType.REPLACE,
            description="Replacing old relation with new information",
            affected_relation_ids=_affected_ids(conflict),
            warnings=[
                f"Old: {_brief(conflict.existing_relation)}",
                f"New: {_brief(conflict.new_relation)}",
            ],
        )

    if resolution == SuggestedResolution.MARK_OLD_AS_PAST:
        return ResolutionAction(
            action=ResolutionActionType.MARK_AS_PAST,
            description="Marking old relation as past, adding new as current",
            affected_relation_ids=_affected_ids(conflict),
            warnings=["This person's situation has changed over time"],
        )

    if resolution == SuggestedResolution.ADD_BOTH_WITH_CONTEXT:
        return ResolutionAction(
            action=ResolutionActionType.ADD_WITH_WARNING,
            description="Adding both relations with context note",
            affected_relation_ids=[],
            warnings=[conflict.description, conflict.reasoning],
        )

    return ResolutionAction(
        action=ResolutionActionType.REQUIRE_USER_REVIEW,
        description=f"Conflict requires user review: {conflict.description}",
        affected_relation_ids=_affected_ids(conflict),
        warnings=[conflict.reasoning],
    )


def process_conflicts(conflicts: Sequence[DetectedConflict]) -> ConflictTriage:
    """Split conflicts into blockers and auto-resolvable ones

    Actions and their warnings come from the auto-resolvable conflicts;
    blockers add a "CRITICAL:" line followed by the reasoning.
    """
    critical = [c for c in conflicts if c.severity == Severity.CRITICAL and not c.auto_resolvable]
    resolvable = [c for c in conflicts if c.auto_resolvable]

    warnings: List[str] = []
    actions: List[ResolutionAction] = []

    for conflict in resolvable:
        action = suggest_resolution(conflict)
        actions.append(action)
        warnings.extend(action.warnings)

    for conflict in critical:
        warnings.append(f"CRITICAL: {conflict.description}")
        warnings.append(f"   Reason: {conflict.reasoning}")

    return ConflictTriage(
        critical_conflicts=critical,
        resolvable_conflicts=resolvable,
        warnings=warnings,
        suggested_actions=actions,
    )


def can_add_relation(candidate: Relation, existing: Iterable[Relation]) -> AddDecision:
    """Whether a candidate may be committed next to the existing relations"""
    conflicts = detect_conflicts(candidate, existing)

    warnings = [c.description for c in conflicts if c.severity == Severity.HIGH]
    warnings.extend(f"Note: {c.description}" for c in conflicts
                    if c.severity in (Severity.MEDIUM, Severity.LOW))

    return AddDecision(
        can_add=not any(c.severity.blocks_commit for c in conflicts),
        conflicts=conflicts,
        warnings=warnings,
        requires_user_review=any(c.severity.needs_review for c in conflicts),
    )


def filter_conflicting_relations(candidates: Iterable[Relation],
                                 existing: Iterable[Relation]) -> FilterResult:
    """Batch gate for extracted relations

    Each candidate is only compared with relations of its own subject.
    The first critical or high conflict blocks it.
    """
    existing = list(existing)
    result = FilterResult()

    for candidate in candidates:
        subject_relations = [r for r in existing if r.subject_id == candidate.subject_id]
        conflicts = detect_conflicts(candidate, subject_relations)
        blocker = next((c for c in conflicts if c.severity.needs_review), None)
        if blocker is not None:
            result.conflicts.append(BlockedRelation(relation=candidate, conflict=blocker))
        else:
            result.safe.append(candidate)

    if result.conflicts:
        logger.info("[ConflictResolution] %d safe, %d blocked",
                    len(result.safe), len(result.conflicts))
    return result


# ============================================================================
# Extraction-reported conflicts
# ============================================================================

AIConflict = Union[ExtractionConflict, Mapping[str, Any]]


def _parse_conflict_type(value: Optional[str]) -> ConflictType:
    try:
        return ConflictType((value or "").strip().lower())
    except ValueError:
        return ConflictType.LOGICAL_IMPLICATION


def _ai_field(conflict: AIConflict, name: str) -> Optional[str]:
    if isinstance(conflict, Mapping):
        return conflict.get(name)
    return getattr(conflict, name, None)


def merge_conflict_sources(ai_conflicts: Iterable[AIConflict],
                           local_conflicts: Sequence[DetectedConflict]) -> List[DetectedConflict]:
    """Local conflicts plus the extraction-reported ones not already covered

    An extraction-reported conflict is covered when its description appears
    (case-insensitively) inside a local conflict's description. Uncovered
    ones become high severity, user-reviewed conflicts.
    """
    merged = list(local_conflicts)
    local_descriptions = [c.description.lower() for c in local_conflicts]

    for ai_conflict in ai_conflicts:
        description = _ai_field(ai_conflict, 'description') or ""
        needle = description.lower()
        if any(needle in known for known in local_descriptions):
            continue

        merged.append(DetectedConflict(
            conflict_type=_parse_conflict_type(_ai_field(ai_conflict, 'type')),
            severity=Severity.HIGH,
            description=description,
            reasoning=_ai_field(ai_conflict, 'reasoning') or AI_CONFLICT_DEFAULT_REASONING,
            suggested_resolution=SuggestedResolution.USER_REVIEW_REQUIRED,
            auto_resolvable=False,
            source='ai',
        ))

    return merged


# ============================================================================
# Rendering
# ============================================================================

def create_conflict_summary(conflicts: Sequence[DetectedConflict]) -> str:
    """Markdown summary grouped by severity"""
    if not conflicts:
        return "No conflicts detected. All relations are consistent."

    lines = [
        "## Conflict Detection Summary",
        "",
        f"**Total conflicts found:** {len(conflicts)}",
        "",
    ]
    for severity in Severity:
        group = [c for c in conflicts if c.severity == severity]
        if not group:
            continue
        lines.append(f"### {severity.value.capitalize()} ({len(group)})")
        lines.extend(f"{i}. {c.description}" for i, c in enumerate(group, 1))
        lines.append("")

    return "\n".join(lines)


def _relation_line(relation: Optional[Relation]) -> str:
    if relation is None:
        return '- (not available)'
    return f'- {relation.relation_type.value}: "{relation.object_label}"'


def explain_conflict_to_user(conflict: DetectedConflict) -> str:
    """Markdown explanation of one conflict for the review screen"""
    if conflict.auto_resolvable:
        footer = "This can be automatically resolved."
    else:
        footer = "**User input needed** to resolve this conflict."

    return (
        f"**{conflict.severity.value.upper()} Conflict Detected**\n\n"
        f"**Issue:** {conflict.description}\n\n"
        f"**Why this is a problem:**\n{conflict.reasoning}\n\n"
        f"**Existing information:**\n{_relation_line(conflict.existing_relation)}\n\n"
        f"**New information:**\n{_relation_line(conflict.new_relation)}\n\n"
        f"{footer}\n"
    )


# ============================================================================
# Plans
# ============================================================================

def plan_resolutions(candidate: Relation, conflicts: Sequence[DetectedConflict]) -> ResolutionPlan:
    """Fold the actions for one candidate into a plan for the fact store

    Rejection wins over review, review wins over insertion. Old relations
    are only ever demoted to past, never removed.
    """
    plan = ResolutionPlan()
    rejected = False
    review = False
    demote: List[str] = []

    for conflict in conflicts:
        action = suggest_resolution(conflict)
        if action.action == ResolutionActionType.REJECT:
            rejected = True
            plan.warnings.extend(action.warnings)
        elif action.action in (ResolutionActionType.MARK_AS_PAST, ResolutionActionType.REPLACE):
            demote.extend(i for i in action.affected_relation_ids if i not in demote)
            plan.warnings.extend(action.warnings)
        elif action.action == ResolutionActionType.ADD_WITH_WARNING:
            plan.warnings.extend(action.warnings)
        elif conflict.severity.needs_review:
            review = True
            plan.warnings.append(action.description)
        else:
            plan.warnings.append(f"Note: {conflict.description}")

    if rejected:
        plan.rejected.append(candidate)
    elif review:
        plan.needs_review.append(candidate)
    else:
        plan.insert.append(candidate.with_status(candidate.status or RelationStatus.CURRENT))
        plan.mark_past_ids.extend(demote)

    return plan


def apply_plan(plan: ResolutionPlan, store) -> List[Relation]:
    """Apply a plan through a FactStore

    Demotions run before inserts so the new fact is never shadowed.

    Returns:
        The inserted relations as stored.
    """
    for relation_id in plan.mark_past_ids:
        store.mark_past(relation_id)
    inserted = [store.insert(relation) for relation in plan.insert]
    logger.info("[ConflictResolution] plan applied: %d inserted, %d marked past, "
                "%d rejected, %d awaiting review",
                len(inserted), len(plan.mark_past_ids), len(plan.rejected),
                len(plan.needs_review))
    return inserted
