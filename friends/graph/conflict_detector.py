"""Conflict detection engine

Compares one candidate relation against a person's existing relations and
reports every inconsistency found:
1. direct contradictions (LIKES vs DISLIKES the same thing)
2. ingredient conflicts (SENSITIVE_TO potato vs LIKES fries)
3. dietary conflicts (IS vegan vs LIKES cheese)
4. identity and belief conflicts (IS atheist vs IS christian)
5. temporal conflicts (USED_TO_BE smoker vs IS smoker)

Detection is pure: nothing is stored, nothing is mutated. Absent knowledge
means "no conflict", never an error.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence

from ..knowledge import (
    normalize_label,
    food_contains_ingredient,
    is_dietary_restriction,
    is_food_compatible_with_restriction,
    identities_conflict,
    beliefs_oppose,
)
from ..models import (
    Relation,
    RelationType,
    RelationStatus,
    ConflictType,
    Severity,
    SuggestedResolution,
    DetectedConflict,
    RelationValidation,
)


logger = logging.getLogger(__name__)


# rule(candidate, existing) -> conflict or None
ConflictRule = Callable[[Relation, Relation], Optional[DetectedConflict]]


OPPOSITE_RELATION_TYPES = {
    RelationType.LIKES: (RelationType.DISLIKES, RelationType.UNCOMFORTABLE_WITH),
    RelationType.DISLIKES: (RelationType.LIKES,),
    RelationType.WANTS_TO_ACHIEVE: (RelationType.STRUGGLES_WITH,),
}

RESTRICTION_TYPES = (RelationType.SENSITIVE_TO, RelationType.UNCOMFORTABLE_WITH)
FOOD_PREFERENCE_TYPES = (RelationType.LIKES, RelationType.REGULARLY_DOES)
DIETARY_PREFERENCE_TYPES = (
    RelationType.LIKES, RelationType.REGULARLY_DOES, RelationType.PREFERS_OVER
)

ACTIVITY_VERBS = ('eats', 'eat', 'drinks', 'drink', 'drinking', 'eating', 'has', 'having')

RESOLUTION_TEXT = {
    SuggestedResolution.REJECT_NEW: "Reject the new information",
    SuggestedResolution.REPLACE_OLD: "Replace the old information with the new",
    SuggestedResolution.MARK_OLD_AS_PAST: "Mark the old information as past/no longer current",
    SuggestedResolution.ADD_BOTH_WITH_CONTEXT: "Keep both with additional context",
    SuggestedResolution.USER_REVIEW_REQUIRED: "Requires user review to resolve",
}


def is_same_object(first: str, second: str) -> bool:
    a = normalize_label(first)
    return bool(a) and a == normalize_label(second)


def extract_food_from_activity(text: str) -> str:
    """'eats pizza' -> 'pizza'; labels without a leading verb are returned as-is"""
    words = normalize_label(text).split(' ')
    if words and words[0] in ACTIVITY_VERBS:
        return ' '.join(words[1:]).strip()
    return text


# ============================================================================
# Rules
# ============================================================================

def detect_direct_contradiction(candidate: Relation, existing: Relation) -> Optional[DetectedConflict]:
    """Opposite relation types about the same object"""
    new_type = candidate.relation_type
    old_type = existing.relation_type
    opposed = (old_type in OPPOSITE_RELATION_TYPES.get(new_type, ())
               or new_type in OPPOSITE_RELATION_TYPES.get(old_type, ()))
    if not opposed or not is_same_object(candidate.object_label, existing.object_label):
        return None

    return DetectedConflict(
        conflict_type=ConflictType.DIRECT_CONTRADICTION,
        severity=Severity.CRITICAL,
        description=(f'Cannot both {new_type.value.lower()} and {old_type.value.lower()} '
                     f'"{candidate.object_label}"'),
        reasoning=("Direct logical contradiction - person cannot simultaneously "
                   "like and dislike the same thing"),
        existing_relation=existing,
        new_relation=candidate,
        suggested_resolution=SuggestedResolution.USER_REVIEW_REQUIRED,
        auto_resolvable=False,
    )


def detect_ingredient_conflict(candidate: Relation, existing: Relation) -> Optional[DetectedConflict]:
    """A restriction on an ingredient vs liking or regularly having a food containing it"""
    if candidate.relation_type in RESTRICTION_TYPES:
        restriction_rel, food_rel = candidate, existing
    elif existing.relation_type in RESTRICTION_TYPES:
        restriction_rel, food_rel = existing, candidate
    else:
        return None

    if food_rel.relation_type not in FOOD_PREFERENCE_TYPES:
        return None

    restriction = restriction_rel.object_label
    food = extract_food_from_activity(food_rel.object_label)
    if not restriction or not food or not food_contains_ingredient(food, restriction):
        return None

    restriction_type = restriction_rel.relation_type.label
    label = food_rel.object_label

    if food_rel.relation_type == RelationType.LIKES:
        severity = Severity.HIGH
        description = (f'Cannot like "{label}" while being {restriction_type} '
                       f'"{restriction}" ({food} contains {restriction})')
        reasoning = (f"Ingredient analysis shows that {food} contains {restriction}, "
                     f"which conflicts with the {restriction_rel.relation_type.value}")
    else:
        severity = Severity.CRITICAL
        description = (f'Cannot regularly {label.lower()} while being {restriction_type} '
                       f'"{restriction}" ({food} contains {restriction})')
        reasoning = f"Health concern: {food} contains {restriction}"

    return DetectedConflict(
        conflict_type=ConflictType.INGREDIENT_CONFLICT,
        severity=severity,
        description=description,
        reasoning=reasoning,
        existing_relation=existing,
        new_relation=candidate,
        suggested_resolution=SuggestedResolution.USER_REVIEW_REQUIRED,
        auto_resolvable=False,
    )


def detect_dietary_conflict(candidate: Relation, existing: Relation) -> Optional[DetectedConflict]:
    """IS <diet> vs a food the diet excludes"""
    if (candidate.relation_type == RelationType.IS
            and is_dietary_restriction(candidate.object_label)):
        diet_rel, food_rel = candidate, existing
    elif (existing.relation_type == RelationType.IS
            and is_dietary_restriction(existing.object_label)):
        diet_rel, food_rel = existing, candidate
    else:
        return None

    if food_rel.relation_type not in DIETARY_PREFERENCE_TYPES:
        return None

    food = extract_food_from_activity(food_rel.object_label)
    if not food:
        return None

    diet = diet_rel.object_label
    result = is_food_compatible_with_restriction(food, diet)
    if result.compatible or not result.reason:
        return None

    return DetectedConflict(
        conflict_type=ConflictType.LOGICAL_IMPLICATION,
        severity=Severity.HIGH,
        description=f"Cannot {food_rel.object_label.lower()} while being {diet} ({result.reason})",
        reasoning=f'Dietary restriction "{diet}" excludes {result.reason}',
        existing_relation=existing,
        new_relation=candidate,
        suggested_resolution=SuggestedResolution.USER_REVIEW_REQUIRED,
        auto_resolvable=False,
    )


def detect_logical_conflict(candidate: Relation, existing: Relation) -> Optional[DetectedConflict]:
    """Mutually exclusive identities or opposing beliefs"""
    new_type = candidate.relation_type
    old_type = existing.relation_type

    if new_type == RelationType.IS and old_type == RelationType.IS:
        if not identities_conflict(candidate.object_label, existing.object_label):
            return None
        description = f'Cannot be both "{candidate.object_label}" and "{existing.object_label}"'
        reasoning = "Mutually exclusive identities"
    elif new_type == RelationType.BELIEVES and old_type == RelationType.BELIEVES:
        if not beliefs_oppose(candidate.object_label, existing.object_label):
            return None
        description = f'Cannot believe both "{candidate.object_label}" and "{existing.object_label}"'
        reasoning = "Mutually exclusive beliefs"
    else:
        return None

    return DetectedConflict(
        conflict_type=ConflictType.LOGICAL_IMPLICATION,
        severity=Severity.MEDIUM,
        description=description,
        reasoning=reasoning,
        existing_relation=existing,
        new_relation=candidate,
        suggested_resolution=SuggestedResolution.USER_REVIEW_REQUIRED,
        auto_resolvable=False,
    )


def detect_temporal_conflict(candidate: Relation, existing: Relation) -> Optional[DetectedConflict]:
    """USED_TO_BE X arriving while IS X is still current"""
    if (candidate.relation_type != RelationType.USED_TO_BE
            or existing.relation_type != RelationType.IS):
        return None
    if not is_same_object(candidate.object_label, existing.object_label):
        return None

    return DetectedConflict(
        conflict_type=ConflictType.TEMPORAL_CONFLICT,
        severity=Severity.LOW,
        description=f'Cannot currently be "{existing.object_label}" if they used to be it',
        reasoning="USED_TO_BE implies past state, conflicts with current IS",
        existing_relation=existing,
        new_relation=candidate,
        suggested_resolution=SuggestedResolution.MARK_OLD_AS_PAST,
        auto_resolvable=True,
    )


# ============================================================================
# Detector
# ============================================================================

class ConflictDetector:
    """Runs every registered rule over (candidate, existing) pairs

    Usage:
        detector = ConflictDetector()
        conflicts = detector.detect(candidate, person.relations)

        # extra domain rules
        detector.add_rule(my_rule)
    """

    def __init__(self):
        self._rules: List[ConflictRule] = []
        self._register_default_rules()

    def _register_default_rules(self):
        self._rules.extend([
            detect_direct_contradiction,
            detect_ingredient_conflict,
            detect_dietary_conflict,
            detect_logical_conflict,
            detect_temporal_conflict,
        ])

    def add_rule(self, rule: ConflictRule):
        """Register an extra rule

        Args:
            rule: takes (candidate, existing), returns a DetectedConflict or None
        """
        self._rules.append(rule)

    @property
    def rules(self) -> List[ConflictRule]:
        return list(self._rules)

    def detect(self, candidate: Relation, existing: Iterable[Relation]) -> List[DetectedConflict]:
        """Detect conflicts between a candidate and existing relations

        Args:
            candidate: the relation about to be added
            existing: relations already held for the same person

        Returns:
            All conflicts, most severe first; order is stable within a severity.
        """
        conflicts: List[DetectedConflict] = []

        for old in existing:
            if candidate.id and old.id == candidate.id:
                continue
            # past facts only matter when the candidate is explicitly current
            if old.status == RelationStatus.PAST and candidate.status != RelationStatus.CURRENT:
                continue

            for rule in self._rules:
                conflict = rule(candidate, old)
                if conflict is not None:
                    logger.debug("[ConflictDetector] %s: %s",
                                 conflict.conflict_type.value, conflict.description)
                    conflicts.append(conflict)

        return sorted(conflicts, key=lambda c: c.severity.rank)

    def validate(self, candidate: Relation, existing: Iterable[Relation],
                 include_notes: bool = False) -> RelationValidation:
        """Validate a candidate relation

        Critical conflicts make it invalid; high ones become warnings.
        With include_notes, medium and low conflicts are appended as
        "Note: ..." warnings.
        """
        conflicts = self.detect(candidate, existing)

        warnings = [c.description for c in conflicts if c.severity == Severity.HIGH]
        if include_notes:
            warnings.extend(f"Note: {c.description}" for c in conflicts
                            if c.severity in (Severity.MEDIUM, Severity.LOW))

        return RelationValidation(
            valid=not any(c.severity.blocks_commit for c in conflicts),
            conflicts=conflicts,
            warnings=warnings,
            requires_user_review=any(c.severity.needs_review for c in conflicts),
        )

    def find_all(self, relations: Sequence[Relation]) -> List[DetectedConflict]:
        """Pairwise scan of one person's relations

        The later relation of each pair is treated as the candidate, with an
        unspecified status read as current.
        """
        found: List[DetectedConflict] = []
        for i, older in enumerate(relations):
            for newer in relations[i + 1:]:
                candidate = newer.with_status(newer.status or RelationStatus.CURRENT)
                found.extend(self.detect(candidate, [older]))
        return found


_default_detector = ConflictDetector()


def get_default_detector() -> ConflictDetector:
    return _default_detector


# ============================================================================
# Convenience functions
# ============================================================================

def detect_conflicts(candidate: Relation, existing: Iterable[Relation]) -> List[DetectedConflict]:
    """Detect conflicts with the default rule set"""
    return _default_detector.detect(candidate, existing)


def validate_relation(candidate: Relation, existing: Iterable[Relation],
                      include_notes: bool = False) -> RelationValidation:
    return _default_detector.validate(candidate, existing, include_notes=include_notes)


def find_all_conflicts(relations: Sequence[Relation]) -> List[DetectedConflict]:
    return _default_detector.find_all(relations)


def format_resolution(resolution: SuggestedResolution) -> str:
    return RESOLUTION_TEXT.get(resolution, str(resolution.value))


def explain_conflict(conflict: DetectedConflict) -> str:
    """Markdown explanation of one conflict"""
    return (
        f"**Conflict Detected:** {conflict.description}\n\n"
        f"**Severity:** {conflict.severity.value}\n"
        f"**Reasoning:** {conflict.reasoning}\n\n"
        f"**Suggested Resolution:** {format_resolution(conflict.suggested_resolution)}"
    )
