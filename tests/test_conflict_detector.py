"""Conflict detection engine tests"""

import pytest

from friends.graph import (
    ConflictDetector,
    detect_conflicts,
    validate_relation,
    find_all_conflicts,
    explain_conflict,
)
from friends.models import (
    ConflictType,
    Severity,
    SuggestedResolution,
    RelationStatus,
    DetectedConflict,
)

from conftest import rel


# =============================================================================
# Direct contradictions
# =============================================================================

class TestDirectContradiction:

    def test_likes_vs_dislikes_is_symmetric(self):
        forward = detect_conflicts(rel("DISLIKES", "ice cream"), [rel("LIKES", "Ice Cream ")])
        backward = detect_conflicts(rel("LIKES", "ice cream"), [rel("DISLIKES", "ice cream")])

        for conflicts in (forward, backward):
            direct = [c for c in conflicts if c.conflict_type == ConflictType.DIRECT_CONTRADICTION]
            assert len(direct) == 1
            assert direct[0].severity == Severity.CRITICAL
            assert direct[0].suggested_resolution == SuggestedResolution.USER_REVIEW_REQUIRED
            assert direct[0].auto_resolvable is False

        assert forward[0].description == 'Cannot both dislikes and likes "ice cream"'

    def test_wants_vs_struggles(self):
        conflicts = detect_conflicts(rel("STRUGGLES_WITH", "running"),
                                     [rel("WANTS_TO_ACHIEVE", "running")])
        assert len(conflicts) == 1
        assert conflicts[0].severity == Severity.CRITICAL

    def test_different_objects_do_not_conflict(self):
        assert detect_conflicts(rel("LIKES", "tea"), [rel("DISLIKES", "coffee")]) == []

    def test_empty_labels_do_not_conflict(self):
        assert detect_conflicts(rel("LIKES", ""), [rel("DISLIKES", "")]) == []


# =============================================================================
# Ingredient conflicts
# =============================================================================

class TestIngredientConflict:

    def test_sensitive_to_potatoes_vs_likes_fries(self):
        conflicts = detect_conflicts(rel("SENSITIVE_TO", "potatoes"), [rel("LIKES", "fries")])
        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.conflict_type == ConflictType.INGREDIENT_CONFLICT
        assert conflict.severity == Severity.HIGH
        assert conflict.description == (
            'Cannot like "fries" while being sensitive to "potatoes" (fries contains potatoes)'
        )
        assert "fries contains potatoes" in conflict.reasoning

    def test_regularly_eats_is_critical(self):
        conflicts = detect_conflicts(rel("REGULARLY_DOES", "eats fries"),
                                     [rel("SENSITIVE_TO", "potato")])
        assert len(conflicts) == 1
        assert conflicts[0].severity == Severity.CRITICAL
        assert conflicts[0].description.startswith("Cannot regularly eats fries while being")
        assert conflicts[0].reasoning == "Health concern: fries contains potato"

    def test_uncomfortable_with_dairy_vs_ice_cream(self):
        conflicts = detect_conflicts(rel("LIKES", "ice cream"), [rel("UNCOMFORTABLE_WITH", "dairy")])
        assert [c.conflict_type for c in conflicts] == [ConflictType.INGREDIENT_CONFLICT]
        assert "uncomfortable with" in conflicts[0].description

    def test_dislikes_is_not_a_food_preference(self):
        assert detect_conflicts(rel("DISLIKES", "fries"), [rel("SENSITIVE_TO", "potato")]) == []


# =============================================================================
# Dietary, identity, belief and temporal conflicts
# =============================================================================

class TestDietaryConflict:

    def test_vegan_likes_cheese_yields_one_high_conflict(self):
        conflicts = detect_conflicts(rel("LIKES", "cheese"), [rel("IS", "vegan")])
        assert len(conflicts) == 1
        assert conflicts[0].severity == Severity.HIGH
        assert conflicts[0].conflict_type == ConflictType.LOGICAL_IMPLICATION
        assert "dairy" in conflicts[0].description
        assert conflicts[0].reasoning == 'Dietary restriction "vegan" excludes Contains dairy (No animal products)'

    def test_vegan_likes_celery_yields_nothing(self):
        assert detect_conflicts(rel("LIKES", "celery"), [rel("IS", "vegan")]) == []

    def test_lactose_intolerant_drinks_milk(self):
        conflicts = detect_conflicts(rel("IS", "lactose intolerant"),
                                     [rel("REGULARLY_DOES", "drinks milk")])
        assert len(conflicts) == 1
        assert conflicts[0].description == (
            "Cannot drinks milk while being lactose intolerant (Contains milk (No dairy products))"
        )

    def test_unknown_diet_yields_nothing(self):
        assert detect_conflicts(rel("LIKES", "bacon"), [rel("IS", "paleo")]) == []


class TestLogicalConflict:

    def test_identity_pair(self):
        conflicts = detect_conflicts(rel("IS", "vegetarian"), [rel("IS", "vegan")])
        assert len(conflicts) == 1
        assert conflicts[0].severity == Severity.MEDIUM
        assert conflicts[0].description == 'Cannot be both "vegetarian" and "vegan"'
        assert conflicts[0].reasoning == "Mutually exclusive identities"

    def test_opposing_beliefs(self):
        conflicts = detect_conflicts(rel("BELIEVES", "not in astrology"),
                                     [rel("BELIEVES", "in astrology")])
        assert len(conflicts) == 1
        assert conflicts[0].severity == Severity.MEDIUM
        assert conflicts[0].reasoning == "Mutually exclusive beliefs"


class TestTemporalConflict:

    def test_used_to_be_vs_is(self):
        existing = rel("IS", "smoker", id="r1")
        conflicts = detect_conflicts(rel("USED_TO_BE", "Smoker"), [existing])
        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.conflict_type == ConflictType.TEMPORAL_CONFLICT
        assert conflict.severity == Severity.LOW
        assert conflict.auto_resolvable is True
        assert conflict.suggested_resolution == SuggestedResolution.MARK_OLD_AS_PAST
        assert conflict.existing_relation_id == "r1"

    def test_is_vs_used_to_be_is_not_temporal(self):
        assert detect_conflicts(rel("IS", "smoker"), [rel("USED_TO_BE", "smoker")]) == []


# =============================================================================
# Engine behaviour
# =============================================================================

class TestDetector:

    def test_past_relations_skipped_unless_candidate_current(self):
        existing = [rel("LIKES", "tea", status="past")]
        assert detect_conflicts(rel("DISLIKES", "tea"), existing) == []
        assert len(detect_conflicts(rel("DISLIKES", "tea", status="current"), existing)) == 1

    def test_candidate_itself_is_skipped(self):
        same = rel("LIKES", "tea", id="r1")
        assert detect_conflicts(same, [same]) == []

    def test_results_sorted_by_severity(self):
        existing = [
            rel("IS", "smoker"),
            rel("IS", "vegan"),
            rel("SENSITIVE_TO", "potato"),
        ]
        candidates = detect_conflicts(rel("USED_TO_BE", "smoker"), existing)
        assert [c.severity for c in candidates] == [Severity.LOW]

        conflicts = detect_conflicts(rel("REGULARLY_DOES", "eats mashed potatoes"), existing)
        assert [c.severity for c in conflicts] == [Severity.CRITICAL, Severity.HIGH]
        assert conflicts[0].conflict_type == ConflictType.INGREDIENT_CONFLICT

    def test_unknown_vocabulary_yields_nothing(self):
        existing = [rel("SENSITIVE_TO", "quantum foam"), rel("IS", "zorblax")]
        assert detect_conflicts(rel("LIKES", "xylophone"), existing) == []

    def test_empty_existing(self):
        assert detect_conflicts(rel("LIKES", "tea"), []) == []

    def test_custom_rule(self):
        def owns_vs_dislikes(candidate, existing):
            if candidate.relation_type.value == "OWNS" and existing.relation_type.value == "FEARS":
                return DetectedConflict(
                    conflict_type=ConflictType.LOGICAL_IMPLICATION,
                    severity=Severity.MEDIUM,
                    description="owns what they fear",
                    reasoning="custom",
                )
            return None

        detector = ConflictDetector()
        detector.add_rule(owns_vs_dislikes)
        assert len(detector.rules) == 6
        assert len(detector.detect(rel("OWNS", "dog"), [rel("FEARS", "dog")])) == 1
        # the default detector is unaffected
        assert detect_conflicts(rel("OWNS", "dog"), [rel("FEARS", "dog")]) == []


class TestValidateRelation:

    def test_critical_makes_invalid(self):
        result = validate_relation(rel("DISLIKES", "tea"), [rel("LIKES", "tea")])
        assert result.valid is False
        assert result.requires_user_review is True
        assert result.warnings == []

    def test_high_is_valid_with_warning(self):
        result = validate_relation(rel("LIKES", "cheese"), [rel("IS", "vegan")])
        assert result.valid is True
        assert result.requires_user_review is True
        assert len(result.warnings) == 1

    def test_medium_only_with_notes(self):
        existing = [rel("IS", "vegan")]
        plain = validate_relation(rel("IS", "vegetarian"), existing)
        assert plain.valid and not plain.requires_user_review
        assert plain.warnings == []

        noted = validate_relation(rel("IS", "vegetarian"), existing, include_notes=True)
        assert noted.warnings == ['Note: Cannot be both "vegetarian" and "vegan"']


class TestBulkScan:

    def test_find_all_conflicts(self):
        relations = [
            rel("IS", "vegan"),
            rel("LIKES", "cheese"),
            rel("DISLIKES", "cheese"),
        ]
        conflicts = find_all_conflicts(relations)
        kinds = sorted((c.conflict_type.value, c.severity.value) for c in conflicts)
        assert kinds == [
            ("direct_contradiction", "critical"),
            ("logical_implication", "high"),
        ]

    def test_find_all_includes_past_relations(self):
        relations = [rel("LIKES", "tea", status="past"), rel("DISLIKES", "tea")]
        assert len(find_all_conflicts(relations)) == 1

    def test_explain_conflict(self):
        conflict = detect_conflicts(rel("USED_TO_BE", "smoker"), [rel("IS", "smoker")])[0]
        text = explain_conflict(conflict)
        assert text.startswith('**Conflict Detected:** Cannot currently be "smoker"')
        assert "**Severity:** low" in text
        assert text.endswith("Mark the old information as past/no longer current")
