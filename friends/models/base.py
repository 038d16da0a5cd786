"""Base enum definitions shared by the fact graph and the conflict engine"""

from enum import Enum


class RelationType(str, Enum):
    """Closed relation vocabulary"""
    KNOWS = "KNOWS"
    LIKES = "LIKES"
    DISLIKES = "DISLIKES"
    ASSOCIATED_WITH = "ASSOCIATED_WITH"
    EXPERIENCED = "EXPERIENCED"
    HAS_SKILL = "HAS_SKILL"
    OWNS = "OWNS"
    HAS_IMPORTANT_DATE = "HAS_IMPORTANT_DATE"
    IS = "IS"
    BELIEVES = "BELIEVES"
    FEARS = "FEARS"
    WANTS_TO_ACHIEVE = "WANTS_TO_ACHIEVE"
    STRUGGLES_WITH = "STRUGGLES_WITH"
    CARES_FOR = "CARES_FOR"
    DEPENDS_ON = "DEPENDS_ON"
    REGULARLY_DOES = "REGULARLY_DOES"
    PREFERS_OVER = "PREFERS_OVER"
    USED_TO_BE = "USED_TO_BE"
    SENSITIVE_TO = "SENSITIVE_TO"
    UNCOMFORTABLE_WITH = "UNCOMFORTABLE_WITH"

    @property
    def label(self) -> str:
        """Lowercase, space separated form used in descriptions"""
        return self.value.lower().replace('_', ' ')


class Intensity(str, Enum):
    """Relation intensity"""
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"
    VERY_STRONG = "very_strong"


class RelationStatus(str, Enum):
    """Relation lifecycle status"""
    CURRENT = "current"
    PAST = "past"
    FUTURE = "future"
    ASPIRATION = "aspiration"


class PersonType(str, Enum):
    """How confidently a person is a distinct, real individual"""
    PRIMARY = "primary"
    MENTIONED = "mentioned"
    PLACEHOLDER = "placeholder"


class ConflictType(str, Enum):
    """Conflict category"""
    DIRECT_CONTRADICTION = "direct_contradiction"
    INGREDIENT_CONFLICT = "ingredient_conflict"
    LOGICAL_IMPLICATION = "logical_implication"   # dietary, identity and belief conflicts
    TEMPORAL_CONFLICT = "temporal_conflict"


class Severity(str, Enum):
    """Conflict severity"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """0 is the most severe"""
        return _SEVERITY_RANK[self]

    @property
    def blocks_commit(self) -> bool:
        return self is Severity.CRITICAL

    @property
    def needs_review(self) -> bool:
        return self in (Severity.CRITICAL, Severity.HIGH)


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class SuggestedResolution(str, Enum):
    """Resolution suggested by a detector"""
    REJECT_NEW = "reject_new"
    REPLACE_OLD = "replace_old"
    MARK_OLD_AS_PAST = "mark_old_as_past"
    ADD_BOTH_WITH_CONTEXT = "add_both_with_context"
    USER_REVIEW_REQUIRED = "user_review_required"


class ResolutionActionType(str, Enum):
    """Concrete action produced by triage"""
    REJECT = "reject"
    REPLACE = "replace"
    MARK_AS_PAST = "mark_as_past"
    ADD_WITH_WARNING = "add_with_warning"
    REQUIRE_USER_REVIEW = "require_user_review"
