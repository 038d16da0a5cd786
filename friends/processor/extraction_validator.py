"""Extraction result validation

The extraction step is untrusted: its output is parsed strictly, and the
people / relations it proposes are checked against the roster before
anything reaches conflict detection.

Invariant enforced here: every relation's subject is either an accepted
person of this extraction or a roster person, and nothing about an
ambiguous mention is accepted until the user resolves it.
"""

from __future__ import annotations

import re
import json
import uuid
import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..config import AutoAcceptConfig
from ..models import (
    Person,
    RelationType,
    ExtractedPerson,
    ExtractedRelation,
    ExtractionResult,
    AmbiguousMatch,
)


logger = logging.getLogger(__name__)


class ExtractionValidationError(ValueError):
    """Extraction output could not be parsed or did not match the schema"""

    def __init__(self, message: str, raw: Any = None):
        super().__init__(message)
        self.raw = raw


# ```json { ... } ``` or ``` { ... } ```
_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*\})\s*```", re.DOTALL)


def _norm(value: Optional[str]) -> str:
    return " ".join((value or "").lower().split())


def _holds(match: AmbiguousMatch, relation: ExtractedRelation) -> bool:
    """Whether an ambiguous mention blocks a relation

    A relation is blocked when its subject name is the ambiguous name or its
    subject id is one of the candidate people.
    """
    if _norm(relation.subject_name) == _norm(match.name_in_story):
        return True
    return relation.subject_id in {c.id for c in match.possible_matches}


# ============================================================================
# Parsing
# ============================================================================

def parse_extraction_response(raw: Union[str, bytes, Mapping[str, Any]]) -> ExtractionResult:
    """Parse the raw extraction output

    Args:
        raw: JSON text (optionally fenced in a ```json block) or an already
             decoded mapping

    Raises:
        ExtractionValidationError: invalid JSON, unknown relation types,
            out-of-range confidences or a wrong shape
    """
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8', errors='replace')

    if isinstance(raw, str):
        match = _FENCED_JSON.search(raw)
        text = match.group(1) if match else raw
        try:
            data = json.loads(text.strip())
        except json.JSONDecodeError as e:
            raise ExtractionValidationError(f"Extraction output is not valid JSON: {e}", raw) from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise ExtractionValidationError(
            f"Extraction output must be a JSON object, got {type(data).__name__}", raw
        )

    try:
        result = ExtractionResult.model_validate(data)
    except ValidationError as e:
        raise ExtractionValidationError(
            f"Extraction output failed validation ({e.error_count()} errors): {e}", raw
        ) from e

    result.pending_relations = []
    return result


# ============================================================================
# Mention invariant
# ============================================================================

def enforce_mention_invariant(result: ExtractionResult,
                              roster: Iterable[Person]) -> ExtractionResult:
    """Drop what cannot be trusted yet

    - people named in an ambiguous match, or who are one of its candidates,
      are removed
    - relations about an ambiguous name or any of its candidates are held
      in pending_relations
    - relations whose subject is neither accepted nor on the roster are dropped

    Returns:
        A new ExtractionResult; the input is not modified.
    """
    roster_ids = {p.id for p in roster}
    ambiguous = {_norm(name) for name in result.ambiguous_names()}
    candidate_ids = {c.id for m in result.ambiguous_matches for c in m.possible_matches}

    people: List[ExtractedPerson] = []
    for person in result.people:
        if _norm(person.name) in ambiguous or person.id in candidate_ids:
            logger.warning("[ExtractionValidator] dropped ambiguous person: %s", person.name)
            continue
        people.append(person)

    accepted_ids = roster_ids | {p.id for p in people}
    dropped_ids = {p.id for p in result.people} - {p.id for p in people}

    relations: List[ExtractedRelation] = []
    pending: List[ExtractedRelation] = list(result.pending_relations)
    for relation in result.relations:
        held = any(_holds(m, relation) for m in result.ambiguous_matches)
        if held or (relation.subject_id in dropped_ids and relation.subject_id not in accepted_ids):
            pending.append(relation)
            continue
        if relation.subject_id not in accepted_ids:
            logger.warning("[ExtractionValidator] dropped relation with unknown subject %r: %s %s",
                           relation.subject_id, relation.relation_type.value,
                           relation.object_label)
            continue
        relations.append(relation)

    return result.model_copy(update={
        'people': people,
        'relations': relations,
        'pending_relations': pending,
    })


def validate_extraction(raw: Union[str, bytes, Mapping[str, Any]],
                        roster: Iterable[Person]) -> ExtractionResult:
    """Parse the raw output and enforce the mention invariant"""
    return enforce_mention_invariant(parse_extraction_response(raw), roster)


def resolve_ambiguity(result: ExtractionResult, name: str,
                      chosen_id: Optional[str],
                      roster: Iterable[Person] = ()) -> ExtractionResult:
    """Apply the user's answer for one ambiguous mention

    Args:
        result: a validated extraction result
        name: the ambiguous name as it appears in the story
        chosen_id: the roster person the user picked, or None for a new person
        roster: known people, used to fill in the chosen person's name

    Raises:
        ValueError: name is not ambiguous in this result, or chosen_id is not
            one of its candidates
    """
    key = _norm(name)
    match = next((m for m in result.ambiguous_matches if _norm(m.name_in_story) == key), None)
    if match is None:
        raise ValueError(f"'{name}' is not an ambiguous mention in this extraction")

    if chosen_id is not None:
        candidate = next((c for c in match.possible_matches if c.id == chosen_id), None)
        if candidate is None:
            raise ValueError(f"'{chosen_id}' is not a candidate for '{name}'")
        known = {p.id: p for p in roster}
        person = ExtractedPerson(
            id=chosen_id,
            name=known[chosen_id].name if chosen_id in known else candidate.name,
            is_new=False,
            confidence=1.0,
        )
    else:
        person = ExtractedPerson(
            id=f"new_{uuid.uuid4().hex[:12]}",
            name=match.name_in_story,
            is_new=True,
            confidence=1.0,
        )

    remaining = [m for m in result.ambiguous_matches if m is not match]
    released: List[ExtractedRelation] = []
    still_pending: List[ExtractedRelation] = []
    for relation in result.pending_relations:
        if _holds(match, relation) and not any(_holds(m, relation) for m in remaining):
            released.append(relation)
        else:
            still_pending.append(relation)

    # relations written about the ambiguous name (or with no name) follow the
    # user's choice; ones naming a candidate explicitly keep their subject
    people = [p for p in result.people if p.id != person.id] + [person]
    relations = list(result.relations)
    for relation in released:
        if not relation.subject_name or _norm(relation.subject_name) == key:
            relation = relation.model_copy(update={'subject_id': person.id})
        relations.append(relation)

    logger.info("[ExtractionValidator] resolved '%s' -> %s (%d relations released)",
                name, person.id, len(released))

    return result.model_copy(update={
        'people': people,
        'relations': relations,
        'pending_relations': still_pending,
        'ambiguous_matches': remaining,
    })


# ============================================================================
# Review policy
# ============================================================================

SAFE_RELATION_TYPES = (
    RelationType.LIKES, RelationType.DISLIKES, RelationType.KNOWS,
    RelationType.ASSOCIATED_WITH, RelationType.EXPERIENCED,
)
SENSITIVE_RELATION_TYPES = (
    RelationType.FEARS, RelationType.STRUGGLES_WITH,
    RelationType.UNCOMFORTABLE_WITH, RelationType.SENSITIVE_TO,
)
PERSON_RELATION_TYPES = (RelationType.CARES_FOR, RelationType.DEPENDS_ON)


def should_auto_accept(relation: Union[ExtractedRelation, Any],
                       config: Optional[AutoAcceptConfig] = None) -> bool:
    """Whether an extracted relation is confident enough to skip review

    Beliefs and types without a threshold always go to review.
    """
    config = config or AutoAcceptConfig.default()
    relation_type = relation.relation_type
    confidence = relation.confidence

    if relation_type in SAFE_RELATION_TYPES:
        return confidence >= config.safe_threshold
    if relation_type in SENSITIVE_RELATION_TYPES:
        return confidence >= config.sensitive_threshold
    if relation_type in PERSON_RELATION_TYPES:
        return confidence >= config.person_threshold
    return False


def calculate_duplicate_confidence(name: str, person: Person) -> float:
    """Likelihood that a newly mentioned name is an existing person

    Signals (summed, capped at 1.0):
        exact name 0.5, nickname 0.4, substring 0.3, first name 0.2
    """
    new_name = _norm(name)
    existing = _norm(person.name)
    if not new_name or not existing:
        return 0.0

    confidence = 0.0
    if existing == new_name:
        confidence += 0.5
    if person.nickname and _norm(person.nickname) == new_name:
        confidence += 0.4
    if new_name in existing or existing in new_name:
        confidence += 0.3
    if new_name.split(' ')[0] == existing.split(' ')[0]:
        confidence += 0.2

    return min(round(confidence, 2), 1.0)


def flag_potential_duplicates(result: ExtractionResult, roster: Iterable[Person],
                              threshold: float = 0.5) -> ExtractionResult:
    """Fill potential_duplicate_of on new people that look like roster people"""
    roster = list(roster)
    people = []
    for person in result.people:
        if person.is_new and not person.potential_duplicate_of and roster:
            best = max(roster, key=lambda p: calculate_duplicate_confidence(person.name, p))
            if calculate_duplicate_confidence(person.name, best) >= threshold:
                person = person.model_copy(update={'potential_duplicate_of': best.id})
        people.append(person)
    return result.model_copy(update={'people': people})
