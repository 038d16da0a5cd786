"""Story pipeline

Story text -> rate limit -> extraction (injected) -> validation and mention
invariant -> conflict detection -> batch gate.

Only the extraction call is rate limited and it is the only step that leaves
the process; everything after it is local reasoning.
"""

from __future__ import annotations

import time
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..config import AutoAcceptConfig
from ..graph import (
    detect_conflicts,
    filter_conflicting_relations,
    merge_conflict_sources,
    create_conflict_summary,
    plan_resolutions,
    apply_plan,
)
from ..models import (
    Person,
    Relation,
    DetectedConflict,
    BlockedRelation,
    ExtractionResult,
    RateLimitStatus,
)
from ..storage import FactStore
from ..utils.rate_limiter import ExtractionRateLimiter
from .ambiguity_resolver import AmbiguityResolver, MentionResolution
from .extraction_validator import (
    parse_extraction_response,
    enforce_mention_invariant,
    flag_potential_duplicates,
    should_auto_accept,
    _norm,
)


logger = logging.getLogger(__name__)


@dataclass
class ExtractionRequest:
    """What the extractor receives: names only, never full profiles"""
    story_text: str
    existing_people: List[Dict[str, str]] = field(default_factory=list)
    existing_relations: List[Dict[str, str]] = field(default_factory=list)
    tagged_people: List[Dict[str, str]] = field(default_factory=list)
    confirmed_new: List[str] = field(default_factory=list)


# extractor(request) -> raw JSON text or decoded mapping
Extractor = Callable[[ExtractionRequest], Any]


class SubmissionStatus(str, Enum):
    COMPLETED = "completed"
    RATE_LIMITED = "rate_limited"


@dataclass
class StoryOutcome:
    """Everything the review screen needs for one submitted story"""
    status: SubmissionStatus
    rate_limit: RateLimitStatus
    extraction: Optional[ExtractionResult] = None
    mentions: List[MentionResolution] = field(default_factory=list)
    conflicts: List[DetectedConflict] = field(default_factory=list)
    safe_relations: List[Relation] = field(default_factory=list)
    blocked: List[BlockedRelation] = field(default_factory=list)
    auto_accepted: List[Relation] = field(default_factory=list)
    summary: str = ""
    processing_time: float = 0.0

    @property
    def rate_limited(self) -> bool:
        return self.status == SubmissionStatus.RATE_LIMITED

    @property
    def needs_review(self) -> List[Relation]:
        auto = {id(r) for r in self.auto_accepted}
        return [r for r in self.safe_relations if id(r) not in auto]


def estimate_extraction_cost(story_length: int, existing_people_count: int) -> Dict[str, float]:
    """Rough token and dollar estimate for one extraction call

    ~4 characters per token, ~10 tokens per roster name, 500 prompt tokens
    and 1000 output tokens; $3 / $15 per million input / output tokens.
    """
    prompt_tokens = 500 + -(-story_length // 4) + existing_people_count * 10
    output_tokens = 1000
    cost = prompt_tokens / 1_000_000 * 3.0 + output_tokens / 1_000_000 * 15.0
    return {
        'estimated_tokens': prompt_tokens + output_tokens,
        'estimated_cost': cost,
    }


class StoryPipeline:
    """Rate-gated extraction followed by local consistency checks

    Usage:
        pipeline = StoryPipeline(extractor=call_model, store=store)

        outcome = pipeline.submit(story, roster)
        if outcome.rate_limited:
            show(outcome.rate_limit.get_message())
        else:
            review(outcome)
            pipeline.commit(outcome)
    """

    def __init__(
        self,
        extractor: Extractor,
        limiter: Optional[ExtractionRateLimiter] = None,
        store: Optional[FactStore] = None,
        auto_accept: Optional[AutoAcceptConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.extractor = extractor
        self.limiter = limiter or ExtractionRateLimiter()
        self.store = store
        self.auto_accept = auto_accept or AutoAcceptConfig.default()
        self._clock = clock

    def _existing_relations(self, roster: Sequence[Person]) -> List[Relation]:
        if self.store is not None:
            return [r for person in roster for r in self.store.relations_for(person.id)]
        relations = []
        for person in roster:
            for relation in person.relations:
                if not relation.subject_id:
                    relation = relation.model_copy(update={'subject_id': person.id})
                relations.append(relation)
        return relations

    @staticmethod
    def _apply_confirmed_new(parsed: ExtractionResult,
                             confirmed_new: Sequence[str]) -> ExtractionResult:
        """Turn people the user confirmed as new back into new people

        The extractor may still link such a name to a roster person; the
        user's answer wins and the person's relations move to the new id.
        """
        confirmed = {_norm(name) for name in confirmed_new}
        if not confirmed:
            return parsed

        people = []
        new_ids: Dict[str, str] = {}
        for person in parsed.people:
            if not person.is_new and _norm(person.name) in confirmed:
                new_ids[person.id] = f"new_{uuid.uuid4().hex[:12]}"
                person = person.model_copy(update={
                    'id': new_ids[person.id],
                    'is_new': True,
                    'potential_duplicate_of': None,
                })
            people.append(person)
        if not new_ids:
            return parsed

        relations = []
        for relation in parsed.relations:
            if relation.subject_id in new_ids and (
                    not relation.subject_name or _norm(relation.subject_name) in confirmed):
                relation = relation.model_copy(
                    update={'subject_id': new_ids[relation.subject_id]}
                )
            relations.append(relation)

        logger.info("[StoryPipeline] %d linked people overridden as new", len(new_ids))
        return parsed.model_copy(update={'people': people, 'relations': relations})

    def submit(self, story: str, roster: Sequence[Person] = (),
               tagged: Sequence[Person] = (),
               confirmed_new: Iterable[str] = ()) -> StoryOutcome:
        """Run one story through the pipeline

        Returns a rate_limited outcome (and never calls the extractor) when
        the limiter refuses the request.
        """
        started = self._clock()
        roster = list(roster)
        confirmed_new = list(confirmed_new)

        status = self.limiter.try_acquire()
        if not status.allowed:
            logger.warning("[StoryPipeline] %s", status.get_message())
            return StoryOutcome(status=SubmissionStatus.RATE_LIMITED, rate_limit=status)

        existing = self._existing_relations(roster)
        names = {p.id: p.name for p in roster}
        request = ExtractionRequest(
            story_text=story,
            existing_people=[{'id': p.id, 'name': p.name} for p in roster],
            existing_relations=[
                {
                    'subject_id': r.subject_id,
                    'subject_name': names.get(r.subject_id, ""),
                    'relation_type': r.relation_type.value,
                    'object_label': r.object_label,
                }
                for r in existing if not r.is_past
            ],
            tagged_people=[{'id': p.id, 'name': p.name} for p in tagged],
            confirmed_new=confirmed_new,
        )

        raw = self.extractor(request)
        parsed = parse_extraction_response(raw)

        # the extractor's people are re-checked locally; it never gets to guess
        parsed = self._apply_confirmed_new(parsed, confirmed_new)
        bare_names = [p.name for p in parsed.people if not p.is_new]
        bare_names.extend(r.subject_name for r in parsed.relations if r.subject_name)
        resolver = AmbiguityResolver(roster)
        mentions = resolver.resolve_story(story, bare_names=bare_names, tagged=tagged,
                                          confirmed_new=confirmed_new)

        matches = list(parsed.ambiguous_matches)
        listed = {_norm(m.name_in_story) for m in matches}
        for mention in mentions:
            if mention.is_ambiguous and _norm(mention.name) not in listed:
                listed.add(_norm(mention.name))
                matches.append(mention.to_ambiguous_match())
        if len(matches) != len(parsed.ambiguous_matches):
            parsed = parsed.model_copy(update={'ambiguous_matches': matches})

        result = enforce_mention_invariant(parsed, roster)
        result = flag_potential_duplicates(result, roster)

        candidates = [r.to_relation() for r in result.relations]

        local: List[DetectedConflict] = []
        for candidate in candidates:
            scoped = [r for r in existing if r.subject_id == candidate.subject_id]
            local.extend(detect_conflicts(candidate, scoped))
        conflicts = merge_conflict_sources(result.conflicts, local)

        gate = filter_conflicting_relations(candidates, existing)
        auto_accepted = [r for r in gate.safe if should_auto_accept(r, self.auto_accept)]

        outcome = StoryOutcome(
            status=SubmissionStatus.COMPLETED,
            rate_limit=status,
            extraction=result,
            mentions=mentions,
            conflicts=conflicts,
            safe_relations=gate.safe,
            blocked=gate.conflicts,
            auto_accepted=auto_accepted,
            summary=create_conflict_summary(conflicts),
            processing_time=self._clock() - started,
        )

        logger.info("[StoryPipeline] %d relations: %d safe (%d auto-accepted), %d blocked, "
                    "%d ambiguous mentions",
                    len(candidates), len(gate.safe), len(auto_accepted), len(gate.conflicts),
                    len(result.ambiguous_matches))
        return outcome

    def commit(self, outcome: StoryOutcome,
               relations: Optional[Iterable[Relation]] = None) -> List[Relation]:
        """Write accepted relations through the fact store

        Args:
            outcome: a completed outcome from submit()
            relations: what the user accepted; defaults to the auto-accepted ones

        Raises:
            RuntimeError: the pipeline has no fact store
        """
        if self.store is None:
            raise RuntimeError("StoryPipeline.commit() needs a fact store")
        if outcome.rate_limited:
            return []

        inserted: List[Relation] = []
        for candidate in (outcome.auto_accepted if relations is None else relations):
            existing = self.store.relations_for(candidate.subject_id)
            plan = plan_resolutions(candidate, detect_conflicts(candidate, existing))
            inserted.extend(apply_plan(plan, self.store))
        return inserted
