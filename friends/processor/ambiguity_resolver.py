"""Person ambiguity resolver

Decides, for each name mentioned in a story, whether it refers to a known
person (link), a new person (new), or could be several people (ambiguous).

Priority, highest first:
1. people tagged in the UI for this story
2. names the user confirmed as new
3. @Name        explicit reference to an existing person
4. @+Name       explicit new person
5. bare names   link only when the match is unique and safe, otherwise ambiguous
6. unknown      new person

The resolver never guesses between several candidates.
"""

from __future__ import annotations

import re
import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, FrozenSet

from pydantic import BaseModel

from ..models import Person, PossibleMatch, AmbiguousMatch


logger = logging.getLogger(__name__)


class MentionMarker(str, Enum):
    """How a name was written in the story"""
    NONE = "none"               # Sarah
    EXPLICIT = "explicit"       # @Sarah
    NEW = "new"                 # @+Sarah


class ResolutionOutcome(str, Enum):
    LINK = "linked"
    NEW = "new"
    AMBIGUOUS = "ambiguous"


class Mention(BaseModel):
    """A name found in story text"""
    name: str
    marker: MentionMarker = MentionMarker.NONE
    start: int = 0
    end: int = 0


class MentionResolution(BaseModel):
    """Decision for one mention"""
    outcome: ResolutionOutcome
    name: str
    person_id: Optional[str] = None
    confidence: float = 0.0
    candidates: List[PossibleMatch] = []
    marker: MentionMarker = MentionMarker.NONE

    @property
    def is_ambiguous(self) -> bool:
        return self.outcome == ResolutionOutcome.AMBIGUOUS

    def to_ambiguous_match(self) -> AmbiguousMatch:
        return AmbiguousMatch(name_in_story=self.name, possible_matches=list(self.candidates))


# Given names too common to link without context. Heuristic list, extend
# per install through the common_names argument.
COMMON_GIVEN_NAMES: FrozenSet[str] = frozenset({
    'alex', 'anna', 'chris', 'dan', 'daniel', 'david', 'emma', 'james', 'jan',
    'john', 'kasia', 'kate', 'laura', 'maria', 'mark', 'michael', 'mike',
    'ola', 'paul', 'peter', 'piotr', 'sam', 'sarah', 'tom', 'anne', 'ben',
})

# group 1 is the "+" of @+Name
_MENTION_PATTERN = re.compile(r"@(\+)?([^\W\d_][\w'-]*)")


def parse_mentions(text: str) -> List[Mention]:
    """Find @Name and @+Name mentions in story text

    Returns:
        Mentions in order of appearance, without the @ / @+ prefix.
    """
    mentions = []
    for match in _MENTION_PATTERN.finditer(text or ""):
        marker = MentionMarker.NEW if match.group(1) else MentionMarker.EXPLICIT
        mentions.append(Mention(
            name=match.group(2),
            marker=marker,
            start=match.start(),
            end=match.end(),
        ))
    return mentions


def _norm(value: Optional[str]) -> str:
    return " ".join((value or "").lower().split())


def _match_reason(person: Person, name: str) -> str:
    key = _norm(name)
    if key == _norm(person.name):
        return "Exact name match"
    if person.nickname and key == _norm(person.nickname):
        return "Nickname match"
    return "First name match"


class AmbiguityResolver:
    """Link / new / ambiguous decisions against a roster of known people

    Usage:
        resolver = AmbiguityResolver(roster)

        decision = resolver.resolve("Sarah")
        if decision.is_ambiguous:
            ask_user(decision.candidates)
    """

    def __init__(self, roster: Iterable[Person],
                 common_names: Iterable[str] = COMMON_GIVEN_NAMES):
        self.roster: List[Person] = list(roster)
        self.common_names = frozenset(_norm(n) for n in common_names)

    def find_candidates(self, name: str) -> List[Person]:
        """Roster people whose full name, first name or nickname matches"""
        return [p for p in self.roster if p.matches_name(name)]

    def is_common_name(self, name: str) -> bool:
        return _norm(name) in self.common_names

    def resolve(self, name: str, *,
                tagged: Sequence[Person] = (),
                confirmed_new: Iterable[str] = (),
                marker: MentionMarker = MentionMarker.NONE,
                has_context: bool = False) -> MentionResolution:
        """Resolve one mention

        Args:
            name: the name as written, without @ / @+
            tagged: people the user tagged for this story
            confirmed_new: names the user confirmed as new people
            marker: how the name was written
            has_context: the story disambiguates the name ("my wife Ola")
        """
        name = " ".join((name or "").split())

        for person in tagged:
            if person.matches_name(name):
                return self._link(name, person, 1.0, marker)

        if _norm(name) in {_norm(n) for n in confirmed_new}:
            return self._new(name, 1.0, marker)

        if marker == MentionMarker.NEW:
            return self._new(name, 1.0, marker)

        candidates = self.find_candidates(name)
        if not candidates:
            return self._new(name, 1.0 if marker == MentionMarker.EXPLICIT else 0.8, marker)

        exact = [p for p in candidates if p.matches_full_name(name)]

        if marker == MentionMarker.EXPLICIT:
            if len(exact) == 1:
                return self._link(name, exact[0], 1.0, marker)
            if len(candidates) == 1:
                return self._link(name, candidates[0], 0.95, marker)
            return self._ambiguous(name, candidates, marker)

        if len(candidates) == 1:
            person = candidates[0]
            if exact or not self.is_common_name(name) or has_context:
                return self._link(name, person, 1.0 if exact else 0.9, marker)

        return self._ambiguous(name, candidates, marker)

    def resolve_story(self, text: str,
                      bare_names: Iterable[str] = (),
                      tagged: Sequence[Person] = (),
                      confirmed_new: Iterable[str] = (),
                      context_names: Iterable[str] = ()) -> List[MentionResolution]:
        """Resolve every @ mention in the text plus the given bare names

        Args:
            text: story text
            bare_names: plain names found by the caller (no @ prefix)
            tagged: people tagged for this story
            confirmed_new: names confirmed as new
            context_names: bare names the story disambiguates
        """
        confirmed_new = list(confirmed_new)
        with_context = {_norm(n) for n in context_names}

        results: List[MentionResolution] = []
        seen: set = set()

        mentions: List[Tuple[str, MentionMarker]] = [
            (m.name, m.marker) for m in parse_mentions(text)
        ]
        mentions.extend((n, MentionMarker.NONE) for n in bare_names)

        for name, marker in mentions:
            key = (_norm(name), marker)
            if not key[0] or key in seen:
                continue
            seen.add(key)
            results.append(self.resolve(
                name,
                tagged=tagged,
                confirmed_new=confirmed_new,
                marker=marker,
                has_context=_norm(name) in with_context,
            ))

        ambiguous = [r.name for r in results if r.is_ambiguous]
        if ambiguous:
            logger.info("[AmbiguityResolver] ambiguous mentions: %s", ambiguous)
        return results

    # =========================================================================

    @staticmethod
    def _link(name: str, person: Person, confidence: float,
              marker: MentionMarker) -> MentionResolution:
        return MentionResolution(
            outcome=ResolutionOutcome.LINK,
            name=name,
            person_id=person.id,
            confidence=confidence,
            marker=marker,
        )

    @staticmethod
    def _new(name: str, confidence: float, marker: MentionMarker) -> MentionResolution:
        return MentionResolution(
            outcome=ResolutionOutcome.NEW,
            name=name,
            confidence=confidence,
            marker=marker,
        )

    @staticmethod
    def _ambiguous(name: str, candidates: Sequence[Person],
                   marker: MentionMarker) -> MentionResolution:
        return MentionResolution(
            outcome=ResolutionOutcome.AMBIGUOUS,
            name=name,
            confidence=0.0,
            candidates=[
                PossibleMatch(id=p.id, name=p.name, reason=_match_reason(p, name))
                for p in candidates
            ],
            marker=marker,
        )
