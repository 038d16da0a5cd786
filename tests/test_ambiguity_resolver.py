"""Person ambiguity resolver tests"""

import pytest

from friends.processor import (
    AmbiguityResolver,
    MentionMarker,
    ResolutionOutcome,
    parse_mentions,
)


@pytest.fixture
def resolver(roster):
    return AmbiguityResolver(roster)


class TestParseMentions:

    def test_explicit_and_new_markers(self):
        mentions = parse_mentions("Had lunch with @Sarah and @+Mia.")
        assert [(m.name, m.marker) for m in mentions] == [
            ("Sarah", MentionMarker.EXPLICIT),
            ("Mia", MentionMarker.NEW),
        ]
        assert mentions[0].start == 15

    def test_no_mentions(self):
        assert parse_mentions("Nothing here") == []
        assert parse_mentions(None) == []

    def test_names_with_apostrophe_and_hyphen(self):
        mentions = parse_mentions("@O'Neil and @Anne-Marie")
        assert [m.name for m in mentions] == ["O'Neil", "Anne-Marie"]


class TestBareNames:

    def test_two_sarahs_are_ambiguous(self, resolver):
        decision = resolver.resolve("Sarah")
        assert decision.outcome == ResolutionOutcome.AMBIGUOUS
        assert decision.person_id is None
        assert decision.confidence == 0.0
        assert [c.id for c in decision.candidates] == ["sarah-1", "sarah-2"]
        assert {c.reason for c in decision.candidates} == {"First name match"}

    def test_unique_uncommon_name_links(self, resolver):
        decision = resolver.resolve("Xavier")
        assert decision.outcome == ResolutionOutcome.LINK
        assert decision.person_id == "xavier-1"
        assert decision.confidence == 0.9

    def test_common_name_needs_context(self, resolver):
        decision = resolver.resolve("Ola")
        assert decision.is_ambiguous
        assert [c.id for c in decision.candidates] == ["ola-1"]

        decision = resolver.resolve("Ola", has_context=True)
        assert decision.outcome == ResolutionOutcome.LINK
        assert decision.person_id == "ola-1"

    def test_full_name_links_with_full_confidence(self, resolver):
        decision = resolver.resolve("ola  kowalska")
        assert decision.person_id == "ola-1"
        assert decision.confidence == 1.0

    def test_nickname(self, resolver):
        assert resolver.resolve("Sal").person_id == "sarah-2"

    def test_unknown_name_is_new(self, resolver):
        decision = resolver.resolve("Zed")
        assert decision.outcome == ResolutionOutcome.NEW
        assert decision.confidence == 0.8

    def test_custom_common_names(self, roster):
        resolver = AmbiguityResolver(roster, common_names=["Xavier"])
        assert resolver.resolve("Xavier").is_ambiguous


class TestPriority:

    def test_tagged_person_wins(self, resolver, roster):
        decision = resolver.resolve("Sarah", tagged=[roster[1]])
        assert decision.outcome == ResolutionOutcome.LINK
        assert decision.person_id == "sarah-2"
        assert decision.confidence == 1.0

    def test_confirmed_new_beats_roster(self, resolver):
        decision = resolver.resolve("Xavier", confirmed_new=["xavier"])
        assert decision.outcome == ResolutionOutcome.NEW
        assert decision.confidence == 1.0

    def test_at_plus_is_always_new(self, resolver):
        decision = resolver.resolve("Xavier", marker=MentionMarker.NEW)
        assert decision.outcome == ResolutionOutcome.NEW

    def test_explicit_with_two_matches_is_still_ambiguous(self, resolver):
        decision = resolver.resolve("Sarah", marker=MentionMarker.EXPLICIT)
        assert decision.is_ambiguous
        assert len(decision.candidates) == 2

    def test_explicit_full_name(self, resolver):
        decision = resolver.resolve("Sarah Jones", marker=MentionMarker.EXPLICIT)
        assert decision.person_id == "sarah-1"
        assert decision.confidence == 1.0

    def test_explicit_single_match_ignores_common_name_list(self, resolver):
        decision = resolver.resolve("Ola", marker=MentionMarker.EXPLICIT)
        assert decision.person_id == "ola-1"
        assert decision.confidence == 0.95

    def test_explicit_unknown_is_new(self, resolver):
        decision = resolver.resolve("Zed", marker=MentionMarker.EXPLICIT)
        assert decision.outcome == ResolutionOutcome.NEW
        assert decision.confidence == 1.0


class TestResolveStory:

    def test_story_mentions_and_bare_names(self, resolver):
        results = resolver.resolve_story(
            "Coffee with @Sarah and @+Mia",
            bare_names=["Xavier", "Ola", "Sarah"],
            context_names=["Ola"],
        )
        assert [(r.name, r.outcome) for r in results] == [
            ("Sarah", ResolutionOutcome.AMBIGUOUS),
            ("Mia", ResolutionOutcome.NEW),
            ("Xavier", ResolutionOutcome.LINK),
            ("Ola", ResolutionOutcome.LINK),
            ("Sarah", ResolutionOutcome.AMBIGUOUS),
        ]

    def test_duplicates_collapse(self, resolver):
        results = resolver.resolve_story("@Xavier said hi, then @xavier left", bare_names=[""])
        assert len(results) == 1

    def test_ambiguous_match_payload(self, resolver):
        match = resolver.resolve("Sarah").to_ambiguous_match()
        assert match.name_in_story == "Sarah"
        assert [m.name for m in match.possible_matches] == ["Sarah Jones", "Sarah Lee"]
