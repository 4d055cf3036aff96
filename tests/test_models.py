"""
Tests for Culture Records
=========================
Construction, validation and dictionary round trips of domains, grammars,
lexeme lists and strategy profiles.
"""

import pytest

from nameforge.errors import ConfigurationError
from nameforge.models import (
    Domain,
    EntityAttributes,
    GrammarStrategy,
    GroupConditions,
    Grammar,
    PhonotacticStrategy,
    Phonology,
    Scope,
    StrategyProfile,
    parse_strategy,
    parse_token,
)


class TestDomain:
    """Tests for Domain validation and serialization."""

    def test_from_dict_accepts_camel_case(self):
        """Test that editor-style camelCase keys are understood."""
        domain = Domain.from_dict(
            {
                "id": "d",
                "cultureId": "c",
                "phonology": {
                    "consonants": ["k"],
                    "vowels": ["a"],
                    "syllableTemplates": ["CV"],
                    "lengthRange": [2, 4],
                },
            }
        )
        assert domain.culture_id == "c"
        assert domain.phonology.syllable_templates == ("CV",)
        assert domain.phonology.length_range == (2, 4)

    def test_culture_id_default(self):
        """Test that the loader's culture id is used when the record has none."""
        domain = Domain.from_dict({"id": "d", "phonology": {"consonants": ["k"], "vowels": ["a"]}}, culture_id="c")
        assert domain.culture_id == "c"

    def test_to_dict_round_trip(self, rich_domain):
        """Test that to_dict output rebuilds an equal domain."""
        assert Domain.from_dict(rich_domain.to_dict()) == rich_domain

    def test_invalid_template_rejected(self):
        """Test that templates may only contain C and V."""
        with pytest.raises(ConfigurationError):
            Phonology(consonants=("k",), vowels=("a",), syllable_templates=("CXV",)).validate("d")

    def test_inverted_length_range_rejected(self):
        """Test that min length above max length is rejected."""
        with pytest.raises(ConfigurationError):
            Domain.from_dict(
                {"id": "d", "phonology": {"consonants": ["k"], "vowels": ["a"], "length_range": [6, 3]}}
            )

    def test_mismatched_weights_rejected(self):
        """Test that a weight array must match its element array."""
        with pytest.raises(ConfigurationError) as exc:
            Domain.from_dict(
                {
                    "id": "d",
                    "phonology": {"consonants": ["k", "t"], "vowels": ["a"], "consonant_weights": [1.0]},
                }
            )
        assert exc.value.record_id == "d"

    def test_unknown_capitalization_rejected(self):
        """Test that only known capitalization modes are accepted."""
        with pytest.raises(ConfigurationError):
            Domain.from_dict(
                {
                    "id": "d",
                    "phonology": {"consonants": ["k"], "vowels": ["a"]},
                    "style": {"capitalization": "shouting"},
                }
            )

    def test_target_length_defaults_to_range_middle(self, toy_domain):
        """Test the default target length."""
        assert toy_domain.target_length == 3

    def test_empty_inventory_allowed_at_construction(self):
        """Test that empty inventories are accepted (rejected at synthesis)."""
        domain = Domain.from_dict({"id": "d", "phonology": {"consonants": [], "vowels": []}})
        assert domain.phonology.consonants == ()


class TestScope:
    """Tests for wildcard scoping."""

    def test_wildcard_matches_everything(self):
        """Test the default scope."""
        assert Scope().matches("any", "thing")
        assert Scope().matches(None, None)

    def test_exact_scope(self):
        """Test that an exact scope only matches its values."""
        scope = Scope(cultures=("elves",), entity_kinds=("npc",))
        assert scope.matches("elves", "npc")
        assert not scope.matches("dwarves", "npc")
        assert not scope.matches("elves", None)

    def test_specificity_prefers_culture(self):
        """Test that an exact culture outranks an exact kind."""
        by_culture = Scope(cultures=("elves",))
        by_kind = Scope(entity_kinds=("npc",))
        assert by_culture.specificity("elves", "npc") > by_kind.specificity("elves", "npc")


class TestTokens:
    """Tests for grammar token parsing."""

    def test_rule_reference(self):
        """Test that rule names become rule tokens."""
        assert parse_token("adj", {"adj"}).kind == "rule"

    def test_literal(self):
        """Test that unknown words stay literal."""
        token = parse_token("of", {"adj"})
        assert token.kind == "literal"
        assert token.value == "of"

    def test_slot_with_suffix(self):
        """Test the ^suffix form."""
        token = parse_token("slot:nouns^s", set())
        assert (token.kind, token.value, token.suffix) == ("slot", "nouns", "s")

    def test_context_with_fallback(self):
        """Test the context:key|Fallback form."""
        token = parse_token("context:leader|the Wilds", set())
        assert token.kind == "context"
        assert token.value == "leader"
        assert token.fallback == "the Wilds"

    def test_compound(self):
        """Test that hyphen-joined references form a compound token."""
        token = parse_token("slot:adj-domain:elven", set())
        assert token.kind == "compound"
        assert [p.kind for p in token.parts] == ["slot", "domain"]
        assert token.raw == "slot:adj-domain:elven"

    def test_hyphenated_fallback(self):
        """Test that a hyphen inside a fallback does not split the token."""
        token = parse_token("context:leader|Old-Guard", set())
        assert token.kind == "context"
        assert token.fallback == "Old-Guard"

    def test_hyphenated_suffix(self):
        """Test that a hyphen inside a suffix does not split the token."""
        token = parse_token("slot:nouns^-born", set())
        assert (token.kind, token.value, token.suffix) == ("slot", "nouns", "-born")

    def test_compound_with_rule_name(self):
        """Test that a hyphen before a rule name still splits."""
        token = parse_token("slot:adj-noun", {"noun"})
        assert [p.kind for p in token.parts] == ["slot", "rule"]

    def test_empty_reference_rejected(self):
        """Test that a reference without a target is rejected."""
        with pytest.raises(ConfigurationError):
            parse_token("slot:", set())


class TestGrammar:
    """Tests for grammar validation."""

    def test_missing_start_symbol(self):
        """Test that the start symbol must be a rule."""
        with pytest.raises(ConfigurationError):
            Grammar.from_dict({"id": "g", "start": "name", "rules": {"other": [["x"]]}})

    def test_rule_without_alternatives(self):
        """Test that every rule needs an alternative."""
        with pytest.raises(ConfigurationError):
            Grammar.from_dict({"id": "g", "rules": {"name": []}})

    def test_never_terminating_rule(self):
        """Test that purely self-recursive rules are rejected."""
        with pytest.raises(ConfigurationError):
            Grammar.from_dict({"id": "g", "rules": {"name": [["name", "x"]]}})

    def test_recursion_with_exit_allowed(self):
        """Test that recursion with a terminating alternative is accepted."""
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["name", "x"], ["x"]]}})
        assert grammar.start == "name"

    def test_weighted_productions(self):
        """Test the {tokens, weight} production form."""
        grammar = Grammar.from_dict(
            {"id": "g", "rules": {"name": [{"tokens": ["a"], "weight": 3}, ["b"]]}}
        )
        weights = [p.weight for p in grammar.rules["name"]]
        assert weights == [3.0, None]

    def test_tokens_flattens_compounds(self, swift_grammar):
        """Test that tokens() lists terminal references."""
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["slot:a-domain:b"]]}})
        assert sorted(t.kind for t in grammar.tokens()) == ["domain", "slot"]
        assert {t.value for t in swift_grammar.tokens() if t.kind == "slot"} == {"adjectives", "nouns"}

    def test_to_dict_round_trip(self, swift_grammar):
        """Test that to_dict output rebuilds the same rules."""
        rebuilt = Grammar.from_dict(swift_grammar.to_dict())
        assert rebuilt.rules == swift_grammar.rules


class TestStrategies:
    """Tests for strategy variants and profiles."""

    def test_parse_variants(self):
        """Test both strategy kinds."""
        assert parse_strategy({"kind": "phonotactic", "domain_id": "d"}) == PhonotacticStrategy("d")
        assert parse_strategy({"type": "grammar", "grammarId": "g", "weight": 2}) == GrammarStrategy("g", 2.0)

    def test_unknown_kind_rejected(self):
        """Test that unknown strategy kinds fail at load."""
        with pytest.raises(ConfigurationError):
            parse_strategy({"kind": "dictionary"})

    def test_negative_weight_rejected(self):
        """Test that strategy weights must be non-negative."""
        with pytest.raises(ConfigurationError):
            parse_strategy({"kind": "phonotactic", "domain_id": "d", "weight": -1})

    def test_two_fallback_groups_rejected(self):
        """Test that a profile allows one unconditioned group."""
        group = {"name": "g", "strategies": [{"kind": "phonotactic", "domain_id": "d"}]}
        with pytest.raises(ConfigurationError):
            StrategyProfile.from_dict({"id": "p", "strategy_groups": [group, dict(group)]})

    def test_empty_conditions_are_unconditioned(self):
        """Test that empty condition lists make a fallback group."""
        assert GroupConditions.from_dict({"tags": [], "prominence": []}) is None

    def test_tag_matching(self):
        """Test any-tag and all-tags matching."""
        any_tag = GroupConditions(tags=("coastal", "ancient"))
        all_tags = GroupConditions(tags=("coastal", "ancient"), require_all_tags=True)
        entity = EntityAttributes(tags=("coastal",))
        assert any_tag.matches(entity)
        assert not all_tags.matches(entity)
        assert all_tags.matches(EntityAttributes(tags=("ancient", "coastal")))
