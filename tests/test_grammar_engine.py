"""
Tests for Grammar Engine
========================
Expansion of naming grammars: slots, domains, Markov models, context tokens,
compounds, recursion limits and validation.
"""

import random
import re

import pytest

from nameforge.errors import ConfigurationError, GrammarRecursionError
from nameforge.generator.grammar_engine import (
    ExpansionContext,
    GrammarEngine,
    StaticContextResolver,
    expand,
)
from nameforge.generator.markov import MarkovRegistry
from nameforge.models import EntityAttributes, Grammar, LexemeList, Scope


def make_context(snapshot, seed=0, **kwargs):
    return ExpansionContext(snapshot=snapshot, rng=random.Random(seed), **kwargs)


class CountingResolver:
    """Resolver with no values that counts lookups."""

    def __init__(self):
        self.calls = 0

    def resolve(self, key, entity_id):
        self.calls += 1
        return None


class TestExpansion:
    """Tests for basic expansion."""

    def test_swift_scale(self, snapshot, swift_grammar):
        """Test that single-entry lexemes always give 'Swift Scale'."""
        for seed in range(20):
            assert expand(swift_grammar, make_context(snapshot, seed)) == "Swift Scale"

    def test_deterministic_for_seed(self, snapshot):
        """Test that a fixed seed gives a fixed expansion."""
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["domain:rich", "of", "domain:toy"]]}})
        first = expand(grammar, make_context(snapshot, 42))
        assert first == expand(grammar, make_context(snapshot, 42))

    def test_start_from_symbol(self, snapshot, swift_grammar):
        """Test expanding a non-start symbol."""
        assert GrammarEngine().expand(swift_grammar, make_context(snapshot), "noun") == "Scale"

    def test_unknown_symbol(self, snapshot, swift_grammar):
        """Test that an unknown start symbol is a configuration error."""
        with pytest.raises(ConfigurationError):
            GrammarEngine().expand(swift_grammar, make_context(snapshot), "verb")

    def test_suffix_and_compound(self, snapshot):
        """Test ^suffix tokens and hyphen compounds."""
        grammar = Grammar.from_dict(
            {"id": "g", "rules": {"name": [["slot:nouns^s"], ["slot:adjectives-slot:nouns"]]}}
        )
        results = {expand(grammar, make_context(snapshot, seed)) for seed in range(30)}
        assert results == {"Scales", "Swift-Scale"}

    def test_domain_token(self, snapshot):
        """Test that domain tokens synthesize from the named domain."""
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["domain:toy"]]}})
        name = expand(grammar, make_context(snapshot, 3))
        assert set(name.lower()) <= set("lrnaei")

    def test_weighted_alternatives(self, snapshot):
        """Test that a zero-weight alternative is never chosen."""
        grammar = Grammar.from_dict(
            {"id": "g", "rules": {"name": [{"tokens": ["never"], "weight": 0}, {"tokens": ["always"], "weight": 1}]}}
        )
        assert {expand(grammar, make_context(snapshot, s)) for s in range(20)} == {"always"}

    def test_grammar_capitalization(self, snapshot):
        """Test that a grammar capitalization applies to the whole result."""
        grammar = Grammar.from_dict(
            {"id": "g", "capitalization": "titleWords", "rules": {"name": [["the", "slot:nouns"]]}}
        )
        assert expand(grammar, make_context(snapshot)) == "The Scale"

    def test_scoped_lexemes(self, registry, swift_grammar):
        """Test that slot tokens honor culture and entity kind."""
        registry.put_lexeme_list(
            LexemeList(id="nouns", entries=("Fang",), applies_to=Scope(entity_kinds=("beast",)))
        )
        context = make_context(registry.snapshot(), entity=EntityAttributes(kind="beast"))
        assert expand(swift_grammar, context) == "Swift Fang"


class TestContextTokens:
    """Tests for context token resolution and fallbacks."""

    @pytest.fixture
    def grammar(self):
        return Grammar.from_dict(
            {"id": "g", "rules": {"name": [["Hall", "of", "context:founder|the Ancients"]]}}
        )

    def test_resolved(self, snapshot, grammar):
        """Test that a resolved key is substituted."""
        context = make_context(snapshot, context_resolver=StaticContextResolver({"founder": "Aelwen"}))
        assert expand(grammar, context) == "Hall of Aelwen"

    def test_per_entity_value(self, snapshot, grammar):
        """Test that per-entity values take precedence."""
        resolver = StaticContextResolver({"founder": "Aelwen"}, {"e1": {"founder": "Thorin"}})
        context = make_context(snapshot, context_resolver=resolver, entity=EntityAttributes(id="e1"))
        assert expand(grammar, context) == "Hall of Thorin"

    def test_token_fallback(self, snapshot, grammar):
        """Test that an unresolved key uses the token fallback."""
        assert expand(grammar, make_context(snapshot)) == "Hall of the Ancients"

    def test_sibling_alternative_preferred(self, snapshot):
        """Test that an alternative without context wins over a fallback."""
        grammar = Grammar.from_dict(
            {"id": "g", "rules": {"name": [["context:leader|Nobody"], ["slot:nouns"]]}}
        )
        for seed in range(20):
            assert expand(grammar, make_context(snapshot, seed)) == "Scale"

    def test_engine_default_fallback(self, snapshot):
        """Test the engine default for tokens without a fallback."""
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["Hall", "context:leader"]]}})
        assert GrammarEngine(default_fallback="Unknown").expand(grammar, make_context(snapshot)) == "Hall Unknown"
        assert GrammarEngine().expand(grammar, make_context(snapshot)) == "Hall"

    def test_hyphenated_fallback_kept_whole(self, snapshot):
        """Test that a resolved key replaces a hyphenated fallback entirely."""
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["context:leader|Old-Guard"]]}})
        context = make_context(snapshot, context_resolver=StaticContextResolver({"leader": "Aelric"}))
        assert expand(grammar, context) == "Aelric"
        assert expand(grammar, make_context(snapshot)) == "Old-Guard"

    def test_recursive_alternative_falls_back(self, snapshot):
        """Test that a sibling recursing past the limit yields the fallback."""
        grammar = Grammar.from_dict(
            {
                "id": "g",
                "rules": {
                    "name": [
                        {"tokens": ["context:leader|Nobody"], "weight": 1},
                        {"tokens": ["name", "the", "Elder"], "weight": 0.1},
                    ]
                },
            }
        )
        results = set()
        for seed in range(10):
            context = make_context(snapshot, seed, context_resolver=StaticContextResolver({}))
            result = expand(grammar, context)
            assert re.fullmatch(r"Nobody( the Elder)*", result)
            results.add(result)
        assert "Nobody" in results

    def test_resolver_called_once_per_key(self, snapshot):
        """Test that nested unresolved tokens do not replay the expansion."""
        levels = 9
        rules = {
            f"level{i}": [[f"context:leader|{word}", f"level{i + 1}"] for word in ("X", "Y", "Z")]
            for i in range(levels)
        }
        rules[f"level{levels}"] = [["Scale"]]
        grammar = Grammar.from_dict({"id": "chain", "start": "level0", "rules": rules})
        resolver = CountingResolver()
        result = expand(grammar, make_context(snapshot, 5, context_resolver=resolver))
        assert resolver.calls == 1
        words = result.split()
        assert len(words) == levels + 1
        assert words[-1] == "Scale"
        assert set(words[:-1]) <= {"X", "Y", "Z"}


class TestMarkovTokens:
    """Tests for markov: tokens."""

    def test_markov_model(self, snapshot):
        """Test that a registered model generates a capitalized word."""
        source = MarkovRegistry.from_corpora({"elvish": ["elanor", "elenna", "elrond", "elwing"]})
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["markov:elvish"]]}})
        word = expand(grammar, make_context(snapshot, 1, markov_source=source))
        assert word[0] == "E"
        assert len(word) >= 3

    def test_unknown_model(self, snapshot):
        """Test that an unknown model is a configuration error."""
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["markov:missing"]]}})
        with pytest.raises(ConfigurationError):
            expand(grammar, make_context(snapshot, markov_source=MarkovRegistry()))


class TestRecursion:
    """Tests for the expansion depth limit."""

    def test_depth_exceeded(self, snapshot):
        """Test that runaway recursion raises GrammarRecursionError."""
        grammar = Grammar.from_dict(
            {"id": "deep", "rules": {"name": [{"tokens": ["name", "x"], "weight": 1}, {"tokens": ["x"], "weight": 0}]}}
        )
        with pytest.raises(GrammarRecursionError) as exc:
            GrammarEngine(max_depth=5).expand(grammar, make_context(snapshot))
        assert exc.value.grammar_id == "deep"

    def test_bounded_recursion(self, snapshot):
        """Test that recursion within the limit expands."""
        grammar = Grammar.from_dict({"id": "g", "rules": {"name": [["name", "x"], ["x"]]}})
        result = GrammarEngine(max_depth=50).expand(grammar, make_context(snapshot, 3))
        assert set(result.split()) == {"x"}


class TestValidation:
    """Tests for up-front reference validation."""

    def test_dangling_references(self, snapshot):
        """Test that all dangling references are reported together."""
        grammar = Grammar.from_dict(
            {"id": "g", "rules": {"name": [["slot:missing", "domain:nowhere"], ["markov:nope"]]}}
        )
        with pytest.raises(ConfigurationError) as exc:
            GrammarEngine().validate(grammar, snapshot, MarkovRegistry())
        message = exc.value.message
        assert "missing" in message and "nowhere" in message and "nope" in message

    def test_valid_grammar(self, snapshot, swift_grammar):
        """Test that a grammar with known references validates."""
        GrammarEngine().validate(swift_grammar, snapshot)
