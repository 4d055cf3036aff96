"""
Tests for Culture Registry
==========================
Registration, snapshots and scoped lexeme resolution.
"""

import pytest

from nameforge.errors import ConfigurationError
from nameforge.models import LexemeList, Scope
from nameforge.registry import CultureRegistry


@pytest.fixture
def scoped_registry():
    """Registry with three scoped variants of one lexeme list."""
    reg = CultureRegistry()
    reg.put_lexeme_list(LexemeList(id="titles", entries=("Lord",)))
    reg.put_lexeme_list(
        LexemeList(id="titles", entries=("Elder",), applies_to=Scope(entity_kinds=("npc",)))
    )
    reg.put_lexeme_list(
        LexemeList(id="titles", entries=("Warden",), applies_to=Scope(cultures=("sylvan",)))
    )
    return reg


class TestLexemeResolution:
    """Tests for wildcard-or-exact lexeme scoping."""

    def test_wildcard_variant(self, scoped_registry):
        """Test that the wildcard list serves unmatched requests."""
        assert scoped_registry.snapshot().resolve("titles", "dwarven", "settlement") == ["Lord"]

    def test_exact_kind_beats_wildcard(self, scoped_registry):
        """Test that an exact entity kind wins over the wildcard list."""
        assert scoped_registry.snapshot().resolve("titles", "dwarven", "npc") == ["Elder"]

    def test_exact_culture_beats_exact_kind(self, scoped_registry):
        """Test that an exact culture wins over an exact kind."""
        assert scoped_registry.snapshot().resolve("titles", "sylvan", "npc") == ["Warden"]

    def test_unknown_list(self, scoped_registry):
        """Test that an unknown list id is a configuration error."""
        with pytest.raises(ConfigurationError):
            scoped_registry.snapshot().resolve("missing", None, None)

    def test_no_matching_scope(self):
        """Test that a list scoped elsewhere does not resolve."""
        reg = CultureRegistry()
        reg.put_lexeme_list(LexemeList(id="l", entries=("x",), applies_to=Scope(cultures=("a",))))
        with pytest.raises(ConfigurationError):
            reg.snapshot().resolve("l", "b", None)

    def test_empty_list(self):
        """Test that resolving an empty list is a configuration error."""
        reg = CultureRegistry()
        reg.put_lexeme_list(LexemeList(id="l", entries=()))
        with pytest.raises(ConfigurationError):
            reg.snapshot().resolve("l", None, None)

    def test_same_scope_replaces(self, scoped_registry):
        """Test that re-registering a scope replaces the variant."""
        scoped_registry.put_lexeme_list(LexemeList(id="titles", entries=("Baron",)))
        snap = scoped_registry.snapshot()
        assert len(snap.lexeme_lists["titles"]) == 3
        assert snap.resolve("titles", None, None) == ["Baron"]


class TestSnapshot:
    """Tests for registry snapshots."""

    def test_snapshot_is_stable(self, registry, toy_domain):
        """Test that later mutations do not leak into an existing snapshot."""
        snap = registry.snapshot()
        registry.remove_domain(toy_domain.id)
        assert snap.domain(toy_domain.id) == toy_domain
        with pytest.raises(ConfigurationError):
            registry.snapshot().domain(toy_domain.id)

    def test_snapshot_is_read_only(self, snapshot):
        """Test that snapshot mappings cannot be modified."""
        with pytest.raises(TypeError):
            snapshot.domains["new"] = None

    def test_unknown_records(self, snapshot):
        """Test lookups of unknown ids."""
        for lookup in (snapshot.domain, snapshot.grammar, snapshot.profile):
            with pytest.raises(ConfigurationError):
                lookup("nope")

    def test_siblings(self, snapshot, toy_domain, rich_domain):
        """Test that siblings share the culture and exclude the domain itself."""
        assert snapshot.siblings_of(toy_domain) == (rich_domain,)

    def test_list_domains_by_culture(self, snapshot):
        """Test culture filtering."""
        assert len(snapshot.list_domains("test")) == 2
        assert snapshot.list_domains("other") == []


class TestLoad:
    """Tests for loading a culture dictionary."""

    def test_load_assigns_culture(self):
        """Test that domains inherit the culture id of the file."""
        reg = CultureRegistry()
        reg.load(
            {
                "culture_id": "sylvan",
                "domains": [{"id": "d", "phonology": {"consonants": ["l"], "vowels": ["a"]}}],
                "grammars": [{"id": "g", "rules": {"name": [["domain:d"]]}}],
                "lexeme_lists": [{"id": "l", "entries": ["x"]}],
                "profiles": [
                    {"id": "p", "strategy_groups": [{"name": "all", "strategies": [{"kind": "grammar", "grammar_id": "g"}]}]}
                ],
            }
        )
        snap = reg.snapshot()
        assert snap.domain("d").culture_id == "sylvan"
        assert snap.grammar("g").id == "g"
        assert snap.profile("p").id == "p"

    def test_invalid_record_fails_load(self):
        """Test that an invalid record raises before anything is registered."""
        reg = CultureRegistry()
        with pytest.raises(ConfigurationError):
            reg.load(
                {
                    "domains": [{"id": "ok", "phonology": {"consonants": ["l"], "vowels": ["a"]}}],
                    "grammars": [{"id": "bad", "start": "missing", "rules": {"name": [["x"]]}}],
                }
            )
        assert reg.snapshot().list_domains() == []
