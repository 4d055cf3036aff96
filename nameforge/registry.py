"""Culture registry: mutable store with immutable snapshots.

Editors change records through the ``put_*``/``remove_*`` methods. The
synthesizer, grammar engine and optimizer only read a ``CultureSnapshot``,
so they never observe a half-updated culture.
"""

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from nameforge.errors import ConfigurationError
from nameforge.models import Domain, Grammar, LexemeList, StrategyProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CultureSnapshot:
    """Read-only view of all registered records at one point in time."""

    domains: Mapping[str, Domain] = field(default_factory=lambda: MappingProxyType({}))
    grammars: Mapping[str, Grammar] = field(default_factory=lambda: MappingProxyType({}))
    lexeme_lists: Mapping[str, tuple[LexemeList, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    profiles: Mapping[str, StrategyProfile] = field(default_factory=lambda: MappingProxyType({}))

    def domain(self, domain_id: str) -> Domain:
        """Get a domain by id.

        Raises:
            ConfigurationError: If the domain is not registered
        """
        try:
            return self.domains[domain_id]
        except KeyError:
            raise ConfigurationError(f"Unknown domain '{domain_id}'", record_id=domain_id) from None

    def grammar(self, grammar_id: str) -> Grammar:
        try:
            return self.grammars[grammar_id]
        except KeyError:
            raise ConfigurationError(
                f"Unknown grammar '{grammar_id}'", record_id=grammar_id
            ) from None

    def profile(self, profile_id: str) -> StrategyProfile:
        try:
            return self.profiles[profile_id]
        except KeyError:
            raise ConfigurationError(
                f"Unknown profile '{profile_id}'", record_id=profile_id
            ) from None

    def resolve(self, list_id: str, culture_id: str | None, entity_kind: str | None) -> list[str]:
        """Resolve a lexeme list id to its entries for a culture and entity kind.

        Among the variants registered under ``list_id`` whose scope matches,
        the most specific one wins (exact culture, then exact kind, then
        wildcard). Registration order breaks ties.

        Args:
            list_id: Lexeme list id
            culture_id: Culture of the entity being named
            entity_kind: Kind of the entity being named

        Returns:
            Entries of the selected list

        Raises:
            ConfigurationError: If no variant matches or the match is empty
        """
        variants = self.lexeme_lists.get(list_id, ())
        matching = [v for v in variants if v.applies_to.matches(culture_id, entity_kind)]
        if not matching:
            raise ConfigurationError(
                f"No lexeme list '{list_id}' for culture={culture_id!r} kind={entity_kind!r}",
                record_id=list_id,
            )
        best = max(matching, key=lambda v: v.applies_to.specificity(culture_id, entity_kind))
        if not best.entries:
            raise ConfigurationError(f"Lexeme list '{list_id}' is empty", record_id=list_id)
        return list(best.entries)

    def list_domains(self, culture_id: str | None = None) -> list[Domain]:
        return [d for d in self.domains.values() if culture_id is None or d.culture_id == culture_id]

    def siblings_of(self, domain: Domain) -> tuple[Domain, ...]:
        """Other domains of the same culture, as a stable tuple."""
        return tuple(
            d for d in self.domains.values() if d.culture_id == domain.culture_id and d.id != domain.id
        )


class CultureRegistry:
    """Thread-safe store of culture records."""

    def __init__(self):
        self._lock = threading.Lock()
        self._domains: dict[str, Domain] = {}
        self._grammars: dict[str, Grammar] = {}
        self._lexemes: dict[str, list[LexemeList]] = {}
        self._profiles: dict[str, StrategyProfile] = {}

    # =========================================================================
    # MUTATION
    # =========================================================================

    def put_domain(self, domain: Domain) -> None:
        with self._lock:
            self._domains[domain.id] = domain

    def remove_domain(self, domain_id: str) -> None:
        with self._lock:
            self._domains.pop(domain_id, None)

    def put_grammar(self, grammar: Grammar) -> None:
        with self._lock:
            self._grammars[grammar.id] = grammar

    def remove_grammar(self, grammar_id: str) -> None:
        with self._lock:
            self._grammars.pop(grammar_id, None)

    def put_lexeme_list(self, lexeme_list: LexemeList) -> None:
        """Register a lexeme list.

        A list with the same id and the same scope replaces the old one;
        lists with other scopes are kept as alternative variants.
        """
        with self._lock:
            variants = self._lexemes.setdefault(lexeme_list.id, [])
            for i, existing in enumerate(variants):
                if existing.applies_to == lexeme_list.applies_to:
                    variants[i] = lexeme_list
                    break
            else:
                variants.append(lexeme_list)

    def remove_lexeme_list(self, list_id: str) -> None:
        with self._lock:
            self._lexemes.pop(list_id, None)

    def put_profile(self, profile: StrategyProfile) -> None:
        with self._lock:
            self._profiles[profile.id] = profile

    def remove_profile(self, profile_id: str) -> None:
        with self._lock:
            self._profiles.pop(profile_id, None)

    def load(self, data: dict[str, Any]) -> None:
        """Register all records of a culture dictionary.

        Expected keys: ``culture_id``, ``domains``, ``grammars``,
        ``lexeme_lists`` and ``profiles`` (all optional).
        """
        culture_id = data.get("culture_id") or data.get("cultureId")
        domains = [Domain.from_dict(d, culture_id=culture_id) for d in data.get("domains") or ()]
        grammars = [Grammar.from_dict(g) for g in data.get("grammars") or ()]
        lexemes = [
            LexemeList.from_dict(lex)
            for lex in data.get("lexeme_lists") or data.get("lexemeLists") or ()
        ]
        profiles = [StrategyProfile.from_dict(p) for p in data.get("profiles") or ()]

        for domain in domains:
            self.put_domain(domain)
        for grammar in grammars:
            self.put_grammar(grammar)
        for lexeme_list in lexemes:
            self.put_lexeme_list(lexeme_list)
        for profile in profiles:
            self.put_profile(profile)

        logger.info(
            "Loaded culture %s: %d domains, %d grammars, %d lexeme lists, %d profiles",
            culture_id,
            len(domains),
            len(grammars),
            len(lexemes),
            len(profiles),
        )

    # =========================================================================
    # READ
    # =========================================================================

    def snapshot(self) -> CultureSnapshot:
        """Freeze the current state into an immutable snapshot."""
        with self._lock:
            return CultureSnapshot(
                domains=MappingProxyType(dict(self._domains)),
                grammars=MappingProxyType(dict(self._grammars)),
                lexeme_lists=MappingProxyType({k: tuple(v) for k, v in self._lexemes.items()}),
                profiles=MappingProxyType(dict(self._profiles)),
            )
