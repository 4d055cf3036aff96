"""Context-free grammar expansion for composite names.

Token kinds:
- symbol            -> expand another rule
- literal           -> use as-is
- slot:listId       -> pick from a lexeme list
- domain:domainId   -> synthesize a phonotactic name
- markov:modelId    -> generate from a Markov model
- context:key       -> name of a related entity (``context:key|Fallback``)
- ^suffix           -> append suffix without a space (e.g. ``domain:tech^'s``)
- a-b               -> parts expanded separately and joined with hyphens
"""

import logging
import random
import re
from dataclasses import dataclass, field
from typing import Protocol

from nameforge.errors import ConfigurationError, GrammarRecursionError
from nameforge.generator.markov import MarkovSource
from nameforge.generator.synthesizer import NameSynthesizer, apply_capitalization
from nameforge.models import EntityAttributes, Grammar, Production, Token
from nameforge.registry import CultureSnapshot

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 12


class ContextResolver(Protocol):
    """Maps relationship keys (leader, founder, ...) to related entity names."""

    def resolve(self, key: str, entity_id: str | None) -> str | None:
        ...


class StaticContextResolver:
    """ContextResolver backed by dictionaries.

    ``values`` apply to every entity; ``per_entity`` maps an entity id to
    its own key/value pairs and takes precedence.
    """

    def __init__(
        self,
        values: dict[str, str] | None = None,
        per_entity: dict[str, dict[str, str]] | None = None,
    ):
        self.values = dict(values or {})
        self.per_entity = {k: dict(v) for k, v in (per_entity or {}).items()}

    def resolve(self, key: str, entity_id: str | None) -> str | None:
        if entity_id is not None and key in self.per_entity.get(entity_id, {}):
            return self.per_entity[entity_id][key]
        return self.values.get(key)


@dataclass
class ExpansionContext:
    """Everything a grammar expansion may consult."""

    snapshot: CultureSnapshot
    rng: random.Random = field(default_factory=random.Random)
    culture_id: str | None = None
    entity: EntityAttributes = field(default_factory=EntityAttributes)
    context_resolver: ContextResolver | None = None
    markov_source: MarkovSource | None = None


class _Expansion:
    """State of one expand() call."""

    def __init__(self, engine: "GrammarEngine", grammar: Grammar, context: ExpansionContext):
        self.engine = engine
        self.grammar = grammar
        self.context = context
        self.rng = context.rng
        self.synthesizers: dict[str, NameSynthesizer] = {}
        self.context_values: dict[str, str | None] = {}
        self.retrying = False

    def symbol(self, symbol: str, depth: int) -> str:
        if depth > self.engine.max_depth:
            raise GrammarRecursionError(self.grammar.id, symbol, self.engine.max_depth)

        productions = self.grammar.rules[symbol]
        chosen = self._pick(productions)
        if self._resolves(chosen):
            return self.production(chosen, depth)

        others = [p for p in productions if p is not chosen and p.weight != 0 and self._resolves(p)]
        self.rng.shuffle(others)
        # Only the outermost retry absorbs recursion errors; nested ones unwind to it.
        outer = not self.retrying
        self.retrying = True
        try:
            for production in others:
                try:
                    return self.production(production, depth)
                except GrammarRecursionError:
                    if not outer:
                        raise
                    logger.debug("Grammar %s: alternative of '%s' recurses too deep", self.grammar.id, symbol)
        finally:
            if outer:
                self.retrying = False
        logger.debug("Grammar %s: no alternative of '%s' resolves, using fallbacks", self.grammar.id, symbol)
        return self.production(chosen, depth)

    def _pick(self, productions: tuple[Production, ...]) -> Production:
        if any(p.weight is not None for p in productions):
            weights = [1.0 if p.weight is None else p.weight for p in productions]
            if sum(weights) > 0:
                return self.rng.choices(productions, weights=weights, k=1)[0]
        return self.rng.choice(productions)

    def _resolves(self, production: Production) -> bool:
        """Whether every context token owned by the production has a value."""
        return all(self._lookup(token.value) for token in _context_tokens(production.tokens))

    def _lookup(self, key: str) -> str | None:
        if key not in self.context_values:
            resolver = self.context.context_resolver
            self.context_values[key] = (
                resolver.resolve(key, self.context.entity.id) if resolver is not None else None
            )
        return self.context_values[key]

    def production(self, production: Production, depth: int) -> str:
        parts = [self.token(token, depth) for token in production.tokens]
        return normalize_spacing(" ".join(parts))

    def token(self, token: Token, depth: int) -> str:
        kind = token.kind
        if kind == "literal":
            return token.value
        if kind == "rule":
            return self.symbol(token.value, depth + 1)
        if kind == "compound":
            return "-".join(self.token(part, depth) for part in token.parts)
        if kind == "slot":
            entries = self.context.snapshot.resolve(
                token.value, self.context.culture_id, self.context.entity.kind
            )
            return self.rng.choice(entries) + token.suffix
        if kind == "domain":
            return self._synthesizer(token.value).synthesize(self.rng) + token.suffix
        if kind == "markov":
            source = self.context.markov_source
            word = source.generate(token.value, self.rng) if source is not None else None
            if word is None:
                raise ConfigurationError(
                    f"Unknown markov model '{token.value}' in grammar '{self.grammar.id}'",
                    record_id=self.grammar.id,
                )
            return word + token.suffix
        if kind == "context":
            return self._context(token)
        raise ConfigurationError(f"Unknown token kind '{kind}'", record_id=self.grammar.id)

    def _synthesizer(self, domain_id: str) -> NameSynthesizer:
        if domain_id not in self.synthesizers:
            self.synthesizers[domain_id] = NameSynthesizer(self.context.snapshot.domain(domain_id))
        return self.synthesizers[domain_id]

    def _context(self, token: Token) -> str:
        value = self._lookup(token.value)
        if value:
            return value + token.suffix
        fallback = token.fallback if token.fallback is not None else self.engine.default_fallback
        return fallback + token.suffix if fallback else ""


def _context_tokens(tokens: tuple[Token, ...]):
    for token in tokens:
        if token.kind == "context":
            yield token
        elif token.kind == "compound":
            yield from _context_tokens(token.parts)


def normalize_spacing(text: str) -> str:
    """Collapse runs of whitespace and strip the ends."""
    return re.sub(r"\s+", " ", text).strip()


class GrammarEngine:
    """Recursive-descent expander for naming grammars."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH, default_fallback: str = ""):
        """Initialize engine.

        Args:
            max_depth: Maximum nonterminal nesting before GrammarRecursionError
            default_fallback: Text for unresolved context tokens without a fallback
        """
        self.max_depth = max_depth
        self.default_fallback = default_fallback

    def expand(self, grammar: Grammar, context: ExpansionContext, symbol: str | None = None) -> str:
        """Expand a grammar from its start symbol (or ``symbol``).

        An unresolved ``context:`` token makes the rule that owns it try its
        other alternatives once; when none resolves, the token's fallback
        (or the engine default) is substituted in place. Resolver lookups are
        cached for the duration of the call.

        Args:
            grammar: Grammar to expand
            context: Snapshot, random source and resolvers
            symbol: Nonterminal to start from

        Returns:
            Expanded name with normalized spacing

        Raises:
            ConfigurationError: On dangling slot/domain/markov references
            GrammarRecursionError: When expansion nests deeper than max_depth
        """
        symbol = symbol or grammar.start
        if symbol not in grammar.rules:
            raise ConfigurationError(
                f"Symbol '{symbol}' is not a rule of grammar '{grammar.id}'", record_id=grammar.id
            )
        result = _Expansion(self, grammar, context).symbol(symbol, 0)
        if grammar.capitalization:
            result = apply_capitalization(result, grammar.capitalization)
        return result

    def validate(
        self,
        grammar: Grammar,
        snapshot: CultureSnapshot,
        markov_source: MarkovSource | None = None,
    ) -> None:
        """Check every slot/domain/markov reference of a grammar up front.

        Raises:
            ConfigurationError: Listing all dangling references
        """
        problems = []
        for token in grammar.tokens():
            if token.kind == "slot" and token.value not in snapshot.lexeme_lists:
                problems.append(f"lexeme list '{token.value}'")
            elif token.kind == "domain" and token.value not in snapshot.domains:
                problems.append(f"domain '{token.value}'")
            elif token.kind == "markov" and (
                markov_source is None
                or (hasattr(markov_source, "__contains__") and token.value not in markov_source)
            ):
                problems.append(f"markov model '{token.value}'")
        if problems:
            raise ConfigurationError(
                f"Grammar '{grammar.id}' references unknown {', '.join(sorted(set(problems)))}",
                record_id=grammar.id,
            )


def expand(grammar: Grammar, context: ExpansionContext, symbol: str | None = None) -> str:
    """Expand a grammar with the default engine settings."""
    return GrammarEngine().expand(grammar, context, symbol)
