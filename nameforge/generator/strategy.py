"""Strategy selection and profile-driven name generation."""

import logging
import random
from collections import Counter
from dataclasses import dataclass, field

from nameforge.errors import GrammarRecursionError, NoStrategyAvailable
from nameforge.generator.grammar_engine import ContextResolver, ExpansionContext, GrammarEngine
from nameforge.generator.markov import MarkovSource
from nameforge.generator.synthesizer import NameSynthesizer, pick_weighted
from nameforge.models import EntityAttributes, Strategy, StrategyGroup, StrategyProfile
from nameforge.registry import CultureSnapshot

logger = logging.getLogger(__name__)


def ordered_groups(profile: StrategyProfile) -> list[StrategyGroup]:
    """Conditioned groups by descending priority, then the unconditioned fallback.

    Equal priorities keep declaration order.
    """
    conditioned = [g for g in profile.strategy_groups if not g.is_fallback]
    conditioned.sort(key=lambda g: -g.priority)
    return conditioned + [g for g in profile.strategy_groups if g.is_fallback]


def select_strategy(
    profile: StrategyProfile,
    entity: EntityAttributes | None = None,
    rng: random.Random | None = None,
) -> Strategy:
    """Pick the strategy used to name an entity.

    The first group (in priority order) whose conditions match and that has
    strategies wins; a strategy is then drawn by weight. All-zero weights
    draw uniformly.

    Args:
        profile: Strategy profile
        entity: Entity being named (no attributes if None)
        rng: Random source

    Returns:
        Selected strategy

    Raises:
        NoStrategyAvailable: If no matching group has any strategy
    """
    entity = entity or EntityAttributes()
    rng = rng or random.Random()
    for group in ordered_groups(profile):
        if group.conditions is not None and not group.conditions.matches(entity):
            continue
        if not group.strategies:
            logger.debug("Profile %s: group '%s' is empty, falling through", profile.id, group.name)
            continue
        return pick_weighted(rng, group.strategies, [s.weight for s in group.strategies])
    raise NoStrategyAvailable(profile.id)


@dataclass
class GenerationResult:
    """Generated names and how many came from each strategy kind."""

    names: list[str] = field(default_factory=list)
    strategy_usage: Counter = field(default_factory=Counter)


class NameGenerator:
    """Generates names for entities from a culture snapshot and its profiles."""

    def __init__(
        self,
        snapshot: CultureSnapshot,
        engine: GrammarEngine | None = None,
        context_resolver: ContextResolver | None = None,
        markov_source: MarkovSource | None = None,
        fallback_profile_id: str | None = None,
    ):
        """Initialize generator.

        Args:
            snapshot: Culture records to generate from
            engine: Grammar engine (default limits if None)
            context_resolver: Resolver for ``context:`` tokens
            markov_source: Source for ``markov:`` tokens
            fallback_profile_id: Profile used when the requested one yields no strategy
        """
        self.snapshot = snapshot
        self.engine = engine or GrammarEngine()
        self.context_resolver = context_resolver
        self.markov_source = markov_source
        self.fallback_profile_id = fallback_profile_id

    def _select(self, profile: StrategyProfile, entity: EntityAttributes, rng: random.Random) -> Strategy:
        try:
            return select_strategy(profile, entity, rng)
        except NoStrategyAvailable:
            if not self.fallback_profile_id or self.fallback_profile_id == profile.id:
                raise
            logger.info("Profile %s has no strategy for entity, using %s", profile.id, self.fallback_profile_id)
            return select_strategy(self.snapshot.profile(self.fallback_profile_id), entity, rng)

    def _fallback_name(self, rng: random.Random, index: int) -> str:
        """Join one or two random lexemes when a grammar cannot be expanded."""
        lists = [v.entries for variants in self.snapshot.lexeme_lists.values() for v in variants if v.entries]
        if not lists:
            return f"Name-{index + 1}"
        parts = [rng.choice(rng.choice(lists)) for _ in range(rng.randint(1, 2))]
        name = "-".join(parts)
        return name[:1].upper() + name[1:]

    def run_strategy(
        self,
        strategy: Strategy,
        entity: EntityAttributes,
        rng: random.Random,
        culture_id: str | None = None,
    ) -> str:
        """Execute one strategy and return the name.

        Raises:
            ConfigurationError: On unknown domain/grammar or dangling references
            GrammarRecursionError: When a grammar nests too deep
        """
        if strategy.kind == "phonotactic":
            return NameSynthesizer(self.snapshot.domain(strategy.domain_id)).synthesize(rng)
        context = ExpansionContext(
            snapshot=self.snapshot,
            rng=rng,
            culture_id=culture_id,
            entity=entity,
            context_resolver=self.context_resolver,
            markov_source=self.markov_source,
        )
        return self.engine.expand(self.snapshot.grammar(strategy.grammar_id), context)

    def generate(
        self,
        profile_id: str,
        entity: EntityAttributes | None = None,
        count: int = 10,
        culture_id: str | None = None,
        seed: int | str | None = None,
    ) -> GenerationResult:
        """Generate names for an entity.

        Args:
            profile_id: Strategy profile to use
            entity: Entity attributes driving group conditions
            count: Number of names
            culture_id: Culture used for lexeme scoping
            seed: Seed for reproducible output

        Returns:
            GenerationResult with names and usage per strategy kind
            (``fallback`` counts names substituted after a recursion error)
        """
        profile = self.snapshot.profile(profile_id)
        entity = entity or EntityAttributes()
        rng = random.Random(seed)
        result = GenerationResult()

        for i in range(count):
            strategy = self._select(profile, entity, rng)
            try:
                name = self.run_strategy(strategy, entity, rng, culture_id)
                kind = strategy.kind
            except GrammarRecursionError as e:
                logger.warning("%s; substituting a fallback name", e.message)
                name = self._fallback_name(rng, i)
                kind = "fallback"
            result.names.append(name)
            result.strategy_usage[kind] += 1

        return result

    def generate_one(
        self,
        profile_id: str,
        entity: EntityAttributes | None = None,
        culture_id: str | None = None,
        seed: int | str | None = None,
    ) -> str:
        return self.generate(profile_id, entity, 1, culture_id, seed).names[0]
