"""Cluster discovery: a one-shot heuristic for favored clusters.

Unlike the iterative optimizers, this pass runs once: it samples a corpus
from the domain and its siblings, counts consonant and vowel clusters and
proposes frequent ones (plus common onset patterns) as favored clusters.
"""

import logging
import threading
from collections import Counter
from dataclasses import replace
from typing import Sequence

from nameforge.config.settings import AlgorithmConfig
from nameforge.models import Domain
from nameforge.optimizer.base import (
    ClusterSuggestion,
    OptimizationResult,
    ProgressCallback,
    ProgressReport,
    score_domain,
)
from nameforge.scoring.fitness import FitnessEvaluator, sample_names
from nameforge.scoring.metrics import strip_markers

logger = logging.getLogger(__name__)

# Favored clusters need a boost above 1 to have any effect
APPLIED_CLUSTER_BOOST = 1.5
SIBLING_TOP_CLUSTERS = 20

# Common onset patterns: (first consonants, second consonants)
ONSET_PATTERNS = (
    (("p", "b", "t", "d", "k", "g"), ("l", "r")),
    (("s",), ("p", "t", "k")),
    (("m", "n"), ("b", "d", "g", "p", "t", "k")),
    (("f", "v", "th", "s"), ("l", "r", "w")),
)


def extract_clusters(name: str, vowel_letters: set[str]) -> list[str]:
    """Maximal consonant and vowel runs of length >= 2."""
    clusters = []
    current, current_is_vowel = "", None
    for part in strip_markers(name).split():
        for ch in part:
            is_vowel = ch in vowel_letters
            if is_vowel == current_is_vowel:
                current += ch
            else:
                if len(current) >= 2:
                    clusters.append(current)
                current, current_is_vowel = ch, is_vowel
    if len(current) >= 2:
        clusters.append(current)
    return clusters


def count_clusters(names: Sequence[str], vowel_letters: set[str]) -> Counter:
    counts: Counter = Counter()
    for name in names:
        counts.update(extract_clusters(name, vowel_letters))
    return counts


def _letters(domain: Domain) -> set[str]:
    phonology = domain.phonology
    return {ch for element in (*phonology.consonants, *phonology.vowels) for ch in element.lower()}


def _confidence(frequency: int, corpus_size: int) -> str:
    share = frequency / max(1, corpus_size)
    if share > 0.1:
        return "high"
    if share > 0.04:
        return "medium"
    return "low"


class ClusterDiscovery:
    """Suggests favored clusters for a domain and measures their effect."""

    algorithm = "cluster"

    def __init__(
        self,
        evaluator: FitnessEvaluator,
        config: AlgorithmConfig,
        siblings: Sequence[Domain] = (),
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.evaluator = evaluator
        self.config = config
        self.siblings = tuple(siblings)
        self.on_progress = on_progress
        self.cancel_event = cancel_event
        self.seed = config.seed if config.seed is not None else evaluator.settings.seed

    def _eligible(self, cluster: str, domain: Domain, taken: set[str]) -> bool:
        phonology = domain.phonology
        if cluster in taken or cluster in phonology.favored_clusters:
            return False
        if any(f.lower() in cluster for f in phonology.forbidden_clusters):
            return False
        return set(cluster) <= _letters(domain)

    def suggest(self, domain: Domain) -> list[ClusterSuggestion]:
        """Propose clusters, most confident first.

        Sources, in order: clusters frequent in the domain's own corpus,
        clusters frequent in sibling corpora, and common onset patterns
        buildable from the domain's consonants.
        """
        vowel_letters = {ch for v in domain.phonology.vowels for ch in v.lower()}
        corpus_size = self.config.corpus_size
        limit = self.config.max_suggestions
        suggestions: list[ClusterSuggestion] = []
        taken: set[str] = set()

        def add(cluster: str, source: str, confidence: str, reason: str, frequency: int = 0) -> None:
            suggestions.append(ClusterSuggestion(cluster, source, confidence, reason, frequency))
            taken.add(cluster)

        own = count_clusters(sample_names(domain, corpus_size, f"{self.seed}:clusters"), vowel_letters)
        for cluster, frequency in own.most_common():
            if frequency < self.config.min_cluster_count:
                break
            if self._eligible(cluster, domain, taken):
                add(
                    cluster,
                    "discovered",
                    _confidence(frequency, corpus_size),
                    f"Appears {frequency} times in {corpus_size} generated names",
                    frequency,
                )

        borrowed: Counter = Counter()
        sources: dict[str, list[str]] = {}
        for sibling in self.siblings:
            sibling_vowels = {ch for v in sibling.phonology.vowels for ch in v.lower()}
            names = sample_names(sibling, corpus_size, f"{self.seed}:clusters")
            for cluster, frequency in count_clusters(names, sibling_vowels).most_common(SIBLING_TOP_CLUSTERS):
                borrowed[cluster] += frequency
                sources.setdefault(cluster, []).append(sibling.id)
        for cluster, frequency in borrowed.most_common():
            if frequency < self.config.min_cluster_count:
                break
            if self._eligible(cluster, domain, taken):
                add(
                    cluster,
                    "borrowed",
                    "medium",
                    f"Frequent in sibling domains {', '.join(sources[cluster])}",
                    frequency,
                )

        consonants = {c.lower() for c in domain.phonology.consonants}
        for firsts, seconds in ONSET_PATTERNS:
            for first in firsts:
                for second in seconds:
                    cluster = first + second
                    if first in consonants and second in consonants and self._eligible(cluster, domain, taken):
                        add(cluster, "synthesized", "low", "Follows a common onset pattern")

        ranked = sorted(
            suggestions,
            key=lambda s: ({"high": 0, "medium": 1, "low": 2}[s.confidence], -s.frequency),
        )
        return ranked[:limit]

    def apply(self, domain: Domain, suggestions: Sequence[ClusterSuggestion]) -> Domain:
        """Domain with the suggested clusters added to its favored clusters."""
        if not suggestions:
            return domain
        phonology = domain.phonology
        return replace(
            domain,
            phonology=replace(
                phonology,
                favored_clusters=phonology.favored_clusters + tuple(s.cluster for s in suggestions),
                favored_cluster_boost=max(phonology.favored_cluster_boost, APPLIED_CLUSTER_BOOST),
            ),
        )

    def _report(self, iteration: int, current: float, best: float, message: str) -> None:
        if self.on_progress:
            self.on_progress(
                ProgressReport(iteration=iteration, total=2, current_fitness=current, best_fitness=best, message=message)
            )

    def run(self, domain: Domain) -> OptimizationResult:
        """Suggest clusters, apply them and report before/after fitness.

        The proposed domain is returned even when it scores lower; the
        caller decides whether to adopt it.

        Raises:
            OptimizationError: If the domain's fitness cannot be computed
        """
        before = score_domain(self.evaluator, domain, self.siblings, self.seed)
        self._report(0, before.score, before.score, "initial")

        if self.cancel_event is not None and self.cancel_event.is_set():
            return OptimizationResult(
                domain_id=domain.id,
                initial_fitness=before.score,
                final_fitness=before.score,
                initial_config=domain,
                optimized_config=domain,
                algorithm=self.algorithm,
                evaluations=1,
                convergence_history=[before.score],
                cancelled=True,
                initial_breakdown=before.breakdown,
                final_breakdown=before.breakdown,
            )

        suggestions = self.suggest(domain)
        proposed = self.apply(domain, suggestions)
        after = score_domain(self.evaluator, proposed, self.siblings, self.seed)
        best = max(before.score, after.score)
        self._report(1, after.score, best, f"{len(suggestions)} clusters applied")

        logger.info(
            "Cluster discovery for %s: %d suggestions, fitness %.4f -> %.4f",
            domain.id,
            len(suggestions),
            before.score,
            after.score,
        )
        return OptimizationResult(
            domain_id=domain.id,
            initial_fitness=before.score,
            final_fitness=after.score,
            initial_config=domain,
            optimized_config=proposed,
            algorithm=self.algorithm,
            evaluations=2,
            convergence_history=[before.score, best],
            initial_breakdown=before.breakdown,
            final_breakdown=after.breakdown,
            suggestions=list(suggestions),
        )
