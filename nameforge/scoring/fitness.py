"""Domain fitness evaluation from sampled name corpora."""

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Sequence

from nameforge.config.settings import FitnessSettings, FitnessWeights
from nameforge.errors import OptimizationError
from nameforge.generator.synthesizer import NameSynthesizer
from nameforge.models import Domain
from nameforge.scoring import metrics
from nameforge.scoring.style_judge import StyleJudge, StyleJudgeRunner

logger = logging.getLogger(__name__)


@dataclass
class FitnessReport:
    """Result of evaluating a domain."""

    score: float
    breakdown: dict[str, float]
    sample_size: int = 0
    unique_count: int = 0
    skipped: list[str] = field(default_factory=list)
    names: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        parts = ", ".join(f"{k}={v:.3f}" for k, v in self.breakdown.items())
        return f"fitness={self.score:.4f} ({parts})"


def sample_names(domain: Domain, count: int, seed: int | str = 0, workers: int = 0) -> list[str]:
    """Synthesize ``count`` names, each from its own seeded random source.

    Candidate ``i`` always uses the seed ``"{seed}:{domain.id}:{i}"``, so the
    result is identical with or without a thread pool.

    Raises:
        ConfigurationError: If the domain has no consonants or no vowels
    """
    synthesizer = NameSynthesizer(domain)

    def draw(i: int) -> str:
        return synthesizer.synthesize(random.Random(f"{seed}:{domain.id}:{i}"))

    if workers > 1 and count > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(draw, range(count)))
    return [draw(i) for i in range(count)]


def unique_names(names: Sequence[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping first occurrences in order."""
    seen: set[str] = set()
    result = []
    for name in names:
        key = name.lower()
        if key not in seen:
            seen.add(key)
            result.append(name)
    return result


def weighted_score(breakdown: dict[str, float], weights: FitnessWeights) -> float:
    """Weighted mean over the metrics present in the breakdown.

    Weights are renormalized over the computed metrics; a zero total gives 0.
    """
    weight_map = weights.as_dict()
    total = sum(weight_map.get(k, 0.0) for k in breakdown)
    if total <= 0:
        return 0.0
    return sum(weight_map.get(k, 0.0) * v for k, v in breakdown.items()) / total


class FitnessEvaluator:
    """Scores a domain by sampling names and measuring the corpus.

    Sibling samples are cached per (sibling, seed), so repeated evaluations
    during an optimization run only resample the domain being tuned.
    """

    def __init__(
        self,
        settings: FitnessSettings | None = None,
        weights: FitnessWeights | None = None,
        style_judge: StyleJudge | None = None,
    ):
        """Initialize evaluator.

        Args:
            settings: Sampling and normalization parameters
            weights: Metric weights
            style_judge: Optional async style scorer
        """
        self.settings = settings or FitnessSettings()
        self.weights = weights or FitnessWeights()
        self.style_runner = (
            StyleJudgeRunner(style_judge, self.settings.style_timeout) if style_judge else None
        )
        self._sibling_cache: dict[tuple[Domain, str], list[str]] = {}

    def close(self) -> None:
        if self.style_runner is not None:
            self.style_runner.close()

    def __enter__(self) -> "FitnessEvaluator":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _sibling_sample(self, sibling: Domain, seed: int | str, count: int) -> list[str]:
        key = (sibling, f"{seed}:{count}")
        if key not in self._sibling_cache:
            names = sample_names(sibling, count, seed, self.settings.sample_workers)
            self._sibling_cache[key] = unique_names(names)
        return self._sibling_cache[key]

    def evaluate(
        self,
        domain: Domain,
        siblings: Sequence[Domain] = (),
        seed: int | str | None = None,
    ) -> FitnessReport:
        """Evaluate a domain.

        Args:
            domain: Domain to evaluate
            siblings: Other domains of the culture (separation metric)
            seed: Sampling seed (settings.seed if None)

        Returns:
            FitnessReport with score and per-metric breakdown

        Raises:
            ConfigurationError: If the domain has no consonants or no vowels
            OptimizationError: If no names could be sampled
        """
        settings = self.settings
        weights = self.weights
        seed = settings.seed if seed is None else seed
        required = settings.required_names

        drawn = sample_names(domain, settings.sample_size, seed, settings.sample_workers)
        unique = unique_names(name for name in drawn if name)
        if not unique:
            raise OptimizationError(f"Domain '{domain.id}' produced no names", domain_id=domain.id)

        kept = unique[:required] if len(unique) >= required else unique
        phonology = domain.phonology
        vowel_letters = {ch for v in phonology.vowels for ch in v.lower()}

        breakdown: dict[str, float] = {
            "capacity": metrics.capacity_score(len(unique), required),
            "diffuseness": metrics.diffuseness_score(kept, vowel_letters, settings.min_nn_distance),
            "pronounceability": metrics.pronounceability_score(
                kept,
                vowel_letters=vowel_letters,
                consonants=phonology.consonants,
                favored_clusters=phonology.favored_clusters,
                forbidden_clusters=phonology.forbidden_clusters,
                max_consonant_run=settings.max_consonant_run,
                max_vowel_run=settings.max_vowel_run,
            ),
            "length": metrics.length_score(kept, domain.target_length, domain.style.length_tolerance),
        }
        skipped = []

        others = [s for s in siblings if s.id != domain.id]
        if others and weights.separation > 0:
            sibling_samples = [
                self._sibling_sample(s, seed, min(len(drawn), required)) for s in others
            ]
            breakdown["separation"] = metrics.separation_score(
                kept, sibling_samples, settings.min_separation
            )
        else:
            skipped.append("separation")

        if self.style_runner is not None and weights.style > 0:
            style = self.style_runner.score(kept)
            if style is None:
                skipped.append("style")
            else:
                breakdown["style"] = style
        else:
            skipped.append("style")

        report = FitnessReport(
            score=weighted_score(breakdown, weights),
            breakdown=breakdown,
            sample_size=len(drawn),
            unique_count=len(unique),
            skipped=skipped,
            names=kept,
        )
        logger.debug("Domain %s: %s", domain.id, report)
        return report


def evaluate_fitness(
    domain: Domain,
    siblings: Sequence[Domain] = (),
    settings: FitnessSettings | None = None,
    weights: FitnessWeights | None = None,
    style_judge: StyleJudge | None = None,
    seed: int | str | None = None,
) -> FitnessReport:
    """Evaluate a domain with a one-off FitnessEvaluator."""
    with FitnessEvaluator(settings, weights, style_judge) as evaluator:
        return evaluator.evaluate(domain, siblings, seed)
