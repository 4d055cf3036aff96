"""Entry points for optimizing one domain or a batch of domains."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Sequence

from nameforge.config.settings import AlgorithmConfig, FitnessSettings, FitnessWeights
from nameforge.errors import NameForgeError
from nameforge.models import Domain
from nameforge.optimizer.annealing import SimulatedAnnealingOptimizer
from nameforge.optimizer.base import BaseOptimizer, OptimizationResult, ProgressCallback
from nameforge.optimizer.bayes import BayesianOptimizer
from nameforge.optimizer.cluster import ClusterDiscovery
from nameforge.optimizer.genetic import GeneticOptimizer
from nameforge.optimizer.hillclimb import HillClimbOptimizer
from nameforge.scoring.fitness import FitnessEvaluator
from nameforge.scoring.style_judge import StyleJudge

logger = logging.getLogger(__name__)

OPTIMIZERS: dict[str, type[BaseOptimizer]] = {
    "hillclimb": HillClimbOptimizer,
    "sim_anneal": SimulatedAnnealingOptimizer,
    "ga": GeneticOptimizer,
    "bayes": BayesianOptimizer,
}


def optimize(
    domain: Domain,
    settings: FitnessSettings | None = None,
    weights: FitnessWeights | None = None,
    algorithm_config: AlgorithmConfig | None = None,
    siblings: Sequence[Domain] = (),
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
    style_judge: StyleJudge | None = None,
) -> OptimizationResult:
    """Optimize a single domain.

    Args:
        domain: Domain to optimize (left unchanged)
        settings: Fitness sampling settings
        weights: Fitness metric weights
        algorithm_config: Algorithm choice and hyperparameters
        siblings: Other domains of the same culture, for separation
        on_progress: Callback for progress updates
        cancel_event: Set to stop early and return the best so far
        style_judge: Optional asynchronous style scorer

    Returns:
        OptimizationResult with the best configuration found

    Raises:
        OptimizationError: If the domain cannot be evaluated
    """
    config = algorithm_config or AlgorithmConfig()
    others = tuple(s for s in siblings if s.id != domain.id)

    with FitnessEvaluator(settings, weights, style_judge) as evaluator:
        if config.algorithm == "cluster":
            runner = ClusterDiscovery(evaluator, config, others, on_progress, cancel_event)
        else:
            runner = OPTIMIZERS[config.algorithm](evaluator, config, others, on_progress, cancel_event)
        return runner.run(domain)


@dataclass
class BatchOutcome:
    """Results of a batch run; one failing domain does not stop the others."""

    results: dict[str, OptimizationResult] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.errors


def optimize_batch(
    domains: Sequence[Domain],
    settings: FitnessSettings | None = None,
    weights: FitnessWeights | None = None,
    algorithm_config: AlgorithmConfig | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
    style_judge: StyleJudge | None = None,
    max_workers: int | None = None,
) -> BatchOutcome:
    """Optimize several domains in parallel.

    Each domain's siblings are the other input domains of the same culture,
    taken as they were before the batch started.
    """
    snapshot = tuple(domains)
    outcome = BatchOutcome()

    def run_one(domain: Domain) -> OptimizationResult:
        siblings = tuple(d for d in snapshot if d.culture_id == domain.culture_id and d.id != domain.id)
        return optimize(
            domain,
            settings=settings,
            weights=weights,
            algorithm_config=algorithm_config,
            siblings=siblings,
            on_progress=on_progress,
            cancel_event=cancel_event,
            style_judge=style_judge,
        )

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(run_one, domain): domain for domain in snapshot}
        for future in as_completed(futures):
            domain = futures[future]
            try:
                outcome.results[domain.id] = future.result()
            except NameForgeError as e:
                logger.error("Optimization of %s failed: %s", domain.id, e)
                outcome.errors[domain.id] = str(e)

    return outcome
