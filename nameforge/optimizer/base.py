"""Common machinery of the iterative domain optimizers."""

import logging
import random
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Sequence

from nameforge.config.settings import AlgorithmConfig
from nameforge.errors import ConfigurationError, OptimizationError
from nameforge.models import Domain
from nameforge.optimizer.parameters import ParameterSpace
from nameforge.scoring.fitness import FitnessEvaluator, FitnessReport

logger = logging.getLogger(__name__)


@dataclass
class ProgressReport:
    """Progress of an optimization run."""

    iteration: int
    total: int
    current_fitness: float
    best_fitness: float  # Never decreases within a run
    message: str = ""


ProgressCallback = Callable[[ProgressReport], None]


@dataclass
class ClusterSuggestion:
    """A cluster proposed for a domain's favored clusters."""

    cluster: str
    source: str  # discovered, borrowed, synthesized
    confidence: str  # high, medium, low
    reason: str
    frequency: int = 0


@dataclass
class OptimizationResult:
    """Outcome of optimizing one domain.

    The original domain is never modified; the caller decides whether to
    persist ``optimized_config``.
    """

    domain_id: str
    initial_fitness: float
    final_fitness: float
    initial_config: Domain
    optimized_config: Domain
    algorithm: str
    evaluations: int = 0
    convergence_history: list[float] = field(default_factory=list)
    cancelled: bool = False
    initial_breakdown: dict[str, float] = field(default_factory=dict)
    final_breakdown: dict[str, float] = field(default_factory=dict)
    suggestions: list[ClusterSuggestion] = field(default_factory=list)

    @property
    def improvement(self) -> float:
        return self.final_fitness - self.initial_fitness


def score_domain(
    evaluator: FitnessEvaluator,
    domain: Domain,
    siblings: Sequence[Domain],
    seed: int | str,
) -> FitnessReport:
    """Evaluate a domain, turning configuration problems into OptimizationError."""
    try:
        return evaluator.evaluate(domain, siblings, seed)
    except ConfigurationError as e:
        raise OptimizationError(
            f"Cannot compute fitness of domain '{domain.id}': {e.message}", domain_id=domain.id
        ) from e


class BaseOptimizer(ABC):
    """Search loop skeleton: encode, score, report progress, keep the best.

    Subclasses implement ``search``; every candidate goes through
    ``score_vector`` which decodes it, evaluates it with the run-wide seed
    and updates the best-so-far.
    """

    algorithm: ClassVar[str] = ""

    def __init__(
        self,
        evaluator: FitnessEvaluator,
        config: AlgorithmConfig,
        siblings: Sequence[Domain] = (),
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ):
        """Initialize optimizer.

        Args:
            evaluator: Fitness evaluator (settings and weights included)
            config: Algorithm hyperparameters
            siblings: Stable snapshot of sibling domains
            on_progress: Callback for progress updates
            cancel_event: Set to stop the run between iterations
        """
        self.evaluator = evaluator
        self.config = config
        self.siblings = tuple(siblings)
        self.on_progress = on_progress
        self.cancel_event = cancel_event
        self.rng = random.Random(config.seed)
        self.eval_seed: int | str = (
            config.seed if config.seed is not None else evaluator.settings.seed
        )

        self.space: ParameterSpace | None = None
        self.evaluations = 0
        self.history: list[float] = []
        self.best_fitness = 0.0
        self.best_domain: Domain | None = None
        self.best_breakdown: dict[str, float] = {}
        self._cache: dict[tuple[float, ...], float] = {}

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def score_vector(self, vector: list[float]) -> float:
        """Fitness of a parameter vector (cached per distinct vector)."""
        key = tuple(vector)
        if key in self._cache:
            return self._cache[key]

        domain = self.space.decode(vector)
        report = score_domain(self.evaluator, domain, self.siblings, self.eval_seed)
        self.evaluations += 1
        self._cache[key] = report.score

        if report.score > self.best_fitness:
            self.best_fitness = report.score
            self.best_domain = domain
            self.best_breakdown = report.breakdown
        self.history.append(self.best_fitness)
        return report.score

    def report(self, iteration: int, total: int, current: float, message: str = "") -> None:
        logger.debug(
            "%s %d/%d current=%.4f best=%.4f", self.algorithm, iteration, total, current, self.best_fitness
        )
        if self.on_progress:
            self.on_progress(
                ProgressReport(
                    iteration=iteration,
                    total=total,
                    current_fitness=current,
                    best_fitness=self.best_fitness,
                    message=message,
                )
            )

    @abstractmethod
    def search(self, start: list[float], start_fitness: float) -> None:
        """Explore the parameter space from the starting vector."""

    def run(self, domain: Domain) -> OptimizationResult:
        """Optimize a domain.

        Returns:
            OptimizationResult; final_fitness is never below initial_fitness

        Raises:
            OptimizationError: If the domain's fitness cannot be computed
        """
        initial = score_domain(self.evaluator, domain, self.siblings, self.eval_seed)
        self.evaluations = 1
        self.space = ParameterSpace(domain)
        self.best_fitness = initial.score
        self.best_domain = domain
        self.best_breakdown = initial.breakdown
        self.history = [initial.score]
        start = self.space.encode()

        logger.info(
            "Optimizing %s with %s (initial fitness %.4f)", domain.id, self.algorithm, initial.score
        )
        self.report(0, self.config.iterations, initial.score, "initial")
        self.search(start, initial.score)

        cancelled = self.cancelled
        if cancelled:
            logger.info("Optimization of %s cancelled, returning best so far", domain.id)
        logger.info(
            "Optimized %s: %.4f -> %.4f after %d evaluations",
            domain.id,
            initial.score,
            self.best_fitness,
            self.evaluations,
        )
        return OptimizationResult(
            domain_id=domain.id,
            initial_fitness=initial.score,
            final_fitness=self.best_fitness,
            initial_config=domain,
            optimized_config=self.best_domain,
            algorithm=self.algorithm,
            evaluations=self.evaluations,
            convergence_history=list(self.history),
            cancelled=cancelled,
            initial_breakdown=initial.breakdown,
            final_breakdown=self.best_breakdown,
        )
