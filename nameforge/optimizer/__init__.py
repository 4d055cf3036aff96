"""Domain parameter optimizers."""

from .annealing import SimulatedAnnealingOptimizer
from .base import BaseOptimizer, ClusterSuggestion, OptimizationResult, ProgressReport
from .bayes import BayesianOptimizer
from .cluster import ClusterDiscovery
from .genetic import GeneticOptimizer
from .hillclimb import HillClimbOptimizer
from .parameters import ParameterBounds, ParameterSpace
from .runner import OPTIMIZERS, BatchOutcome, optimize, optimize_batch

__all__ = [
    "BaseOptimizer",
    "HillClimbOptimizer",
    "SimulatedAnnealingOptimizer",
    "GeneticOptimizer",
    "BayesianOptimizer",
    "ClusterDiscovery",
    "ClusterSuggestion",
    "OptimizationResult",
    "ProgressReport",
    "ParameterBounds",
    "ParameterSpace",
    "OPTIMIZERS",
    "BatchOutcome",
    "optimize",
    "optimize_batch",
]
