"""Scoring module for evaluating naming domains."""

from .fitness import FitnessEvaluator, FitnessReport, evaluate_fitness, sample_names, unique_names
from .metrics import levenshtein_distance, normalized_levenshtein
from .style_judge import StyleJudge, StyleJudgeRunner

__all__ = [
    "FitnessEvaluator",
    "FitnessReport",
    "evaluate_fitness",
    "sample_names",
    "unique_names",
    "levenshtein_distance",
    "normalized_levenshtein",
    "StyleJudge",
    "StyleJudgeRunner",
]
