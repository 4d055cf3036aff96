"""Configuration module."""

from nameforge.config.settings import (
    ALGORITHMS,
    AlgorithmConfig,
    FitnessSettings,
    FitnessWeights,
    GrammarConfig,
    LLMConfig,
    LoggingConfig,
    Settings,
    load_settings,
)

__all__ = [
    "ALGORITHMS",
    "AlgorithmConfig",
    "FitnessSettings",
    "FitnessWeights",
    "GrammarConfig",
    "LLMConfig",
    "LoggingConfig",
    "Settings",
    "load_settings",
]
