"""Generator module for synthesizing and composing names."""

from .grammar_engine import (
    ContextResolver,
    ExpansionContext,
    GrammarEngine,
    StaticContextResolver,
    expand,
)
from .markov import MarkovModel, MarkovRegistry, MarkovSource
from .strategy import GenerationResult, NameGenerator, select_strategy
from .synthesizer import NameSynthesizer, SynthesisResult, synthesize, synthesize_detailed

__all__ = [
    "ContextResolver",
    "ExpansionContext",
    "GrammarEngine",
    "StaticContextResolver",
    "expand",
    "MarkovModel",
    "MarkovRegistry",
    "MarkovSource",
    "GenerationResult",
    "NameGenerator",
    "select_strategy",
    "NameSynthesizer",
    "SynthesisResult",
    "synthesize",
    "synthesize_detailed",
]
