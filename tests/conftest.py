"""Shared fixtures for nameforge tests."""

import pytest

from nameforge.config import AlgorithmConfig, FitnessSettings, FitnessWeights
from nameforge.models import (
    Domain,
    Grammar,
    LexemeList,
    Morphology,
    Phonology,
    StyleRules,
)
from nameforge.registry import CultureRegistry


@pytest.fixture
def toy_domain():
    """Small three-consonant domain."""
    return Domain(
        id="toy",
        culture_id="test",
        phonology=Phonology(
            consonants=("l", "r", "n"),
            vowels=("a", "e", "i"),
            syllable_templates=("CV", "CVC"),
            length_range=(2, 4),
        ),
    )


@pytest.fixture
def rich_domain():
    """Domain using morphology, preferred endings and forbidden clusters."""
    return Domain(
        id="rich",
        culture_id="test",
        phonology=Phonology(
            consonants=("l", "r", "n", "th", "s", "v"),
            vowels=("a", "e", "i", "o"),
            syllable_templates=("CV", "CVC", "V"),
            length_range=(3, 8),
            favored_clusters=("th",),
            forbidden_clusters=("rr",),
            favored_cluster_boost=2.0,
        ),
        morphology=Morphology(
            suffixes=("iel", "or"),
            structure=("root", "root-suffix"),
            structure_weights=(2.0, 1.0),
        ),
        style=StyleRules(preferred_endings=("el",), preferred_ending_boost=2.0, rhythm_bias="flowing"),
    )


@pytest.fixture
def sibling_domain():
    """Harsh-sounding domain of the same culture."""
    return Domain(
        id="harsh",
        culture_id="test",
        phonology=Phonology(
            consonants=("k", "g", "t", "r"),
            vowels=("u", "o"),
            syllable_templates=("CVC",),
            length_range=(3, 6),
        ),
    )


@pytest.fixture
def swift_grammar():
    """Grammar that always expands to 'Swift Scale'."""
    return Grammar.from_dict(
        {
            "id": "swift",
            "start": "name",
            "rules": {
                "name": [["adj", "noun"]],
                "adj": [["slot:adjectives"]],
                "noun": [["slot:nouns"]],
            },
        }
    )


@pytest.fixture
def registry(toy_domain, rich_domain, swift_grammar):
    """Registry with two domains, one grammar and two lexeme lists."""
    reg = CultureRegistry()
    reg.put_domain(toy_domain)
    reg.put_domain(rich_domain)
    reg.put_grammar(swift_grammar)
    reg.put_lexeme_list(LexemeList(id="adjectives", entries=("Swift",)))
    reg.put_lexeme_list(LexemeList(id="nouns", entries=("Scale",)))
    return reg


@pytest.fixture
def snapshot(registry):
    return registry.snapshot()


@pytest.fixture
def tiny_settings():
    """Fitness settings small enough for many optimizer runs."""
    return FitnessSettings(required_names=10, sample_factor=1.0, max_sample_size=10)


@pytest.fixture
def weights():
    return FitnessWeights()


@pytest.fixture
def tiny_algorithm():
    def make(algorithm: str, seed: int = 0) -> AlgorithmConfig:
        return AlgorithmConfig(
            algorithm=algorithm,
            iterations=2,
            seed=seed,
            population_size=3,
            elite_count=1,
            n_startup=1,
            n_candidates=4,
            corpus_size=20,
        )

    return make
