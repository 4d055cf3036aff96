"""
Tests for Domain Optimizers
===========================
Parameter encoding, the iterative optimizers, cluster discovery and batch
runs.
"""

import random
import threading

import pytest

from nameforge.errors import OptimizationError
from nameforge.models import Domain, Phonology
from nameforge.optimizer import (
    ClusterDiscovery,
    ParameterSpace,
    optimize,
    optimize_batch,
)
from nameforge.optimizer.cluster import count_clusters, extract_clusters
from nameforge.scoring.fitness import FitnessEvaluator

ITERATIVE = ("hillclimb", "sim_anneal", "ga", "bayes")


class TestParameterSpace:
    """Tests for the domain parameter vector."""

    def test_encode_decode_identity(self, rich_domain):
        """Test that decoding the starting vector keeps the domain's values."""
        space = ParameterSpace(rich_domain)
        decoded = space.decode(space.encode())
        assert decoded.phonology.length_range == rich_domain.phonology.length_range
        assert decoded.morphology.structure_weights == rich_domain.morphology.structure_weights
        assert decoded.phonology.consonants == rich_domain.phonology.consonants

    def test_random_vectors_within_bounds(self, rich_domain):
        """Test that random vectors respect every dimension's range."""
        space = ParameterSpace(rich_domain)
        rng = random.Random(0)
        for _ in range(20):
            for spec, value in zip(space.specs, space.random_vector(rng)):
                assert spec.low <= value <= spec.high

    def test_decode_orders_length_range(self, toy_domain):
        """Test that an inverted length pair is reordered."""
        space = ParameterSpace(toy_domain)
        vector = space.encode()
        vector[-2], vector[-1] = 9.0, 4.0
        assert space.decode(vector).phonology.length_range == (4, 9)

    def test_original_unchanged(self, rich_domain):
        """Test that decoding never mutates the starting domain."""
        space = ParameterSpace(rich_domain)
        space.decode(space.random_vector(random.Random(1)))
        assert space.domain == rich_domain


class TestIterativeOptimizers:
    """Tests shared by every iterative algorithm."""

    @pytest.mark.parametrize("algorithm", ITERATIVE)
    def test_never_worse_than_initial(self, toy_domain, tiny_settings, tiny_algorithm, algorithm):
        """Test that the final fitness is never below the initial fitness."""
        for seed in range(100):
            result = optimize(toy_domain, settings=tiny_settings, algorithm_config=tiny_algorithm(algorithm, seed))
            assert result.final_fitness >= result.initial_fitness
            assert result.algorithm == algorithm

    @pytest.mark.parametrize("algorithm", ITERATIVE)
    def test_best_never_decreases(self, rich_domain, tiny_settings, tiny_algorithm, algorithm):
        """Test that reported best fitness is monotone."""
        reports = []
        result = optimize(
            rich_domain,
            settings=tiny_settings,
            algorithm_config=tiny_algorithm(algorithm, 3),
            on_progress=reports.append,
        )
        best = [r.best_fitness for r in reports]
        assert best == sorted(best)
        assert result.convergence_history == sorted(result.convergence_history)
        assert reports[0].iteration == 0

    @pytest.mark.parametrize("algorithm", ITERATIVE)
    def test_reproducible(self, rich_domain, tiny_settings, tiny_algorithm, algorithm):
        """Test that a seeded run is reproducible."""
        first = optimize(rich_domain, settings=tiny_settings, algorithm_config=tiny_algorithm(algorithm, 7))
        second = optimize(rich_domain, settings=tiny_settings, algorithm_config=tiny_algorithm(algorithm, 7))
        assert first.final_fitness == second.final_fitness
        assert first.optimized_config == second.optimized_config

    @pytest.mark.parametrize("algorithm", ITERATIVE)
    def test_cancelled_before_start(self, rich_domain, tiny_settings, tiny_algorithm, algorithm):
        """Test that a set cancel event returns the best so far."""
        cancel = threading.Event()
        cancel.set()
        result = optimize(
            rich_domain,
            settings=tiny_settings,
            algorithm_config=tiny_algorithm(algorithm, 1),
            cancel_event=cancel,
        )
        assert result.cancelled
        assert result.final_fitness >= result.initial_fitness

    def test_input_domain_unchanged(self, rich_domain, tiny_settings, tiny_algorithm):
        """Test that optimizing leaves the input domain as it was."""
        snapshot = Domain.from_dict(rich_domain.to_dict())
        result = optimize(rich_domain, settings=tiny_settings, algorithm_config=tiny_algorithm("hillclimb", 2))
        assert rich_domain == snapshot
        assert result.initial_config == rich_domain

    def test_empty_phonology(self, tiny_settings, tiny_algorithm):
        """Test that a domain without vowels cannot be optimized."""
        empty = Domain(id="empty", culture_id="t", phonology=Phonology(consonants=("k",), vowels=()))
        with pytest.raises(OptimizationError) as exc:
            optimize(empty, settings=tiny_settings, algorithm_config=tiny_algorithm("hillclimb"))
        assert exc.value.domain_id == "empty"

    def test_siblings_exclude_self(self, rich_domain, tiny_settings, tiny_algorithm):
        """Test that passing the domain as its own sibling skips separation."""
        result = optimize(
            rich_domain,
            settings=tiny_settings,
            algorithm_config=tiny_algorithm("hillclimb"),
            siblings=[rich_domain],
        )
        assert "separation" not in result.initial_breakdown


class TestClusterDiscovery:
    """Tests for the one-shot cluster heuristic."""

    def test_extract_clusters(self):
        """Test consonant and vowel runs of length two or more."""
        assert extract_clusters("Thaelon", set("aeo")) == ["th", "ae"]
        assert extract_clusters("Ka'thr", set("a")) == ["thr"]

    def test_count_clusters(self):
        """Test cluster counting over a corpus."""
        counts = count_clusters(["Thaelon", "Thorn"], set("aeo"))
        assert counts["th"] == 2
        assert counts["rn"] == 1

    @pytest.fixture
    def discovery(self, tiny_settings, tiny_algorithm, sibling_domain):
        with FitnessEvaluator(tiny_settings) as evaluator:
            yield ClusterDiscovery(evaluator, tiny_algorithm("cluster"), siblings=[sibling_domain])

    def test_suggestions_are_eligible(self, discovery, rich_domain):
        """Test that suggestions are new, allowed and buildable."""
        letters = set("lrnthsvaeio")
        suggestions = discovery.suggest(rich_domain)
        assert len(suggestions) <= discovery.config.max_suggestions
        for s in suggestions:
            assert s.cluster not in rich_domain.phonology.favored_clusters
            assert "rr" not in s.cluster
            assert set(s.cluster) <= letters
            assert s.source in ("discovered", "borrowed", "synthesized")
        assert len({s.cluster for s in suggestions}) == len(suggestions)

    def test_ranked_by_confidence(self, discovery, rich_domain):
        """Test that higher confidence comes first."""
        order = {"high": 0, "medium": 1, "low": 2}
        ranks = [order[s.confidence] for s in discovery.suggest(rich_domain)]
        assert ranks == sorted(ranks)

    def test_apply_boosts(self, discovery, toy_domain):
        """Test that applied clusters raise the boost to take effect."""
        suggestions = discovery.suggest(toy_domain)
        applied = discovery.apply(toy_domain, suggestions)
        if suggestions:
            assert applied.phonology.favored_cluster_boost >= 1.5
            assert applied.phonology.favored_clusters[-1] == suggestions[-1].cluster
        else:
            assert applied == toy_domain

    def test_run(self, rich_domain, sibling_domain, tiny_settings, tiny_algorithm):
        """Test the before/after result of a cluster run."""
        result = optimize(
            rich_domain,
            settings=tiny_settings,
            algorithm_config=tiny_algorithm("cluster"),
            siblings=[sibling_domain],
        )
        assert result.algorithm == "cluster"
        assert result.evaluations == 2
        assert result.convergence_history[-1] == max(result.initial_fitness, result.final_fitness)
        favored = result.optimized_config.phonology.favored_clusters
        assert favored[: len(rich_domain.phonology.favored_clusters)] == rich_domain.phonology.favored_clusters

    def test_cancelled(self, rich_domain, tiny_settings, tiny_algorithm):
        """Test that a cancelled run proposes nothing."""
        cancel = threading.Event()
        cancel.set()
        result = optimize(
            rich_domain, settings=tiny_settings, algorithm_config=tiny_algorithm("cluster"), cancel_event=cancel
        )
        assert result.cancelled
        assert result.optimized_config == rich_domain


class TestBatch:
    """Tests for batch optimization."""

    def test_all_domains_optimized(self, toy_domain, rich_domain, tiny_settings, tiny_algorithm):
        """Test that every domain gets a result."""
        outcome = optimize_batch(
            [toy_domain, rich_domain],
            settings=tiny_settings,
            algorithm_config=tiny_algorithm("hillclimb"),
            max_workers=2,
        )
        assert outcome.succeeded
        assert set(outcome.results) == {"toy", "rich"}

    def test_failure_collected(self, toy_domain, tiny_settings, tiny_algorithm):
        """Test that one failing domain does not stop the others."""
        broken = Domain(id="broken", culture_id="other", phonology=Phonology(consonants=(), vowels=("a",)))
        outcome = optimize_batch(
            [toy_domain, broken],
            settings=tiny_settings,
            algorithm_config=tiny_algorithm("ga"),
        )
        assert not outcome.succeeded
        assert set(outcome.results) == {"toy"}
        assert "broken" in outcome.errors
