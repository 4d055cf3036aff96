"""
Tests for Fitness Evaluation
============================
Corpus metrics, the fitness evaluator and the asynchronous style judge.
"""

import asyncio

import pytest

from nameforge.config import FitnessSettings, FitnessWeights
from nameforge.scoring import metrics
from nameforge.scoring.fitness import (
    FitnessEvaluator,
    evaluate_fitness,
    sample_names,
    unique_names,
    weighted_score,
)
from nameforge.scoring.style_judge import StyleJudgeRunner


class FixedJudge:
    """Style judge returning a constant value."""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def score(self, names):
        self.calls += 1
        return self.value


class SlowJudge:
    async def score(self, names):
        await asyncio.sleep(5)
        return 1.0


class BrokenJudge:
    async def score(self, names):
        raise RuntimeError("service unavailable")


class TestMetrics:
    """Tests for individual corpus metrics."""

    def test_levenshtein(self):
        """Test edit distance."""
        assert metrics.levenshtein_distance("kitten", "sitting") == 3
        assert metrics.levenshtein_distance("", "abc") == 3
        assert metrics.normalized_levenshtein("abc", "abc") == 0.0

    def test_capacity(self):
        """Test unique yield relative to the requirement."""
        assert metrics.capacity_score(5, 10) == 0.5
        assert metrics.capacity_score(20, 10) == 1.0
        assert metrics.capacity_score(0, 0) == 1.0

    def test_length(self):
        """Test the share of names near the target length."""
        assert metrics.length_score(["Ana", "Kaelin"], 3, 0) == 0.5
        assert metrics.length_score(["Ana", "Kaelin"], 4, 2) == 1.0
        assert metrics.length_score([], 4, 2) == 0.0

    def test_length_ignores_markers(self):
        """Test that apostrophes and hyphens do not count as letters."""
        assert metrics.length_score(["Ka'el"], 4, 0) == 1.0

    def test_js_divergence_bounds(self):
        """Test identical and disjoint distributions."""
        p = {"ab": 0.5, "bc": 0.5}
        assert metrics.js_divergence(p, p) == pytest.approx(0.0)
        assert metrics.js_divergence(p, {"xy": 1.0}) == pytest.approx(1.0)

    def test_separation(self):
        """Test separation against identical and distinct siblings."""
        names = ["Lira", "Nela", "Rani"]
        assert metrics.separation_score(names, [], 0.2) == 1.0
        assert metrics.separation_score(names, [names], 0.2) == pytest.approx(0.0)
        assert metrics.separation_score(names, [["Grok", "Tusk", "Kurg"]], 0.2) == 1.0

    def test_pronounceable_name(self):
        """Test that an alternating name has no penalty."""
        assert metrics.name_pronounceability("Kala", {"a"}, consonants=("k", "l")) == 1.0

    def test_long_consonant_run(self):
        """Test penalties for long and unapproved consonant runs."""
        score = metrics.name_pronounceability("kstra", {"a"}, consonants=("k", "s", "t", "r"))
        assert score == pytest.approx(0.4)

    def test_favored_cluster_not_penalized(self):
        """Test that favored clusters count as approved."""
        plain = metrics.name_pronounceability("atha", {"a"}, consonants=("t", "h"))
        favored = metrics.name_pronounceability("atha", {"a"}, consonants=("t", "h"), favored_clusters=("th",))
        assert favored > plain

    def test_forbidden_cluster_penalized(self):
        """Test that forbidden clusters lower the score."""
        assert metrics.name_pronounceability("kala", {"a"}, forbidden_clusters=("al",)) < 1.0

    def test_diffuseness_single_name(self):
        """Test that one name has no dispersion."""
        assert metrics.diffuseness_score(["Ana"], {"a"}, 0.3) == 0.0

    def test_diffuseness_range(self):
        """Test that dispersion stays within [0, 1]."""
        score = metrics.diffuseness_score(["Ana", "Kaelin", "Thorvald", "Ri"], set("aeio"), 0.3)
        assert 0.0 < score <= 1.0


class TestSampling:
    """Tests for corpus sampling helpers."""

    def test_threaded_sampling_identical(self, toy_domain):
        """Test that a thread pool does not change the sample."""
        assert sample_names(toy_domain, 30, 1, workers=4) == sample_names(toy_domain, 30, 1)

    def test_seed_changes_sample(self, rich_domain):
        """Test that different seeds give different samples."""
        assert sample_names(rich_domain, 30, 1) != sample_names(rich_domain, 30, 2)

    def test_unique_names(self):
        """Test case-insensitive deduplication keeping order."""
        assert unique_names(["Ana", "ana", "Bel", "ANA", "Cor"]) == ["Ana", "Bel", "Cor"]

    def test_weighted_score_renormalizes(self):
        """Test that absent metrics do not drag the score down."""
        assert weighted_score({"capacity": 1.0, "length": 1.0}, FitnessWeights()) == pytest.approx(1.0)
        zero = FitnessWeights(capacity=0, diffuseness=0, separation=0, pronounceability=0, length=0)
        assert weighted_score({"capacity": 1.0}, zero) == 0.0


class TestFitnessEvaluator:
    """Tests for FitnessEvaluator."""

    def test_report_shape(self, rich_domain, tiny_settings):
        """Test the breakdown and score range."""
        report = evaluate_fitness(rich_domain, settings=tiny_settings)
        assert set(report.breakdown) == {"capacity", "diffuseness", "pronounceability", "length"}
        assert 0.0 <= report.score <= 1.0
        assert report.sample_size == 10
        assert len(report.names) <= 10
        assert all(0.0 <= v <= 1.0 for v in report.breakdown.values())

    def test_deterministic(self, rich_domain, tiny_settings):
        """Test that a fixed seed gives the same score."""
        first = evaluate_fitness(rich_domain, settings=tiny_settings, seed=3)
        second = evaluate_fitness(rich_domain, settings=tiny_settings, seed=3)
        assert first.score == second.score
        assert first.names == second.names

    def test_separation_skipped_without_siblings(self, rich_domain, tiny_settings):
        """Test that separation is skipped and reported when no siblings exist."""
        report = evaluate_fitness(rich_domain, siblings=[rich_domain], settings=tiny_settings)
        assert "separation" not in report.breakdown
        assert "separation" in report.skipped

    def test_separation_with_sibling(self, rich_domain, sibling_domain, tiny_settings):
        """Test that a sibling adds the separation metric."""
        report = evaluate_fitness(rich_domain, siblings=[sibling_domain], settings=tiny_settings)
        assert 0.0 <= report.breakdown["separation"] <= 1.0

    def test_sibling_sample_cached(self, rich_domain, sibling_domain, tiny_settings):
        """Test that sibling samples are reused across evaluations."""
        with FitnessEvaluator(tiny_settings) as evaluator:
            evaluator.evaluate(rich_domain, [sibling_domain], seed=1)
            evaluator.evaluate(rich_domain, [sibling_domain], seed=1)
            assert len(evaluator._sibling_cache) == 1

    def test_style_skipped_without_judge(self, rich_domain, tiny_settings):
        """Test that style is skipped when no judge is configured."""
        report = evaluate_fitness(rich_domain, settings=tiny_settings, weights=FitnessWeights(style=0.5))
        assert "style" in report.skipped

    def test_style_skipped_at_zero_weight(self, rich_domain, tiny_settings):
        """Test that a zero style weight never calls the judge."""
        judge = FixedJudge(0.9)
        report = evaluate_fitness(rich_domain, settings=tiny_settings, style_judge=judge)
        assert "style" in report.skipped
        assert judge.calls == 0

    def test_style_scored(self, rich_domain, tiny_settings):
        """Test that the judge value is clamped into the breakdown."""
        report = evaluate_fitness(
            rich_domain,
            settings=tiny_settings,
            weights=FitnessWeights(style=0.5),
            style_judge=FixedJudge(1.7),
        )
        assert report.breakdown["style"] == 1.0

    def test_style_timeout_skips(self, rich_domain):
        """Test that a slow judge is cancelled and the metric skipped."""
        settings = FitnessSettings(required_names=10, sample_factor=1.0, style_timeout=0.05)
        report = evaluate_fitness(
            rich_domain, settings=settings, weights=FitnessWeights(style=0.5), style_judge=SlowJudge()
        )
        assert "style" in report.skipped
        assert "style" not in report.breakdown

    def test_style_failure_skips(self, rich_domain, tiny_settings):
        """Test that a failing judge does not fail the evaluation."""
        report = evaluate_fitness(
            rich_domain,
            settings=tiny_settings,
            weights=FitnessWeights(style=0.5),
            style_judge=BrokenJudge(),
        )
        assert "style" in report.skipped


class TestStyleJudgeRunner:
    """Tests for StyleJudgeRunner."""

    def test_nan_rejected(self):
        """Test that NaN results are treated as failures."""
        with StyleJudgeRunner(FixedJudge(float("nan"))) as runner:
            assert runner.score(["Ana"]) is None

    def test_non_numeric_rejected(self):
        """Test that non-numeric results are treated as failures."""
        with StyleJudgeRunner(FixedJudge("great")) as runner:
            assert runner.score(["Ana"]) is None

    def test_reuses_loop(self):
        """Test that repeated calls share one loop thread."""
        judge = FixedJudge(0.25)
        with StyleJudgeRunner(judge) as runner:
            assert runner.score(["Ana"]) == 0.25
            assert runner.score(["Bel"]) == 0.25
        assert judge.calls == 2
