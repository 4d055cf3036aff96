"""Tree-structured Parzen estimator (TPE) optimizer.

After ``n_startup`` random evaluations, the history is split at the
``gamma`` quantile into good and bad observations. Each dimension gets two
Gaussian Parzen densities, l(x) over good values and g(x) over bad values.
Candidates are drawn around good observations and the one maximizing
l(x)/g(x) (summed in log space over dimensions) is evaluated next.
"""

import math
import statistics

from nameforge.optimizer.base import BaseOptimizer

MIN_BANDWIDTH = 0.05  # Fraction of a dimension's range
PRIOR_WEIGHT = 1.0  # Uniform prior mixed into each density, in observations


class BayesianOptimizer(BaseOptimizer):
    """Sequential model-based search with TPE densities."""

    algorithm = "bayes"

    def _bandwidth(self, values: list[float], span: float) -> float:
        floor = MIN_BANDWIDTH * span if span > 0 else 1e-6
        if len(values) < 2:
            return max(floor, 0.25 * span)
        # Scott's rule
        return max(floor, 1.06 * statistics.pstdev(values) * len(values) ** -0.2)

    def _log_density(self, x: float, points: list[float], bandwidth: float, span: float) -> float:
        """Log of a Parzen density mixed with a uniform prior over the range."""
        norm = 1.0 / (bandwidth * math.sqrt(2 * math.pi))
        kernel = sum(norm * math.exp(-0.5 * ((x - p) / bandwidth) ** 2) for p in points)
        prior = PRIOR_WEIGHT / span if span > 0 else PRIOR_WEIGHT
        return math.log((kernel + prior) / (len(points) + PRIOR_WEIGHT))

    def suggest(self, observations: list[tuple[list[float], float]]) -> list[float]:
        """Propose the next vector from the observation history."""
        ranked = sorted(observations, key=lambda o: o[1], reverse=True)
        n_good = max(1, math.ceil(self.config.gamma * len(ranked)))
        good = [v for v, _ in ranked[:n_good]]
        bad = [v for v, _ in ranked[n_good:]] or good

        specs = self.space.specs
        good_columns = [[v[d] for v in good] for d in range(len(specs))]
        bad_columns = [[v[d] for v in bad] for d in range(len(specs))]
        good_bw = [self._bandwidth(col, s.span) for col, s in zip(good_columns, specs)]
        bad_bw = [self._bandwidth(col, s.span) for col, s in zip(bad_columns, specs)]

        best_candidate, best_ratio = None, -math.inf
        for _ in range(max(1, self.config.n_candidates)):
            center = self.rng.choice(good)
            candidate = self.space.clip(
                [self.rng.gauss(c, bw) for c, bw in zip(center, good_bw)]
            )
            ratio = sum(
                self._log_density(x, good_columns[d], good_bw[d], specs[d].span)
                - self._log_density(x, bad_columns[d], bad_bw[d], specs[d].span)
                for d, x in enumerate(candidate)
            )
            if ratio > best_ratio:
                best_candidate, best_ratio = candidate, ratio
        return best_candidate

    def search(self, start: list[float], start_fitness: float) -> None:
        observations: list[tuple[list[float], float]] = [(start, start_fitness)]
        total = self.config.iterations

        for iteration in range(1, total + 1):
            if self.cancelled:
                break
            if len(observations) < self.config.n_startup:
                candidate = self.space.random_vector(self.rng)
                phase = "startup"
            else:
                candidate = self.suggest(observations)
                phase = "tpe"
            fitness = self.score_vector(candidate)
            observations.append((candidate, fitness))
            self.report(iteration, total, fitness, phase)
