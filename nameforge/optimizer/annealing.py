"""Simulated annealing optimizer."""

import math

from nameforge.optimizer.base import BaseOptimizer

MIN_TEMPERATURE = 1e-9


class SimulatedAnnealingOptimizer(BaseOptimizer):
    """Hill climbing that also accepts worse proposals with probability exp(Δ/T).

    Δ is proposed minus current fitness (negative for a worse proposal). The
    temperature starts at ``initial_temperature`` and is multiplied by
    ``cooling_rate`` after every step. The result is the best state seen,
    not the final current state.
    """

    algorithm = "sim_anneal"

    def search(self, start: list[float], start_fitness: float) -> None:
        current, current_fitness = start, start_fitness
        temperature = self.config.initial_temperature
        total = self.config.iterations

        for iteration in range(1, total + 1):
            if self.cancelled:
                break
            proposal = self.space.perturb(current, self.rng, self.config.step_size)
            fitness = self.score_vector(proposal)
            delta = fitness - current_fitness

            if delta >= 0 or self.rng.random() < math.exp(delta / max(temperature, MIN_TEMPERATURE)):
                current, current_fitness = proposal, fitness

            self.report(iteration, total, current_fitness, f"T={temperature:.4f}")
            temperature *= self.config.cooling_rate
