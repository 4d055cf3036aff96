"""Hill-climbing optimizer."""

from nameforge.optimizer.base import BaseOptimizer


class HillClimbOptimizer(BaseOptimizer):
    """Perturb one random parameter per step; keep the change only if it improves."""

    algorithm = "hillclimb"

    def search(self, start: list[float], start_fitness: float) -> None:
        current, current_fitness = start, start_fitness
        total = self.config.iterations
        for iteration in range(1, total + 1):
            if self.cancelled:
                break
            proposal = self.space.perturb(current, self.rng, self.config.step_size)
            fitness = self.score_vector(proposal)
            if fitness > current_fitness:
                current, current_fitness = proposal, fitness
            self.report(iteration, total, current_fitness)
