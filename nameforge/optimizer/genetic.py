"""Genetic algorithm optimizer for domain parameters.

Evolves a population of parameter vectors:
- Selection: Tournament selection of fittest individuals
- Crossover: Uniform, field-wise mix of two parents
- Mutation: Gaussian steps on individual fields
- Elitism: Top individuals survive unchanged
"""

from dataclasses import dataclass

from nameforge.optimizer.base import BaseOptimizer

# Share of the population replaced after max_stagnation flat generations
DIVERSITY_INJECTION_SHARE = 0.25
MAX_STAGNATION = 5


@dataclass
class Individual:
    """Individual in the genetic population."""

    genome: list[float]
    fitness: float = 0.0


@dataclass
class GenerationStats:
    """Statistics for a generation."""

    generation: int
    best_fitness: float
    avg_fitness: float
    worst_fitness: float
    diversity: float


class GeneticOptimizer(BaseOptimizer):
    """Genetic algorithm over the domain parameter vector.

    ``iterations`` is the number of generations; each generation scores
    ``population_size`` individuals.
    """

    algorithm = "ga"

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    def initialize_population(self, start: list[float]) -> list[Individual]:
        """Starting vector, mutants of it, and uniform random vectors."""
        size = max(2, self.config.population_size)
        population = [Individual(genome=list(start))]
        while len(population) < size:
            if len(population) % 2:
                genome = list(start)
                for _ in range(3):
                    genome = self.space.perturb(genome, self.rng, self.config.step_size * 2)
            else:
                genome = self.space.random_vector(self.rng)
            population.append(Individual(genome=genome))
        return population

    def evaluate_fitness(self, population: list[Individual]) -> list[Individual]:
        for individual in population:
            individual.fitness = self.score_vector(individual.genome)
        return population

    # =========================================================================
    # SELECTION
    # =========================================================================

    def tournament_selection(self, population: list[Individual]) -> Individual:
        """Select individual using tournament selection."""
        tournament = self.rng.sample(population, min(self.config.tournament_size, len(population)))
        return max(tournament, key=lambda x: x.fitness)

    # =========================================================================
    # CROSSOVER AND MUTATION
    # =========================================================================

    def uniform_crossover(self, parent1: Individual, parent2: Individual) -> tuple[Individual, Individual]:
        """Each field has 50% chance of coming from either parent."""
        if self.rng.random() > self.config.crossover_rate:
            return Individual(genome=list(parent1.genome)), Individual(genome=list(parent2.genome))

        child1, child2 = [], []
        for a, b in zip(parent1.genome, parent2.genome):
            if self.rng.random() < 0.5:
                child1.append(a)
                child2.append(b)
            else:
                child1.append(b)
                child2.append(a)
        return Individual(genome=child1), Individual(genome=child2)

    def mutate(self, individual: Individual, generation: int) -> Individual:
        """Mutate each field with an adaptive rate.

        Early generations: Higher mutation for exploration
        Later generations: Lower mutation for exploitation
        """
        progress = generation / max(1, self.config.iterations)
        rate = self.config.mutation_rate * (1 - progress * 0.5)
        genome = list(individual.genome)
        for index in range(len(genome)):
            if self.rng.random() < rate:
                genome = self.space.perturb_dimension(genome, index, self.rng, self.config.step_size)
        return Individual(genome=genome)

    # =========================================================================
    # DIVERSITY MAINTENANCE
    # =========================================================================

    def calculate_diversity(self, population: list[Individual]) -> float:
        """Mean pairwise distance between genomes, each field scaled to its range."""
        if len(population) < 2:
            return 0.0
        spans = [spec.span or 1.0 for spec in self.space.specs]
        total, comparisons = 0.0, 0
        for i in range(len(population)):
            for j in range(i + 1, len(population)):
                g1, g2 = population[i].genome, population[j].genome
                total += sum(abs(a - b) / s for a, b, s in zip(g1, g2, spans)) / max(1, len(spans))
                comparisons += 1
        return total / comparisons

    def inject_diversity(self, population: list[Individual], count: int) -> list[Individual]:
        """Replace the worst individuals with new random ones."""
        population = sorted(population, key=lambda x: x.fitness, reverse=True)[:-count]
        fresh = [Individual(genome=self.space.random_vector(self.rng)) for _ in range(count)]
        return population + self.evaluate_fitness(fresh)

    # =========================================================================
    # MAIN EVOLUTION LOOP
    # =========================================================================

    def search(self, start: list[float], start_fitness: float) -> None:
        population = self.evaluate_fitness(self.initialize_population(start))
        size = len(population)
        elite_count = min(self.config.elite_count, size - 1)
        generations = self.config.iterations
        best_seen = self.best_fitness
        stagnation = 0

        for generation in range(1, generations + 1):
            if self.cancelled:
                break

            population = sorted(population, key=lambda x: x.fitness, reverse=True)
            elite = [Individual(genome=list(ind.genome), fitness=ind.fitness) for ind in population[:elite_count]]

            new_population = list(elite)
            while len(new_population) < size:
                parent1 = self.tournament_selection(population)
                parent2 = self.tournament_selection(population)
                child1, child2 = self.uniform_crossover(parent1, parent2)
                new_population.append(self.mutate(child1, generation))
                if len(new_population) < size:
                    new_population.append(self.mutate(child2, generation))

            offspring = self.evaluate_fitness(new_population[elite_count:])
            population = elite + offspring

            fitnesses = [ind.fitness for ind in population]
            stats = GenerationStats(
                generation=generation,
                best_fitness=max(fitnesses),
                avg_fitness=sum(fitnesses) / len(fitnesses),
                worst_fitness=min(fitnesses),
                diversity=self.calculate_diversity(population),
            )
            self.report(
                generation,
                generations,
                stats.best_fitness,
                f"avg={stats.avg_fitness:.4f} diversity={stats.diversity:.3f}",
            )

            if self.best_fitness > best_seen:
                best_seen = self.best_fitness
                stagnation = 0
            else:
                stagnation += 1
            if stagnation >= MAX_STAGNATION and size > 2:
                count = max(1, min(size - 1, int(size * DIVERSITY_INJECTION_SHARE)))
                population = self.inject_diversity(population, count)
                stagnation = 0
