"""Settings loader and configuration dataclasses."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

ALGORITHMS = ("hillclimb", "sim_anneal", "ga", "bayes", "cluster")


@dataclass
class LoggingConfig:
    """Logging configuration applied by the CLI."""

    level: str = "INFO"
    show_path: bool = False


@dataclass
class LLMConfig:
    """LLM configuration.

    Supports multiple providers:
    - anthropic: Claude models (requires ANTHROPIC_API_KEY)
    - openai: GPT models (requires OPENAI_API_KEY)
    - ollama: Local models via Ollama (default: http://localhost:11434)
    - lmstudio: Local models via LM Studio (default: http://localhost:1234/v1)
    - gemini: Google Gemini models (requires GOOGLE_API_KEY)
    """

    provider: str = "anthropic"
    model: str = "claude-sonnet-4-20250514"
    api_key: str | None = None  # Can also use env vars
    api_base: str | None = None  # For Ollama/LM Studio custom endpoints
    batch_size: int = 40  # Names sent to the style judge per request
    max_tokens: int = 2048
    temperature: float = 0.3
    timeout: float = 60.0  # Seconds per request


@dataclass
class FitnessSettings:
    """Sampling and normalization parameters of the fitness evaluator."""

    required_names: int = 200
    sample_factor: float = 3.0
    max_sample_size: int = 2000
    min_nn_distance: float = 0.3  # Target 5th percentile of NN edit distance
    min_separation: float = 0.2  # JS divergence counted as fully separated
    max_consonant_run: int = 2
    max_vowel_run: int = 2
    style_timeout: float = 20.0  # Seconds
    sample_workers: int = 0  # 0 = sample in the calling thread
    seed: int = 0

    @property
    def sample_size(self) -> int:
        return max(1, min(self.max_sample_size, int(self.sample_factor * self.required_names)))


@dataclass
class FitnessWeights:
    """Relative importance of the fitness metrics."""

    capacity: float = 0.2
    diffuseness: float = 0.2
    separation: float = 0.2
    pronounceability: float = 0.3
    length: float = 0.1
    style: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass
class AlgorithmConfig:
    """Optimizer algorithm selection and hyperparameters."""

    algorithm: str = "hillclimb"
    iterations: int = 50
    seed: int | None = None
    step_size: float = 0.15  # Fraction of each parameter's range

    # sim_anneal
    initial_temperature: float = 1.0
    cooling_rate: float = 0.95

    # ga
    population_size: int = 12
    mutation_rate: float = 0.15
    crossover_rate: float = 0.7
    tournament_size: int = 3
    elite_count: int = 2

    # bayes
    n_startup: int = 8
    gamma: float = 0.25
    n_candidates: int = 24

    # cluster
    corpus_size: int = 400
    min_cluster_count: int = 3
    max_suggestions: int = 5

    def __post_init__(self):
        if self.algorithm not in ALGORITHMS:
            raise ValueError(
                f"Unknown algorithm: {self.algorithm}. Available: {', '.join(ALGORITHMS)}"
            )


@dataclass
class GrammarConfig:
    """Grammar expansion limits."""

    max_depth: int = 12
    default_fallback: str = ""


@dataclass
class Settings:
    """Main settings container for nameforge."""

    culture: str = "cultures/sylvan.yaml"
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    fitness: FitnessSettings = field(default_factory=FitnessSettings)
    weights: FitnessWeights = field(default_factory=FitnessWeights)
    optimizer: AlgorithmConfig = field(default_factory=AlgorithmConfig)
    grammar: GrammarConfig = field(default_factory=GrammarConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Create Settings from dictionary."""
        data = dict(data)
        logging_data = data.pop("logging", {})
        fitness_data = data.pop("fitness", {})
        weights_data = data.pop("weights", {})
        optimizer_data = data.pop("optimizer", {})
        grammar_data = data.pop("grammar", {})
        llm_data = data.pop("llm", {})

        return cls(
            logging=LoggingConfig(**logging_data) if logging_data else LoggingConfig(),
            fitness=FitnessSettings(**fitness_data) if fitness_data else FitnessSettings(),
            weights=FitnessWeights(**weights_data) if weights_data else FitnessWeights(),
            optimizer=AlgorithmConfig(**optimizer_data) if optimizer_data else AlgorithmConfig(),
            grammar=GrammarConfig(**grammar_data) if grammar_data else GrammarConfig(),
            llm=LLMConfig(**llm_data) if llm_data else LLMConfig(),
            **data,
        )


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML configuration file.

    Args:
        config_path: Path to configuration file. If None, uses default config.yaml

    Returns:
        Settings object with loaded configuration
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        return Settings()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return Settings()

    return Settings.from_dict(data)
