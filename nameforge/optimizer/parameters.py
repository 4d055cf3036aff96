"""Encoding of tunable domain parameters as a bounded vector."""

import random
from dataclasses import dataclass, replace

from nameforge.models import Domain

STRUCTURAL_GROUPS = (
    # (vector group name, domain part, weight field, element field)
    ("consonant_weights", "phonology", "consonant_weights", "consonants"),
    ("vowel_weights", "phonology", "vowel_weights", "vowels"),
    ("template_weights", "phonology", "template_weights", "syllable_templates"),
    ("structure_weights", "morphology", "structure_weights", "structure"),
    ("prefix_weights", "morphology", "prefix_weights", "prefixes"),
    ("suffix_weights", "morphology", "suffix_weights", "suffixes"),
)


@dataclass(frozen=True)
class ParameterBounds:
    """Search ranges; widened where the starting domain lies outside them."""

    weight: tuple[float, float] = (0.05, 5.0)
    rate: tuple[float, float] = (0.0, 0.5)
    boost: tuple[float, float] = (1.0, 5.0)
    length: tuple[int, int] = (2, 16)


@dataclass(frozen=True)
class ParameterSpec:
    """One dimension of the parameter vector."""

    name: str
    low: float
    high: float
    integer: bool = False

    @property
    def span(self) -> float:
        return self.high - self.low

    def clip(self, value: float) -> float:
        value = min(self.high, max(self.low, value))
        return float(round(value)) if self.integer else value


class ParameterSpace:
    """Maps a domain to a vector of tunable parameters and back.

    Tuned: element/template/structure/affix weights, favored_cluster_boost,
    apostrophe and hyphen rates, preferred_ending_boost and the length range.
    Inventories, clusters and affix strings stay fixed.
    """

    def __init__(self, domain: Domain, bounds: ParameterBounds | None = None):
        self.domain = domain
        self.bounds = bounds or ParameterBounds()
        self.specs: list[ParameterSpec] = []
        self._initial = self._encode_values(domain)
        self._build_specs()

    def _encode_values(self, domain: Domain) -> list[float]:
        values: list[float] = []
        for _, part, weight_field, element_field in STRUCTURAL_GROUPS:
            section = getattr(domain, part)
            elements = getattr(section, element_field)
            weights = getattr(section, weight_field)
            values.extend(weights if weights is not None else [1.0] * len(elements))
        values.append(domain.phonology.favored_cluster_boost)
        values.append(domain.style.apostrophe_rate)
        values.append(domain.style.hyphen_rate)
        values.append(domain.style.preferred_ending_boost)
        values.extend(float(v) for v in domain.phonology.length_range)
        return values

    def _build_specs(self) -> None:
        b = self.bounds
        names: list[tuple[str, tuple[float, float], bool]] = []
        for group, part, _, element_field in STRUCTURAL_GROUPS:
            count = len(getattr(getattr(self.domain, part), element_field))
            names.extend((f"{group}[{i}]", b.weight, False) for i in range(count))
        names.append(("favored_cluster_boost", b.boost, False))
        names.append(("apostrophe_rate", b.rate, False))
        names.append(("hyphen_rate", b.rate, False))
        names.append(("preferred_ending_boost", b.boost, False))
        names.append(("length_min", b.length, True))
        names.append(("length_max", b.length, True))

        for (name, (low, high), integer), value in zip(names, self._initial):
            self.specs.append(
                ParameterSpec(name=name, low=min(low, value), high=max(high, value), integer=integer)
            )

    def __len__(self) -> int:
        return len(self.specs)

    # =========================================================================
    # ENCODE / DECODE
    # =========================================================================

    def encode(self, domain: Domain | None = None) -> list[float]:
        """Vector for a domain (the starting domain if None)."""
        if domain is None:
            return list(self._initial)
        return [spec.clip(v) for spec, v in zip(self.specs, self._encode_values(domain))]

    def clip(self, vector: list[float]) -> list[float]:
        return [spec.clip(v) for spec, v in zip(self.specs, vector)]

    def decode(self, vector: list[float]) -> Domain:
        """Build a new Domain from a vector; the starting domain is not modified."""
        vector = self.clip(vector)
        domain = self.domain
        position = 0
        phonology_changes: dict = {}
        morphology_changes: dict = {}
        for _, part, weight_field, element_field in STRUCTURAL_GROUPS:
            count = len(getattr(getattr(domain, part), element_field))
            weights = tuple(vector[position:position + count])
            position += count
            target = phonology_changes if part == "phonology" else morphology_changes
            target[weight_field] = weights if count else None

        boost, apostrophe, hyphen, ending_boost, low, high = vector[position:position + 6]
        low, high = int(min(low, high)), int(max(low, high))
        phonology_changes["favored_cluster_boost"] = boost
        phonology_changes["length_range"] = (max(1, low), max(1, high))

        return replace(
            domain,
            phonology=replace(domain.phonology, **phonology_changes),
            morphology=replace(domain.morphology, **morphology_changes),
            style=replace(
                domain.style,
                apostrophe_rate=apostrophe,
                hyphen_rate=hyphen,
                preferred_ending_boost=ending_boost,
            ),
        )

    # =========================================================================
    # MOVES
    # =========================================================================

    def random_vector(self, rng: random.Random) -> list[float]:
        """Uniform draw within the bounds."""
        return self.clip([rng.uniform(spec.low, spec.high) for spec in self.specs])

    def perturb_dimension(self, vector: list[float], index: int, rng: random.Random, step_size: float) -> list[float]:
        """Gaussian step on one dimension, scaled to its range."""
        spec = self.specs[index]
        proposal = list(vector)
        delta = rng.gauss(0.0, step_size * spec.span)
        if spec.integer and round(delta) == 0:
            delta = rng.choice((-1.0, 1.0))
        proposal[index] = spec.clip(vector[index] + delta)
        return proposal

    def perturb(self, vector: list[float], rng: random.Random, step_size: float) -> list[float]:
        """Perturb one randomly chosen parameter."""
        if not self.specs:
            return list(vector)
        return self.perturb_dimension(vector, rng.randrange(len(self.specs)), rng, step_size)
