"""Phonotactic name synthesizer.

Builds a root from weighted syllable templates, attaches affixes per a
weighted morphology structure and applies surface style.
"""

import logging
import random
import re
from dataclasses import dataclass, field
from typing import Sequence, TypeVar

from nameforge.errors import ConfigurationError
from nameforge.models import Domain

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_CLUSTER_RETRIES = 8
MAX_LENGTH_RETRIES = 10
MAX_SYLLABLES = 32
MORPHOLOGY_ATTEMPTS = 3
PREFERRED_ENDING_CANDIDATES = 3
RHYTHM_TEMPLATE_BOOST = 1.5

MARKERS = "'- "


def pick_weighted(rng: random.Random, items: Sequence[T], weights: Sequence[float] | None = None) -> T:
    """Draw one item; absent or all-zero weights mean a uniform draw."""
    if weights is None or sum(weights) <= 0:
        return rng.choice(items)
    return rng.choices(items, weights=weights, k=1)[0]


def letter_count(name: str) -> int:
    """Length of a name without apostrophes, hyphens and spaces."""
    return sum(1 for ch in name if ch not in MARKERS)


def _flatten(syllables: list[list[str]]) -> list[str]:
    return [segment for syllable in syllables for segment in syllable]


def _letters(syllables: list[list[str]]) -> int:
    return sum(len(segment) for segment in _flatten(syllables))


def apply_capitalization(text: str, mode: str) -> str:
    """Apply a capitalization mode.

    Modes: ``title`` (first letter only), ``titleWords`` (every word, split on
    spaces and hyphens), ``allcaps``, ``lowercase`` and ``mixed`` (first
    letter raised, the rest kept as built).
    """
    if not text:
        return text
    if mode == "allcaps":
        return text.upper()
    if mode == "lowercase":
        return text.lower()
    if mode == "titleWords":
        return re.sub(r"(^|[\s-])(\w)", lambda m: m.group(1) + m.group(2).upper(), text.lower())
    if mode == "mixed":
        return text[0].upper() + text[1:]
    return text[0].upper() + text[1:].lower()


@dataclass
class SynthesisResult:
    """A synthesized name with the steps that produced it."""

    name: str
    root: str
    syllables: list[str]
    structure: str
    relaxations: list[str] = field(default_factory=list)


class NameSynthesizer:
    """Generator of phonotactic names for one domain.

    Uses C/V syllable templates to build pronounceable invented words
    that follow the domain's inventory, clusters and style.
    """

    def __init__(self, domain: Domain):
        """Initialize synthesizer for a domain.

        Args:
            domain: Domain to synthesize from

        Raises:
            ConfigurationError: If the domain has no consonants or no vowels
        """
        phonology = domain.phonology
        if not phonology.consonants or not phonology.vowels:
            raise ConfigurationError(
                f"Domain '{domain.id}' has an empty consonant or vowel inventory",
                record_id=domain.id,
            )
        self.domain = domain
        self.phonology = phonology
        self.morphology = domain.morphology
        self.style = domain.style
        self.template_weights = self._rhythm_weights()

    def _rhythm_weights(self) -> list[float]:
        """Template weights adjusted by the rhythm bias."""
        templates = self.phonology.syllable_templates
        base = list(self.phonology.template_weights or [1.0] * len(templates))
        bias = self.style.rhythm_bias
        if bias in ("soft", "flowing"):
            favored_end = "V"
        elif bias in ("harsh", "staccato"):
            favored_end = "C"
        else:
            return base
        return [
            w * RHYTHM_TEMPLATE_BOOST if t.endswith(favored_end) else w
            for t, w in zip(templates, base)
        ]

    # =========================================================================
    # ROOT
    # =========================================================================

    def _segment_weights(self, text: str, elements: Sequence[str], weights: Sequence[float] | None) -> list[float]:
        """Element weights with favored clusters boosted against the text so far."""
        base = list(weights or [1.0] * len(elements))
        boost = self.phonology.favored_cluster_boost
        favored = self.phonology.favored_clusters
        if not favored or boost == 1.0 or not text:
            return base
        return [
            w * boost if any((text + e).endswith(c) for c in favored) else w
            for e, w in zip(elements, base)
        ]

    def _forms_forbidden(self, text: str, segment: str) -> bool:
        joined = text + segment
        for cluster in self.phonology.forbidden_clusters:
            window = joined[-(len(cluster) + len(segment) - 1):]
            if cluster in window:
                return True
        return False

    def _draw_segment(self, rng: random.Random, slot: str, text: str, relaxations: list[str]) -> str:
        if slot == "C":
            elements, weights = self.phonology.consonants, self.phonology.consonant_weights
        else:
            elements, weights = self.phonology.vowels, self.phonology.vowel_weights
        adjusted = self._segment_weights(text, elements, weights)

        segment = pick_weighted(rng, elements, adjusted)
        if not self.phonology.forbidden_clusters:
            return segment
        for _ in range(MAX_CLUSTER_RETRIES):
            if not self._forms_forbidden(text, segment):
                return segment
            segment = pick_weighted(rng, elements, adjusted)
        if self._forms_forbidden(text, segment):
            if "forbidden_cluster" not in relaxations:
                relaxations.append("forbidden_cluster")
            logger.debug("Domain %s: kept forbidden cluster in '%s%s'", self.domain.id, text, segment)
        return segment

    def _build_syllables(self, rng: random.Random, target: int, relaxations: list[str]) -> list[list[str]]:
        """Syllables as lists of inventory elements."""
        syllables: list[list[str]] = []
        text = ""
        while len(text) < target and len(syllables) < MAX_SYLLABLES:
            template = pick_weighted(rng, self.phonology.syllable_templates, self.template_weights)
            segments: list[str] = []
            for slot in template:
                segments.append(self._draw_segment(rng, slot, text + "".join(segments), relaxations))
            syllables.append(segments)
            text += "".join(segments)
        return syllables

    def _pad(self, rng: random.Random, syllables: list[list[str]], low: int, relaxations: list[str]) -> list[str]:
        """Alternating segments that bring the root up to ``low`` letters."""
        text = "".join(_flatten(syllables))
        last = syllables[-1][-1] if syllables and syllables[-1] else None
        slot = "V" if last is not None and last not in self.phonology.vowels else "C"
        pad: list[str] = []
        while len(text) < low:
            segment = self._draw_segment(rng, slot, text, relaxations)
            pad.append(segment)
            text += segment
            slot = "C" if slot == "V" else "V"
        return pad

    def build_root(self, rng: random.Random, relaxations: list[str]) -> list[str]:
        """Build the syllables of a root whose length lies in the length range.

        Syllables are added until a randomly drawn target length is reached.
        An overshoot is retried a bounded number of times, then trailing
        segments are dropped (whole elements only, so ``th`` never becomes
        ``t``) and the root is padded if that left it too short.

        Returns:
            Root syllables
        """
        low, high = self.phonology.length_range
        syllables: list[list[str]] = []
        for _ in range(MAX_LENGTH_RETRIES):
            target = rng.randint(low, high)
            syllables = self._build_syllables(rng, target, relaxations)
            if low <= _letters(syllables) <= high:
                return ["".join(s) for s in syllables]

        if _letters(syllables) > high:
            relaxations.append("length_truncated")
            syllables = [list(s) for s in syllables]
            while syllables and _letters(syllables) > high:
                syllables[-1].pop()
                if not syllables[-1]:
                    syllables.pop()
        if _letters(syllables) < low:
            relaxations.append("length_padded")
            syllables.append(self._pad(rng, syllables, low, relaxations))
        logger.debug("Domain %s: root length relaxed (%s)", self.domain.id, relaxations[-1])
        return ["".join(s) for s in syllables if s]

    # =========================================================================
    # MORPHOLOGY AND STYLE
    # =========================================================================

    def _apply_morphology(self, rng: random.Random, root_syllables: list[str], relaxations: list[str]) -> tuple[str, list[str]]:
        morphology = self.morphology
        structure = pick_weighted(rng, morphology.structure, morphology.structure_weights)
        syllables: list[str] = []
        roots_used = 0
        for part in structure.split("-"):
            if part == "root":
                # root-root compounds draw a second root
                part_syllables = root_syllables if roots_used == 0 else self.build_root(rng, relaxations)
                syllables.extend(part_syllables)
                roots_used += 1
            elif part == "prefix" and morphology.prefixes:
                syllables.append(pick_weighted(rng, morphology.prefixes, morphology.prefix_weights))
            elif part == "suffix" and morphology.suffixes:
                syllables.append(pick_weighted(rng, morphology.suffixes, morphology.suffix_weights))
        return structure, syllables

    def _insert_markers(self, rng: random.Random, syllables: list[str]) -> str:
        """Insert apostrophe and hyphen markers at syllable boundaries."""
        word = "".join(syllables)
        want_apostrophe = self.style.apostrophe_rate > 0 and rng.random() < self.style.apostrophe_rate
        want_hyphen = self.style.hyphen_rate > 0 and rng.random() < self.style.hyphen_rate
        if not (want_apostrophe or want_hyphen) or len(syllables) < 2:
            return word

        boundaries = []
        offset = 0
        for syllable in syllables[:-1]:
            offset += len(syllable)
            boundaries.append(offset)

        markers = []
        if want_apostrophe and want_hyphen and len(boundaries) < 2:
            markers.append(rng.choice("'-"))
        else:
            if want_apostrophe:
                markers.append("'")
            if want_hyphen:
                markers.append("-")
        positions = rng.sample(boundaries, len(markers))

        # Insert from the right so earlier positions stay valid
        for position, marker in sorted(zip(positions, markers), reverse=True):
            word = word[:position] + marker + word[position:]
        return word

    def _single(self, rng: random.Random) -> SynthesisResult:
        relaxations: list[str] = []
        root_syllables = self.build_root(rng, relaxations)
        low, high = self.phonology.length_range

        structure, syllables = "root", root_syllables
        for _ in range(MORPHOLOGY_ATTEMPTS):
            structure, syllables = self._apply_morphology(rng, root_syllables, relaxations)
            if low <= sum(len(s) for s in syllables) <= high:
                break
        else:
            if structure != "root":
                relaxations.append("affix_length")

        word = self._insert_markers(rng, syllables)
        name = apply_capitalization(word, self.style.capitalization)
        return SynthesisResult(
            name=name,
            root="".join(root_syllables),
            syllables=syllables,
            structure=structure,
            relaxations=relaxations,
        )

    def _has_preferred_ending(self, name: str) -> bool:
        lowered = name.lower()
        return any(lowered.endswith(e.lower()) for e in self.style.preferred_endings)

    def synthesize_detailed(self, rng: random.Random | None = None) -> SynthesisResult:
        """Synthesize one name and report how it was built.

        With preferred endings configured, several candidates are built and
        those ending in a preferred ending are drawn with
        ``preferred_ending_boost`` times the weight of the others.

        Args:
            rng: Random source (a fresh unseeded one if None)

        Returns:
            SynthesisResult
        """
        rng = rng or random.Random()
        if not self.style.preferred_endings:
            return self._single(rng)

        candidates = [self._single(rng) for _ in range(PREFERRED_ENDING_CANDIDATES)]
        weights = [
            self.style.preferred_ending_boost if self._has_preferred_ending(c.name) else 1.0
            for c in candidates
        ]
        return pick_weighted(rng, candidates, weights)

    def synthesize(self, rng: random.Random | None = None) -> str:
        return self.synthesize_detailed(rng).name

    def generate(self, count: int, rng: random.Random | None = None) -> list[str]:
        """Synthesize ``count`` names from one random source.

        Args:
            count: Number of names
            rng: Random source

        Returns:
            List of names, duplicates included
        """
        rng = rng or random.Random()
        return [self.synthesize(rng) for _ in range(count)]


def synthesize(domain: Domain, rng: random.Random | None = None) -> str:
    """Synthesize one name from a domain.

    Raises:
        ConfigurationError: If the domain has no consonants or no vowels
    """
    return NameSynthesizer(domain).synthesize(rng)


def synthesize_detailed(domain: Domain, rng: random.Random | None = None) -> SynthesisResult:
    return NameSynthesizer(domain).synthesize_detailed(rng)
