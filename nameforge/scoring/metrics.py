"""Corpus metrics for domain fitness.

Every metric maps a sample of names to [0, 1] (higher is better):
- capacity: unique yield relative to the required number of names
- diffuseness: length and C/V-shape entropy plus nearest-neighbour spread
- separation: Jensen-Shannon divergence of bigram distributions
- pronounceability: penalties for long runs and unapproved clusters
- length: share of names close to the target length
"""

import math
from collections import Counter
from typing import Iterable, Sequence

MARKERS = "'- "

# Nearest-neighbour distances are computed on at most this many names
NN_SAMPLE_LIMIT = 200
NN_PERCENTILE = 0.05

LONG_CONSONANT_RUN_PENALTY = 0.25
LONG_VOWEL_RUN_PENALTY = 0.2
FORBIDDEN_CLUSTER_PENALTY = 0.3
UNAPPROVED_CLUSTER_PENALTY = 0.1


def strip_markers(name: str) -> str:
    """Lowercase a name and drop apostrophes, hyphens and spaces."""
    return "".join(ch for ch in name.lower() if ch not in MARKERS)


# =============================================================================
# DISTANCE AND ENTROPY
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein (edit) distance between two strings.

    The minimum number of single-character edits (insertions, deletions,
    or substitutions) required to change one string into the other.
    """
    s1, s2 = s1.lower(), s2.lower()

    if len(s1) < len(s2):
        s1, s2 = s2, s1

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))

    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def normalized_levenshtein(s1: str, s2: str) -> float:
    """Levenshtein distance divided by the longer length (0 = identical)."""
    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 0.0
    return levenshtein_distance(s1, s2) / max_len


def shannon_entropy(values: Iterable) -> float:
    """Shannon entropy in bits of the empirical distribution of ``values``.

    H = -Σ p(x) * log2(p(x))
    """
    counts = Counter(values)
    total = sum(counts.values())
    if total == 0:
        return 0.0
    return -sum((n / total) * math.log2(n / total) for n in counts.values())


def normalized_entropy(values: Sequence, levels: int | None = None) -> float:
    """Entropy divided by its maximum for ``levels`` outcomes.

    Args:
        values: Observations
        levels: Number of possible outcomes (distinct observations if None)

    Returns:
        Evenness in [0, 1]; 0 when fewer than two outcomes are possible
    """
    levels = levels if levels is not None else len(set(values))
    if levels < 2:
        return 0.0
    return min(1.0, shannon_entropy(values) / math.log2(levels))


def percentile(values: Sequence[float], q: float) -> float:
    """Nearest-rank percentile (q in [0, 1])."""
    if not values:
        return 0.0
    ordered = sorted(values)
    index = min(len(ordered) - 1, max(0, math.ceil(q * len(ordered)) - 1))
    return ordered[index]


def nearest_neighbour_distances(names: Sequence[str], limit: int = NN_SAMPLE_LIMIT) -> list[float]:
    """Normalized edit distance from each name to its closest other name.

    Only the first ``limit`` names are compared, keeping the cost bounded.
    """
    pool = [strip_markers(n) for n in names[:limit]]
    if len(pool) < 2:
        return []
    distances = []
    for i, name in enumerate(pool):
        distances.append(
            min(normalized_levenshtein(name, other) for j, other in enumerate(pool) if j != i)
        )
    return distances


def cv_shape(name: str, vowel_letters: set[str]) -> str:
    """Consonant/vowel shape of a name, e.g. ``Kaelin`` -> ``CVVCVC``."""
    return "".join("V" if ch in vowel_letters else "C" for ch in strip_markers(name))


# =============================================================================
# METRICS
# =============================================================================


def capacity_score(unique_count: int, required: int) -> float:
    """Unique yield relative to the required count, never above 1."""
    if required <= 0:
        return 1.0
    return min(1.0, unique_count / required)


def diffuseness_score(names: Sequence[str], vowel_letters: set[str], min_nn_distance: float) -> float:
    """Structural dispersion of a sample.

    Mean of:
    - length evenness over the observed length span
    - C/V-shape evenness
    - 5th percentile nearest-neighbour edit distance relative to min_nn_distance
    """
    if len(names) < 2:
        return 0.0
    lengths = [len(strip_markers(n)) for n in names]
    length_term = normalized_entropy(lengths, max(lengths) - min(lengths) + 1)
    shape_term = normalized_entropy([cv_shape(n, vowel_letters) for n in names])

    p5 = percentile(nearest_neighbour_distances(names), NN_PERCENTILE)
    nn_term = min(1.0, p5 / min_nn_distance) if min_nn_distance > 0 else 1.0

    return (length_term + shape_term + nn_term) / 3


def bigram_distribution(names: Iterable[str]) -> dict[str, float]:
    """Character bigram frequencies, word boundaries included."""
    counts: Counter = Counter()
    for name in names:
        padded = f"^{strip_markers(name)}$"
        counts.update(padded[i:i + 2] for i in range(len(padded) - 1))
    total = sum(counts.values())
    if total == 0:
        return {}
    return {bigram: n / total for bigram, n in counts.items()}


def js_divergence(p: dict[str, float], q: dict[str, float]) -> float:
    """Jensen-Shannon divergence in bits, within [0, 1]."""
    divergence = 0.0
    for key in set(p) | set(q):
        pk, qk = p.get(key, 0.0), q.get(key, 0.0)
        mk = (pk + qk) / 2
        if pk > 0:
            divergence += 0.5 * pk * math.log2(pk / mk)
        if qk > 0:
            divergence += 0.5 * qk * math.log2(qk / mk)
    return min(1.0, max(0.0, divergence))


def separation_score(
    names: Sequence[str], sibling_samples: Sequence[Sequence[str]], min_separation: float
) -> float:
    """Distance to the closest sibling, scaled so min_separation counts as 1.

    Returns:
        Score in [0, 1]; 1.0 when there are no siblings
    """
    if not sibling_samples:
        return 1.0
    own = bigram_distribution(names)
    closest = min(js_divergence(own, bigram_distribution(sample)) for sample in sibling_samples)
    if min_separation <= 0:
        return 1.0
    return min(1.0, closest / min_separation)


def _runs(word: str, vowel_letters: set[str]) -> list[tuple[str, str]]:
    """Split a word into maximal runs of (class, text)."""
    runs: list[tuple[str, str]] = []
    for ch in word:
        cls = "V" if ch in vowel_letters else "C"
        if runs and runs[-1][0] == cls:
            runs[-1] = (cls, runs[-1][1] + ch)
        else:
            runs.append((cls, ch))
    return runs


def name_pronounceability(
    name: str,
    vowel_letters: set[str],
    consonants: Sequence[str] = (),
    favored_clusters: Sequence[str] = (),
    forbidden_clusters: Sequence[str] = (),
    max_consonant_run: int = 2,
    max_vowel_run: int = 2,
) -> float:
    """Pronounceability of one name in [0, 1].

    Penalties per consonant run longer than ``max_consonant_run`` and vowel
    run longer than ``max_vowel_run`` (per extra letter), per forbidden
    cluster present, and per consonant cluster that is neither favored nor a
    single multi-letter consonant of the inventory.
    """
    penalty = 0.0
    lowered = name.lower()
    for cluster in forbidden_clusters:
        if cluster and cluster.lower() in lowered:
            penalty += FORBIDDEN_CLUSTER_PENALTY

    approved = {c.lower() for c in favored_clusters} | {c.lower() for c in consonants}
    # Markers split runs: "ka'th" has runs ka and th
    for part in lowered.replace("-", " ").replace("'", " ").split():
        for cls, text in _runs(part, vowel_letters):
            if cls == "C":
                if len(text) > max_consonant_run:
                    penalty += LONG_CONSONANT_RUN_PENALTY * (len(text) - max_consonant_run)
                if len(text) >= 2 and text not in approved and not any(c in text for c in approved if len(c) >= 2):
                    penalty += UNAPPROVED_CLUSTER_PENALTY
            elif len(text) > max_vowel_run:
                penalty += LONG_VOWEL_RUN_PENALTY * (len(text) - max_vowel_run)
    return max(0.0, 1.0 - penalty)


def pronounceability_score(names: Sequence[str], **kwargs) -> float:
    """Mean name_pronounceability over a sample."""
    if not names:
        return 0.0
    return sum(name_pronounceability(n, **kwargs) for n in names) / len(names)


def length_score(names: Sequence[str], target_length: int, tolerance: int) -> float:
    """Share of names whose letter count is within tolerance of the target."""
    if not names:
        return 0.0
    hits = sum(1 for n in names if abs(len(strip_markers(n)) - target_length) <= tolerance)
    return hits / len(names)
