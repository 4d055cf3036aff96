"""Character-level Markov models behind ``markov:`` grammar tokens."""

import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Protocol

START = "^"
END = "$"


class MarkovSource(Protocol):
    """Anything that can produce a word for a model id."""

    def generate(self, model_id: str, rng: random.Random) -> str | None:
        """Return a generated word, or None when the model is unknown."""
        ...


@dataclass
class MarkovModel:
    """Markov chain over characters, trained from example words.

    States are the last ``order`` characters; words are padded with start
    markers and terminated with an end marker.
    """

    order: int = 2
    transitions: dict[str, dict[str, float]] = field(default_factory=dict)
    min_length: int = 3
    max_length: int = 12

    @classmethod
    def train(
        cls,
        words: Iterable[str],
        order: int = 2,
        min_length: int = 3,
        max_length: int = 12,
    ) -> "MarkovModel":
        """Estimate transition probabilities from a word list.

        Args:
            words: Training words (case-insensitive)
            order: Number of characters of context
            min_length: Shortest word generate() may end on
            max_length: Longest word generate() builds

        Returns:
            Trained MarkovModel
        """
        counts: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for word in words:
            word = word.strip().lower()
            if not word:
                continue
            state = START * order
            for char in word + END:
                counts[state][char] += 1
                state = (state + char)[-order:]

        transitions = {}
        for state, following in counts.items():
            total = sum(following.values())
            transitions[state] = {char: n / total for char, n in following.items()}
        return cls(order=order, transitions=transitions, min_length=min_length, max_length=max_length)

    def generate(self, rng: random.Random) -> str:
        """Walk the chain from the start state.

        Returns:
            Capitalized word (empty if the model is untrained)
        """
        state = START * self.order
        result = ""
        for _ in range(self.max_length + self.order * 4):
            options = self.transitions.get(state)
            if not options:
                break
            chars = list(options)
            char = rng.choices(chars, weights=[options[c] for c in chars], k=1)[0]
            if char == END:
                if len(result) >= self.min_length:
                    break
                continue
            result += char
            if len(result) >= self.max_length:
                break
            state = (state + char)[-self.order:]
        return result[:1].upper() + result[1:]


class MarkovRegistry:
    """In-memory MarkovSource keyed by model id."""

    def __init__(self, models: dict[str, MarkovModel] | None = None):
        self.models: dict[str, MarkovModel] = dict(models or {})

    @classmethod
    def from_corpora(cls, corpora: dict[str, list[str]], order: int = 2) -> "MarkovRegistry":
        """Train one model per named word list."""
        return cls({model_id: MarkovModel.train(words, order=order) for model_id, words in corpora.items()})

    def register(self, model_id: str, model: MarkovModel) -> None:
        self.models[model_id] = model

    def __contains__(self, model_id: str) -> bool:
        return model_id in self.models

    def generate(self, model_id: str, rng: random.Random) -> str | None:
        model = self.models.get(model_id)
        if model is None:
            return None
        return model.generate(rng)
