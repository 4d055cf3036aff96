"""LLM-backed style judge for the fitness evaluator."""

import asyncio
import logging
import random

from nameforge.llm.base import BaseLLMProvider, load_prompt, parse_json_reply

logger = logging.getLogger(__name__)

MAX_RAW_SCORE = 10.0


class LLMStyleJudge:
    """Asks an LLM how well a sample of names fits a style description.

    The model answers ``{"score": 0-10, "comment": "..."}``; the score is
    scaled to [0, 1]. Provider calls are blocking, so they run in a worker
    thread to keep the judge awaitable.
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        style: str,
        batch_size: int = 40,
        seed: int = 0,
    ):
        """Initialize style judge.

        Args:
            provider: LLM provider used for scoring
            style: Free-text description of the intended style
            batch_size: Maximum names sent per request
            seed: Seed for picking the names sent to the model
        """
        self.provider = provider
        self.style = style
        self.batch_size = batch_size
        self.seed = seed

    def _pick(self, names: list[str]) -> list[str]:
        if len(names) <= self.batch_size:
            return list(names)
        return random.Random(self.seed).sample(names, self.batch_size)

    def _build_user_prompt(self, names: list[str]) -> str:
        names_xml = "\n".join(f"    <name>{name}</name>" for name in names)
        return f"""<style>
{self.style}
</style>

<names>
{names_xml}
</names>

<output_format>
Return ONLY a JSON object: {{"score": <0-10>, "comment": "<one sentence>"}}
</output_format>"""

    def parse_score(self, response_text: str) -> float:
        """Scale the model's 0-10 score to [0, 1].

        Raises:
            ValueError: If the reply has no numeric score
        """
        data = parse_json_reply(response_text)
        try:
            raw = float(data["score"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Odpověď neobsahuje číselné skóre: {data}") from e
        if data.get("comment"):
            logger.debug("Style judge comment: %s", data["comment"])
        return min(1.0, max(0.0, raw / MAX_RAW_SCORE))

    async def score(self, names: list[str]) -> float:
        if not names:
            raise ValueError("No names to judge")
        prompt = self._build_user_prompt(self._pick(names))
        response_text = await asyncio.to_thread(
            self.provider.generate, load_prompt("style_judge_system"), prompt
        )
        return self.parse_score(response_text)
