"""Generate lexeme lists with an LLM."""

import logging
from typing import Sequence

from nameforge.llm.base import BaseLLMProvider, load_prompt, parse_json_reply
from nameforge.models import WILDCARD, LexemeList, Scope

logger = logging.getLogger(__name__)


class LexemeGenerator:
    """Builds ``LexemeList`` records from a theme description.

    The model answers ``{"entries": ["...", ...]}``. Entries are stripped,
    deduplicated case-insensitively and truncated to the requested count.
    """

    def __init__(self, provider: BaseLLMProvider):
        self.provider = provider

    def _build_user_prompt(self, theme: str, count: int, examples: Sequence[str]) -> str:
        prompt = f"""<theme>
{theme}
</theme>

<count>{count}</count>"""
        if examples:
            examples_xml = "\n".join(f"    <entry>{e}</entry>" for e in examples)
            prompt += f"""

<examples>
{examples_xml}
</examples>"""
        prompt += """

<output_format>
Return ONLY a JSON object: {"entries": ["...", "..."]}
</output_format>"""
        return prompt

    def parse_entries(self, response_text: str, count: int) -> tuple[str, ...]:
        """Clean the entries of a model reply.

        Raises:
            ValueError: If the reply has no entry list
        """
        data = parse_json_reply(response_text)
        raw = data.get("entries")
        if not isinstance(raw, list):
            raise ValueError(f"Odpověď neobsahuje seznam 'entries': {data}")

        entries: list[str] = []
        seen: set[str] = set()
        for item in raw:
            entry = str(item).strip()
            if entry and entry.lower() not in seen:
                seen.add(entry.lower())
                entries.append(entry)
        return tuple(entries[:count])

    def generate(
        self,
        list_id: str,
        theme: str,
        count: int = 20,
        cultures: Sequence[str] = (WILDCARD,),
        entity_kinds: Sequence[str] = (WILDCARD,),
        examples: Sequence[str] = (),
    ) -> LexemeList:
        """Generate a lexeme list.

        Args:
            list_id: Id of the new list
            theme: What the words should be about
            count: Maximum number of entries
            cultures: Scope cultures of the list
            entity_kinds: Scope entity kinds of the list
            examples: Optional example entries for the model

        Returns:
            LexemeList with source "llm"

        Raises:
            ValueError: If the model reply cannot be parsed or is empty
        """
        response_text = self.provider.generate(
            load_prompt("lexeme_generator_system"),
            self._build_user_prompt(theme, count, examples),
        )
        entries = self.parse_entries(response_text, count)
        if not entries:
            raise ValueError(f"Model nevrátil žádná slova pro seznam '{list_id}'")
        logger.info("Generated %d entries for lexeme list %s", len(entries), list_id)
        return LexemeList(
            id=list_id,
            entries=entries,
            source="llm",
            applies_to=Scope(cultures=tuple(cultures), entity_kinds=tuple(entity_kinds)),
            description=theme,
        )
