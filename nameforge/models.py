"""Culture records: domains, grammars, lexeme lists and strategy profiles.

All records are frozen dataclasses built from plain dictionaries with
``from_dict`` and validated once at construction. Input dictionaries may use
snake_case or the camelCase keys written by the editor; ``to_dict`` always
writes snake_case.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Union

from nameforge.errors import ConfigurationError

WILDCARD = "*"

CAPITALIZATIONS = ("title", "titleWords", "allcaps", "lowercase", "mixed")
RHYTHM_BIASES = ("soft", "harsh", "staccato", "flowing", "neutral")
MORPHOLOGY_PARTS = ("root", "prefix", "suffix")
REFERENCE_KINDS = ("slot", "domain", "markov", "context")

# Relationship keys understood by the entity graph behind ``context:`` tokens
RELATIONSHIP_KEYS = (
    "leader",
    "founder",
    "discoverer",
    "mentor",
    "resident",
    "location",
    "faction",
    "birthplace",
    "stronghold",
    "origin",
)


def _get(data: dict[str, Any], key: str, alt: str | None = None, default: Any = None) -> Any:
    """Read a key accepting an alternative (camelCase) spelling."""
    if key in data:
        return data[key]
    if alt is not None and alt in data:
        return data[alt]
    return default


def _strings(value: Iterable[str] | None) -> tuple[str, ...]:
    return tuple(str(v) for v in (value or ()))


def _weights(value: Iterable[float] | None) -> tuple[float, ...] | None:
    if value is None:
        return None
    return tuple(float(v) for v in value)


def check_weights(
    owner_id: str,
    label: str,
    elements: tuple[str, ...],
    weights: tuple[float, ...] | None,
) -> None:
    """Validate a weight array against its element array.

    Absent weights mean uniform weighting and are always valid.

    Raises:
        ConfigurationError: On length mismatch or negative weights
    """
    if weights is None:
        return
    if len(weights) != len(elements):
        raise ConfigurationError(
            f"{label} has {len(weights)} weights for {len(elements)} elements",
            record_id=owner_id,
        )
    if any(w < 0 for w in weights):
        raise ConfigurationError(f"{label} contains negative weights", record_id=owner_id)


# =============================================================================
# DOMAIN
# =============================================================================


@dataclass(frozen=True)
class Phonology:
    """Sound inventory and syllable structure of a domain."""

    consonants: tuple[str, ...]
    vowels: tuple[str, ...]
    syllable_templates: tuple[str, ...] = ("CV", "CVC")
    length_range: tuple[int, int] = (3, 9)
    favored_clusters: tuple[str, ...] = ()
    forbidden_clusters: tuple[str, ...] = ()
    favored_cluster_boost: float = 1.0
    consonant_weights: tuple[float, ...] | None = None
    vowel_weights: tuple[float, ...] | None = None
    template_weights: tuple[float, ...] | None = None

    def validate(self, owner_id: str) -> None:
        """Check templates, length range and weight arrays."""
        if not self.syllable_templates:
            raise ConfigurationError("No syllable templates defined", record_id=owner_id)
        for template in self.syllable_templates:
            if not template or set(template) - {"C", "V"}:
                raise ConfigurationError(
                    f"Invalid syllable template '{template}' (only C and V allowed)",
                    record_id=owner_id,
                )
        low, high = self.length_range
        if low < 1 or low > high:
            raise ConfigurationError(
                f"Invalid length range ({low}, {high})", record_id=owner_id
            )
        if self.favored_cluster_boost < 0:
            raise ConfigurationError("favored_cluster_boost must be >= 0", record_id=owner_id)
        check_weights(owner_id, "consonant_weights", self.consonants, self.consonant_weights)
        check_weights(owner_id, "vowel_weights", self.vowels, self.vowel_weights)
        check_weights(
            owner_id, "template_weights", self.syllable_templates, self.template_weights
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Phonology":
        """Create Phonology from dictionary."""
        length_range = _get(data, "length_range", "lengthRange", (3, 9))
        return cls(
            consonants=_strings(data.get("consonants")),
            vowels=_strings(data.get("vowels")),
            syllable_templates=_strings(
                _get(data, "syllable_templates", "syllableTemplates") or ("CV", "CVC")
            ),
            length_range=(int(length_range[0]), int(length_range[1])),
            favored_clusters=_strings(_get(data, "favored_clusters", "favoredClusters")),
            forbidden_clusters=_strings(_get(data, "forbidden_clusters", "forbiddenClusters")),
            favored_cluster_boost=float(
                _get(data, "favored_cluster_boost", "favoredClusterBoost", 1.0)
            ),
            consonant_weights=_weights(_get(data, "consonant_weights", "consonantWeights")),
            vowel_weights=_weights(_get(data, "vowel_weights", "vowelWeights")),
            template_weights=_weights(_get(data, "template_weights", "templateWeights")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "consonants": list(self.consonants),
            "vowels": list(self.vowels),
            "syllable_templates": list(self.syllable_templates),
            "length_range": list(self.length_range),
            "favored_clusters": list(self.favored_clusters),
            "forbidden_clusters": list(self.forbidden_clusters),
            "favored_cluster_boost": self.favored_cluster_boost,
        }
        for key in ("consonant_weights", "vowel_weights", "template_weights"):
            value = getattr(self, key)
            if value is not None:
                data[key] = list(value)
        return data


@dataclass(frozen=True)
class Morphology:
    """Affixes and the weighted word structures that combine them with a root."""

    prefixes: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()
    structure: tuple[str, ...] = ("root",)
    structure_weights: tuple[float, ...] | None = None
    prefix_weights: tuple[float, ...] | None = None
    suffix_weights: tuple[float, ...] | None = None

    def validate(self, owner_id: str) -> None:
        if not self.structure:
            raise ConfigurationError("Morphology has no structure patterns", record_id=owner_id)
        for pattern in self.structure:
            unknown = [p for p in pattern.split("-") if p not in MORPHOLOGY_PARTS]
            if unknown:
                raise ConfigurationError(
                    f"Unknown morphology part(s) {unknown} in structure '{pattern}'",
                    record_id=owner_id,
                )
        check_weights(owner_id, "structure_weights", self.structure, self.structure_weights)
        check_weights(owner_id, "prefix_weights", self.prefixes, self.prefix_weights)
        check_weights(owner_id, "suffix_weights", self.suffixes, self.suffix_weights)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Morphology":
        """Create Morphology from dictionary."""
        return cls(
            prefixes=_strings(data.get("prefixes")),
            suffixes=_strings(data.get("suffixes")),
            structure=_strings(data.get("structure")) or ("root",),
            structure_weights=_weights(_get(data, "structure_weights", "structureWeights")),
            prefix_weights=_weights(_get(data, "prefix_weights", "prefixWeights")),
            suffix_weights=_weights(_get(data, "suffix_weights", "suffixWeights")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "prefixes": list(self.prefixes),
            "suffixes": list(self.suffixes),
            "structure": list(self.structure),
        }
        for key in ("structure_weights", "prefix_weights", "suffix_weights"):
            value = getattr(self, key)
            if value is not None:
                data[key] = list(value)
        return data


@dataclass(frozen=True)
class StyleRules:
    """Surface styling applied after morphology."""

    capitalization: str = "title"
    apostrophe_rate: float = 0.0
    hyphen_rate: float = 0.0
    preferred_endings: tuple[str, ...] = ()
    preferred_ending_boost: float = 1.0
    rhythm_bias: str = "neutral"
    target_length: int | None = None
    length_tolerance: int = 2

    def validate(self, owner_id: str) -> None:
        if self.capitalization not in CAPITALIZATIONS:
            raise ConfigurationError(
                f"Unknown capitalization '{self.capitalization}'", record_id=owner_id
            )
        if self.rhythm_bias not in RHYTHM_BIASES:
            raise ConfigurationError(
                f"Unknown rhythm bias '{self.rhythm_bias}'", record_id=owner_id
            )
        for label, rate in (("apostrophe_rate", self.apostrophe_rate), ("hyphen_rate", self.hyphen_rate)):
            if not 0.0 <= rate <= 1.0:
                raise ConfigurationError(f"{label} must be within [0, 1]", record_id=owner_id)
        if self.preferred_ending_boost < 0:
            raise ConfigurationError("preferred_ending_boost must be >= 0", record_id=owner_id)
        if self.length_tolerance < 0:
            raise ConfigurationError("length_tolerance must be >= 0", record_id=owner_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StyleRules":
        """Create StyleRules from dictionary."""
        target_length = _get(data, "target_length", "targetLength")
        return cls(
            capitalization=data.get("capitalization", "title"),
            apostrophe_rate=float(_get(data, "apostrophe_rate", "apostropheRate", 0.0)),
            hyphen_rate=float(_get(data, "hyphen_rate", "hyphenRate", 0.0)),
            preferred_endings=_strings(_get(data, "preferred_endings", "preferredEndings")),
            preferred_ending_boost=float(
                _get(data, "preferred_ending_boost", "preferredEndingBoost", 1.0)
            ),
            rhythm_bias=_get(data, "rhythm_bias", "rhythmBias", "neutral"),
            target_length=int(target_length) if target_length is not None else None,
            length_tolerance=int(_get(data, "length_tolerance", "lengthTolerance", 2)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "capitalization": self.capitalization,
            "apostrophe_rate": self.apostrophe_rate,
            "hyphen_rate": self.hyphen_rate,
            "preferred_endings": list(self.preferred_endings),
            "preferred_ending_boost": self.preferred_ending_boost,
            "rhythm_bias": self.rhythm_bias,
            "target_length": self.target_length,
            "length_tolerance": self.length_tolerance,
        }


@dataclass(frozen=True)
class Domain:
    """One culture's sound system, morphology and style.

    Read-only for the synthesizer and the fitness evaluator. The optimizer
    derives new candidate domains with ``dataclasses.replace``.
    """

    id: str
    culture_id: str
    phonology: Phonology
    morphology: Morphology = field(default_factory=Morphology)
    style: StyleRules = field(default_factory=StyleRules)

    def __post_init__(self) -> None:
        self.phonology.validate(self.id)
        self.morphology.validate(self.id)
        self.style.validate(self.id)

    @property
    def target_length(self) -> int:
        """Target name length, defaulting to the middle of the length range."""
        if self.style.target_length is not None:
            return self.style.target_length
        low, high = self.phonology.length_range
        return round((low + high) / 2)

    @classmethod
    def from_dict(cls, data: dict[str, Any], culture_id: str | None = None) -> "Domain":
        """Create Domain from dictionary.

        Args:
            data: Domain record
            culture_id: Culture to assume when the record has none
        """
        if "id" not in data:
            raise ConfigurationError("Domain record has no id")
        return cls(
            id=str(data["id"]),
            culture_id=str(_get(data, "culture_id", "cultureId", culture_id) or ""),
            phonology=Phonology.from_dict(data.get("phonology", {})),
            morphology=Morphology.from_dict(data.get("morphology", {})),
            style=StyleRules.from_dict(data.get("style", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "culture_id": self.culture_id,
            "phonology": self.phonology.to_dict(),
            "morphology": self.morphology.to_dict(),
            "style": self.style.to_dict(),
        }


# =============================================================================
# SCOPE AND LEXEMES
# =============================================================================


@dataclass(frozen=True)
class Scope:
    """Applicability of a record: cultures and entity kinds, ``*`` is a wildcard."""

    cultures: tuple[str, ...] = (WILDCARD,)
    entity_kinds: tuple[str, ...] = (WILDCARD,)

    def matches(self, culture_id: str | None, entity_kind: str | None) -> bool:
        return self._matches(self.cultures, culture_id) and self._matches(
            self.entity_kinds, entity_kind
        )

    def specificity(self, culture_id: str | None, entity_kind: str | None) -> int:
        """Rank a matching scope: exact culture beats exact kind beats wildcard."""
        score = 0
        if culture_id is not None and culture_id in self.cultures:
            score += 2
        if entity_kind is not None and entity_kind in self.entity_kinds:
            score += 1
        return score

    @staticmethod
    def _matches(allowed: tuple[str, ...], value: str | None) -> bool:
        if not allowed or WILDCARD in allowed:
            return True
        return value is not None and value in allowed

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Scope":
        if not data:
            return cls()
        return cls(
            cultures=_strings(data.get("cultures")) or (WILDCARD,),
            entity_kinds=_strings(_get(data, "entity_kinds", "entityKinds")) or (WILDCARD,),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"cultures": list(self.cultures), "entity_kinds": list(self.entity_kinds)}


@dataclass(frozen=True)
class LexemeList:
    """Named word list used by ``slot:`` grammar tokens."""

    id: str
    entries: tuple[str, ...]
    source: str = "manual"
    applies_to: Scope = field(default_factory=Scope)
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LexemeList":
        """Create LexemeList from dictionary."""
        if "id" not in data:
            raise ConfigurationError("Lexeme list record has no id")
        return cls(
            id=str(data["id"]),
            entries=_strings(data.get("entries")),
            source=data.get("source", "manual"),
            applies_to=Scope.from_dict(_get(data, "applies_to", "appliesTo")),
            description=data.get("description", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entries": list(self.entries),
            "source": self.source,
            "applies_to": self.applies_to.to_dict(),
            "description": self.description,
        }


# =============================================================================
# GRAMMAR
# =============================================================================


@dataclass(frozen=True)
class Token:
    """Parsed grammar token.

    Kinds: ``literal``, ``rule`` (nonterminal reference), ``slot``,
    ``domain``, ``markov``, ``context`` and ``compound`` (several parts joined
    by hyphens, e.g. ``slot:adj-domain:elven``).
    """

    kind: str
    value: str
    suffix: str = ""
    fallback: str | None = None
    parts: tuple["Token", ...] = ()

    @property
    def raw(self) -> str:
        """Token text as written in the grammar."""
        if self.kind in ("literal", "rule"):
            return self.value
        if self.kind == "compound":
            return "-".join(part.raw for part in self.parts)
        text = f"{self.kind}:{self.value}"
        if self.fallback is not None:
            text += f"|{self.fallback}"
        if self.suffix:
            text += f"^{self.suffix}"
        return text

    def rule_references(self) -> list[str]:
        if self.kind == "rule":
            return [self.value]
        refs: list[str] = []
        for part in self.parts:
            refs.extend(part.rule_references())
        return refs


def split_compound(text: str, rule_names: set[str]) -> list[str]:
    """Split a compound at hyphens that start a reference or a rule name.

    Hyphens inside a ``|fallback`` or ``^suffix`` stay part of the text.
    """
    prefixes = tuple(f"{kind}:" for kind in REFERENCE_KINDS)
    pieces: list[str] = []
    start = 0
    for i, char in enumerate(text):
        if char != "-" or i == start:
            continue
        rest = text[i + 1 :]
        if rest.startswith(prefixes) or rest.split("-", 1)[0] in rule_names:
            pieces.append(text[start:i])
            start = i + 1
    pieces.append(text[start:])
    return [piece for piece in pieces if piece.strip()]


def parse_token(raw: str, rule_names: Iterable[str]) -> Token:
    """Parse one grammar token.

    Args:
        raw: Token text
        rule_names: Nonterminals of the grammar

    Returns:
        Parsed Token

    Raises:
        ConfigurationError: If a reference token names nothing (e.g. ``slot:``)
    """
    rule_names = set(rule_names)
    text = raw.strip()

    if text in rule_names:
        return Token(kind="rule", value=text)

    if "-" in text and any(f"{kind}:" in text for kind in REFERENCE_KINDS):
        pieces = split_compound(text, rule_names)
        if len(pieces) > 1:
            parts = tuple(parse_token(part, rule_names) for part in pieces)
            return Token(kind="compound", value=text, parts=parts)

    prefix, sep, rest = text.partition(":")
    if sep and prefix in REFERENCE_KINDS:
        base, _, suffix = rest.partition("^")
        fallback = None
        if prefix == "context" and "|" in base:
            base, fallback = base.split("|", 1)
        if not base:
            raise ConfigurationError(f"Empty reference in grammar token '{raw}'")
        return Token(kind=prefix, value=base, suffix=suffix, fallback=fallback)

    return Token(kind="literal", value=raw)


@dataclass(frozen=True)
class Production:
    """One alternative of a nonterminal."""

    tokens: tuple[Token, ...]
    weight: float | None = None


def _unproductive(rules: dict[str, tuple[Production, ...]]) -> set[str]:
    """Nonterminals that can never expand to terminals only."""
    productive: set[str] = set()
    changed = True
    while changed:
        changed = False
        for symbol, productions in rules.items():
            if symbol in productive:
                continue
            for production in productions:
                refs = [ref for token in production.tokens for ref in token.rule_references()]
                if all(ref in productive for ref in refs):
                    productive.add(symbol)
                    changed = True
                    break
    return set(rules) - productive


@dataclass(frozen=True)
class Grammar:
    """Context-free production system for composite names."""

    id: str
    start: str
    rules: dict[str, tuple[Production, ...]]
    applies_to: Scope = field(default_factory=Scope)
    capitalization: str | None = None

    def __post_init__(self) -> None:
        if self.start not in self.rules:
            raise ConfigurationError(
                f"Start symbol '{self.start}' is not a rule of grammar '{self.id}'",
                record_id=self.id,
            )
        for symbol, productions in self.rules.items():
            if not productions:
                raise ConfigurationError(
                    f"Rule '{symbol}' of grammar '{self.id}' has no alternatives",
                    record_id=self.id,
                )
            if any(p.weight is not None and p.weight < 0 for p in productions):
                raise ConfigurationError(
                    f"Rule '{symbol}' of grammar '{self.id}' has a negative weight",
                    record_id=self.id,
                )
        unproductive = _unproductive(self.rules)
        if unproductive:
            raise ConfigurationError(
                f"Grammar '{self.id}' has rules that never terminate: {sorted(unproductive)}",
                record_id=self.id,
            )
        if self.capitalization is not None and self.capitalization not in CAPITALIZATIONS:
            raise ConfigurationError(
                f"Unknown capitalization '{self.capitalization}'", record_id=self.id
            )

    def tokens(self) -> list[Token]:
        """All terminal reference tokens (compound parts flattened)."""
        found: list[Token] = []
        stack = [t for productions in self.rules.values() for p in productions for t in p.tokens]
        while stack:
            token = stack.pop()
            if token.kind == "compound":
                stack.extend(token.parts)
            else:
                found.append(token)
        return found

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Grammar":
        """Create Grammar from dictionary.

        Productions are token lists, or ``{"tokens": [...], "weight": w}``
        for weighted alternatives.
        """
        if "id" not in data:
            raise ConfigurationError("Grammar record has no id")
        raw_rules: dict[str, list[Any]] = data.get("rules") or {}
        names = set(raw_rules)
        rules: dict[str, tuple[Production, ...]] = {}
        for symbol, alternatives in raw_rules.items():
            productions = []
            for alternative in alternatives or ():
                weight = None
                if isinstance(alternative, dict):
                    weight = alternative.get("weight")
                    weight = float(weight) if weight is not None else None
                    alternative = alternative.get("tokens", [])
                tokens = tuple(parse_token(str(t), names) for t in alternative)
                productions.append(Production(tokens=tokens, weight=weight))
            rules[symbol] = tuple(productions)
        return cls(
            id=str(data["id"]),
            start=data.get("start", "name"),
            rules=rules,
            applies_to=Scope.from_dict(_get(data, "applies_to", "appliesTo")),
            capitalization=data.get("capitalization"),
        )

    def to_dict(self) -> dict[str, Any]:
        rules: dict[str, list[Any]] = {}
        for symbol, productions in self.rules.items():
            alternatives: list[Any] = []
            for production in productions:
                tokens = [token.raw for token in production.tokens]
                if production.weight is None:
                    alternatives.append(tokens)
                else:
                    alternatives.append({"tokens": tokens, "weight": production.weight})
            rules[symbol] = alternatives
        data: dict[str, Any] = {
            "id": self.id,
            "start": self.start,
            "rules": rules,
            "applies_to": self.applies_to.to_dict(),
        }
        if self.capitalization is not None:
            data["capitalization"] = self.capitalization
        return data


# =============================================================================
# STRATEGY PROFILES
# =============================================================================


@dataclass(frozen=True)
class EntityAttributes:
    """The entity a name is generated for."""

    id: str | None = None
    kind: str | None = None
    subtype: str | None = None
    prominence: str | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EntityAttributes":
        return cls(
            id=data.get("id"),
            kind=data.get("kind"),
            subtype=data.get("subtype"),
            prominence=data.get("prominence"),
            tags=_strings(data.get("tags")),
        )


@dataclass(frozen=True)
class PhonotacticStrategy:
    """Generate with the NameSynthesizer from a domain."""

    kind: ClassVar[str] = "phonotactic"

    domain_id: str
    weight: float = 1.0

    @property
    def target_id(self) -> str:
        return self.domain_id


@dataclass(frozen=True)
class GrammarStrategy:
    """Generate by expanding a grammar."""

    kind: ClassVar[str] = "grammar"

    grammar_id: str
    weight: float = 1.0

    @property
    def target_id(self) -> str:
        return self.grammar_id


Strategy = Union[PhonotacticStrategy, GrammarStrategy]


def parse_strategy(data: dict[str, Any]) -> Strategy:
    """Create a Strategy variant from dictionary.

    Raises:
        ConfigurationError: On unknown kind, missing target or negative weight
    """
    kind = data.get("kind") or data.get("type")
    weight = float(data.get("weight", 1.0))
    if weight < 0:
        raise ConfigurationError(f"Strategy weight must be >= 0, got {weight}")
    if kind == "phonotactic":
        domain_id = _get(data, "domain_id", "domainId")
        if not domain_id:
            raise ConfigurationError("Phonotactic strategy has no domain_id")
        return PhonotacticStrategy(domain_id=domain_id, weight=weight)
    if kind == "grammar":
        grammar_id = _get(data, "grammar_id", "grammarId")
        if not grammar_id:
            raise ConfigurationError("Grammar strategy has no grammar_id")
        return GrammarStrategy(grammar_id=grammar_id, weight=weight)
    raise ConfigurationError(f"Unknown strategy kind: {kind!r}")


def strategy_to_dict(strategy: Strategy) -> dict[str, Any]:
    key = "domain_id" if strategy.kind == "phonotactic" else "grammar_id"
    return {"kind": strategy.kind, "weight": strategy.weight, key: strategy.target_id}


@dataclass(frozen=True)
class GroupConditions:
    """Activation conditions of a strategy group. Empty lists do not constrain."""

    tags: tuple[str, ...] = ()
    require_all_tags: bool = False
    prominence: tuple[str, ...] = ()
    subtype: tuple[str, ...] = ()
    entity_kinds: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.tags or self.prominence or self.subtype or self.entity_kinds)

    def matches(self, entity: EntityAttributes) -> bool:
        if self.tags:
            present = set(entity.tags)
            if self.require_all_tags:
                if not all(tag in present for tag in self.tags):
                    return False
            elif not any(tag in present for tag in self.tags):
                return False
        if self.prominence and entity.prominence not in self.prominence:
            return False
        if self.subtype and entity.subtype not in self.subtype:
            return False
        if self.entity_kinds and entity.kind not in self.entity_kinds:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "GroupConditions | None":
        """Create conditions; returns None when nothing constrains the group."""
        if not data:
            return None
        conditions = cls(
            tags=_strings(data.get("tags")),
            require_all_tags=bool(
                _get(data, "require_all_tags", "requireAllTags", _get(data, "tagMatchAll", default=False))
            ),
            prominence=_strings(data.get("prominence")),
            subtype=_strings(_get(data, "subtype", "subtypes")),
            entity_kinds=_strings(_get(data, "entity_kinds", "entityKinds")),
        )
        return None if conditions.is_empty else conditions

    def to_dict(self) -> dict[str, Any]:
        return {
            "tags": list(self.tags),
            "require_all_tags": self.require_all_tags,
            "prominence": list(self.prominence),
            "subtype": list(self.subtype),
            "entity_kinds": list(self.entity_kinds),
        }


@dataclass(frozen=True)
class StrategyGroup:
    """Priority-ordered, optionally conditioned bucket of weighted strategies."""

    name: str
    priority: int
    conditions: GroupConditions | None
    strategies: tuple[Strategy, ...]

    @property
    def is_fallback(self) -> bool:
        return self.conditions is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategyGroup":
        return cls(
            name=data.get("name", ""),
            priority=int(data.get("priority", 0)),
            conditions=GroupConditions.from_dict(data.get("conditions")),
            strategies=tuple(parse_strategy(s) for s in data.get("strategies") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "priority": self.priority,
            "conditions": self.conditions.to_dict() if self.conditions else None,
            "strategies": [strategy_to_dict(s) for s in self.strategies],
        }


@dataclass(frozen=True)
class StrategyProfile:
    """Chooses, per entity, which generation method to invoke."""

    id: str
    strategy_groups: tuple[StrategyGroup, ...]
    name: str = ""

    def __post_init__(self) -> None:
        fallbacks = [g for g in self.strategy_groups if g.is_fallback]
        if len(fallbacks) > 1:
            raise ConfigurationError(
                f"Profile '{self.id}' has {len(fallbacks)} unconditioned groups (max 1)",
                record_id=self.id,
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategyProfile":
        """Create StrategyProfile from dictionary."""
        if "id" not in data:
            raise ConfigurationError("Profile record has no id")
        return cls(
            id=str(data["id"]),
            strategy_groups=tuple(
                StrategyGroup.from_dict(g)
                for g in _get(data, "strategy_groups", "strategyGroups") or ()
            ),
            name=data.get("name", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "strategy_groups": [g.to_dict() for g in self.strategy_groups],
        }
