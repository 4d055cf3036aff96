"""Exceptions raised by the naming engine and the optimizer."""


class NameForgeError(Exception):
    """Base exception for all naming engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(NameForgeError):
    """Raised for invalid culture configuration.

    Empty phonology, dangling grammar references, a missing start symbol,
    mismatched weight arrays and similar. Never retried.
    """

    def __init__(self, message: str, record_id: str | None = None):
        self.record_id = record_id
        super().__init__(message)


class GrammarRecursionError(NameForgeError):
    """Raised when grammar expansion exceeds the maximum depth."""

    def __init__(self, grammar_id: str, symbol: str, depth: int):
        self.grammar_id = grammar_id
        self.symbol = symbol
        self.depth = depth
        super().__init__(
            f"Grammar '{grammar_id}' exceeded max expansion depth {depth} at symbol '{symbol}'"
        )


class NoStrategyAvailable(NameForgeError):
    """Raised when no strategy group of a profile yields a usable strategy."""

    def __init__(self, profile_id: str):
        self.profile_id = profile_id
        super().__init__(f"No strategy available in profile '{profile_id}'")


class OptimizationError(NameForgeError):
    """Raised when a domain cannot be optimized (e.g. fitness not computable).

    Aborts the run of that domain only; the original domain is untouched.
    """

    def __init__(self, message: str, domain_id: str | None = None):
        self.domain_id = domain_id
        super().__init__(message)
