"""Exceptions raised by the token engine."""


class TokenEngineError(Exception):
    """Base exception for token engine errors."""

    pass


class UnknownProviderError(TokenEngineError, ValueError):
    """Raised when routing or summarization targets a provider with no model table."""

    def __init__(self, provider: str, known: list[str] | None = None):
        self.provider = provider
        self.known = known or []
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"Unknown provider '{provider}'{hint}")
