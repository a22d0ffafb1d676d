"""Custom exception hierarchy for recipe data access errors."""

from __future__ import annotations


class RecipeDataError(Exception):
    """Base exception for recipe data access failures."""


class RecipeRateLimitError(RecipeDataError):
    """Raised when the recipe API keeps rate limiting after all retries."""


class RecipeAPIError(RecipeDataError):
    """Raised when the recipe API answers with an unshaped HTTP error."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        if message:
            super().__init__(f'HTTP {status_code}: {message}')
        else:
            super().__init__(f'HTTP {status_code}')


class RecipeTransportError(RecipeDataError):
    """Raised when network or protocol-level failures occur."""

    def __init__(self, original: Exception) -> None:
        self.original = original
        super().__init__(str(original))


class ProfileError(RecipeDataError):
    """Raised when a profile update is rejected."""
