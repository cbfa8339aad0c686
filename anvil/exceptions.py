"""
Anvil — Exception hierarchy

Rejected player actions (not enough energy, wrong slot, ...) are NOT
exceptions. They come back as (False, message) or as a rejected
ResolutionOutcome. The classes here are for data-integrity bugs and for
calling the engine at the wrong time.
"""

from __future__ import annotations
from typing import Any, Optional


class AnvilError(Exception):
    """Base class for every engine error."""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class CardNotFoundError(AnvilError, KeyError):
    """A card id is missing from the static catalog."""

    def __init__(self, card_id: int):
        self.card_id = card_id
        super().__init__(f"Card {card_id} not found in catalog", details={"card_id": card_id})

    def __str__(self) -> str:
        # KeyError would otherwise quote the message
        return self.message


class InvalidContentError(AnvilError):
    """A card or enemy record breaks the data-model invariants."""


class CombatStateError(AnvilError):
    """An operation was requested in a phase that does not allow it."""
