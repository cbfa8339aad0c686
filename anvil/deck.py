"""
Anvil — Deck / Draw Subsystem
The four piles a player's card instances live in during combat.
The top of the draw pile is the END of the list.
"""

from __future__ import annotations
import random
from typing import Iterator, Optional

from anvil.models import CardInstance, CardType


class CardPiles:
    """Draw pile, hand, discard pile and exhausted cards."""

    def __init__(self, cards: Optional[list[CardInstance]] = None) -> None:
        self.draw_pile: list[CardInstance] = list(cards) if cards else []
        self.hand: list[CardInstance] = []
        self.discard: list[CardInstance] = []
        self.exhausted: list[CardInstance] = []

    # -- Deck manipulation ---------------------------------------------------

    def shuffle(self, rng: random.Random) -> None:
        rng.shuffle(self.draw_pile)

    def draw(self, n: int, rng: random.Random) -> list[CardInstance]:
        """
        Draw up to n cards into the hand. Reshuffles the discard pile into the
        draw pile when it runs out; stops short when both are empty.
        """
        drawn: list[CardInstance] = []
        for _ in range(max(0, n)):
            if not self.draw_pile:
                if not self.discard:
                    break
                self.draw_pile = self.discard
                self.discard = []
                self.shuffle(rng)
            drawn.append(self.draw_pile.pop())
        self.hand.extend(drawn)
        return drawn

    def push_top(self, card: CardInstance) -> None:
        self.draw_pile.append(card)

    def add_to_discard(self, cards: list[CardInstance]) -> None:
        self.discard.extend(cards)

    def discard_hand(self) -> list[CardInstance]:
        cards = self.hand
        self.discard.extend(cards)
        self.hand = []
        return cards

    def exhaust(self, card: CardInstance) -> None:
        self.exhausted.append(card)

    def take_from_hand(self, instance_id: str) -> Optional[CardInstance]:
        for i, card in enumerate(self.hand):
            if card.instance_id == instance_id:
                return self.hand.pop(i)
        return None

    def strip_junk(self) -> int:
        """Drop every Junk card from every pile. Returns how many were removed."""
        removed = 0
        for name in ("draw_pile", "hand", "discard", "exhausted"):
            pile = getattr(self, name)
            kept = [c for c in pile if c.card_type != CardType.JUNK]
            removed += len(pile) - len(kept)
            setattr(self, name, kept)
        return removed

    # -- Queries -------------------------------------------------------------

    def deck_and_discard(self) -> list[CardInstance]:
        return self.draw_pile + self.discard

    def __iter__(self) -> Iterator[CardInstance]:
        yield from self.draw_pile
        yield from self.hand
        yield from self.discard
        yield from self.exhausted

    def __len__(self) -> int:
        return len(self.draw_pile) + len(self.hand) + len(self.discard) + len(self.exhausted)
