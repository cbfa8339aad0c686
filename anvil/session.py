"""
Anvil — Combat Session
The only object callers talk to. It owns the player, the card pool and the
running combat, and serialises every operation behind one lock: no craft or
phase change can interleave with another.

    session = start_combat(create_enemy("rust_slime"), rng=random.Random(7))
    session.move_card_to_slot(handle.instance_id, "handle")
    session.move_card_to_slot(head.instance_id, "head")
    outcome = session.craft_and_resolve()
    session.end_turn()
"""

from __future__ import annotations
import random
import threading
import uuid
from typing import Optional

from anvil.cards import build_starter_deck
from anvil.config import Settings
from anvil.deck import CardPiles
from anvil.enemies import fresh_enemy
from anvil.exceptions import CombatStateError
from anvil.forge import forge
from anvil.log import bind_context, clear_context, get_logger
from anvil.models import (
    CardInstance, CombatEvent, CombatPhase, CraftedWeapon, EnemyData,
    EnemyTurnResult, PlayerStats, ResolutionOutcome, SLOT_NAMES,
)
from anvil.resolver import resolve
from anvil.rules import (
    HAND_SIZE, Combat, check_combat_end, combat_outcome,
    phase_enemy_turn, phase_player_discard, phase_player_draw, validate_slot_move,
)

logger = get_logger(__name__)


class CombatSession:

    def __init__(
        self,
        player: Optional[PlayerStats] = None,
        deck: Optional[list[CardInstance]] = None,
        rng: Optional[random.Random] = None,
        hand_size: int = HAND_SIZE,
    ):
        self.session_id = uuid.uuid4().hex[:8]
        self.player = player or PlayerStats()
        self.deck: list[CardInstance] = list(deck) if deck is not None else build_starter_deck()
        self.rng = rng or random.Random()
        self.hand_size = hand_size
        self.combat: Optional[Combat] = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, deck: Optional[list[CardInstance]] = None) -> CombatSession:
        player = PlayerStats(
            hp=settings.starting_hp,
            max_hp=settings.starting_hp,
            energy=settings.max_energy,
            max_energy=settings.max_energy,
        )
        return cls(player, deck, random.Random(settings.seed), settings.hand_size)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_combat(self, enemy: EnemyData) -> Combat:
        """Fresh enemy copy, reset player flags, shuffle the pool, draw the first hand."""
        with self._lock:
            if self.combat is not None:
                raise CombatStateError("Finish the current combat first", details={"enemy": self.combat.enemy.id})

            enemy = fresh_enemy(enemy)
            self.player.reset_combat_flags()
            piles = CardPiles(self.deck)
            piles.shuffle(self.rng)
            self.deck = []

            self.combat = Combat(
                player=self.player,
                enemy=enemy,
                piles=piles,
                rng=self.rng,
                hand_size=self.hand_size,
            )
            bind_context(combat_id=f"{self.session_id}-{uuid.uuid4().hex[:6]}", enemy=enemy.id)
            self.combat.record_event("combat_start", "rules", enemy.name, enemy.max_hp)
            logger.info("combat_started", enemy=enemy.id, enemy_hp=enemy.max_hp,
                        player_hp=self.player.hp, deck_size=len(piles))

            phase_player_draw(self.combat)
            return self.combat

    def finish_combat(self) -> list[CardInstance]:
        """
        Gather every card the player owns (piles and anvil) back into one deck,
        drop the Junk, and close the combat. Exhausted cards stay gone.
        """
        with self._lock:
            combat = self._require_combat()
            if not combat.state.is_over:
                raise CombatStateError("Combat is still running", details={"phase": combat.state.phase.value})
            piles = combat.piles
            piles.hand.extend(combat.slots.clear())
            removed = piles.strip_junk()
            self.deck = piles.draw_pile + piles.hand + piles.discard
            self.combat = None
            logger.info("combat_finished", deck_size=len(self.deck), junk_removed=removed)
            clear_context()
            return list(self.deck)

    # ------------------------------------------------------------------
    # Deck management between combats
    # ------------------------------------------------------------------

    def acquire_card(self, card: CardInstance):
        """Add a reward or shop card to the pool."""
        with self._lock:
            self._require_no_combat()
            self.deck.append(card)
            logger.info("card_acquired", card_id=card.id, name=card.name)

    def smelt_card(self, instance_id: str) -> CardInstance:
        """Permanently destroy one owned instance."""
        with self._lock:
            self._require_no_combat()
            for i, card in enumerate(self.deck):
                if card.instance_id == instance_id:
                    logger.info("card_smelted", card_id=card.id, name=card.name)
                    return self.deck.pop(i)
            raise CombatStateError("Card is not in the deck", details={"instance_id": instance_id})

    # ------------------------------------------------------------------
    # Player action
    # ------------------------------------------------------------------

    def move_card_to_slot(self, instance_id: str, slot: str) -> tuple[bool, str]:
        with self._lock:
            combat = self._require_action()
            card = next((c for c in combat.piles.hand if c.instance_id == instance_id), None)
            if card is None and combat.slots.find(instance_id) == slot:
                return True, ""

            valid, error = validate_slot_move(combat, card, slot)
            if not valid:
                combat.record_event("rejected", "player", slot, detail=error)
                logger.info("slot_move_rejected", instance_id=instance_id, slot=slot, reason=error)
                return False, error

            combat.piles.take_from_hand(instance_id)
            evicted = combat.slots.put(slot, card)
            if evicted is not None:
                combat.piles.hand.append(evicted)
            logger.debug("card_slotted", card_id=card.id, slot=slot,
                         evicted=evicted.id if evicted else None)
            return True, ""

    def remove_from_slot(self, slot: str) -> Optional[CardInstance]:
        with self._lock:
            combat = self._require_action()
            if slot not in SLOT_NAMES.values():
                return None
            card = combat.slots.put(slot, None)
            if card is not None:
                combat.piles.hand.append(card)
            return card

    def clear_slots(self) -> list[CardInstance]:
        with self._lock:
            combat = self._require_action()
            cards = combat.slots.clear()
            combat.piles.hand.extend(cards)
            return cards

    def preview(self) -> CraftedWeapon:
        """Live prediction for the current slots. Changes nothing."""
        with self._lock:
            combat = self._require_combat()
            return forge(combat.slots, combat.player, combat.enemy, combat.bonuses)

    def craft_and_resolve(self) -> ResolutionOutcome:
        with self._lock:
            combat = self._require_action()
            weapon = forge(combat.slots, combat.player, combat.enemy, combat.bonuses)
            outcome = resolve(
                combat.slots,
                weapon,
                combat.player,
                combat.enemy,
                combat.piles,
                combat.bonuses,
                combat.rng,
                turn=combat.state.turn,
                event_offset=len(combat.events),
            )
            combat.record(outcome.events)
            if outcome.accepted:
                check_combat_end(combat)
            return outcome

    def end_turn(self) -> Optional[EnemyTurnResult]:
        """
        Discard, let the enemy act, and draw the next hand. Returns the enemy's
        turn, or None if the combat was already decided.
        """
        with self._lock:
            combat = self._require_action()
            if check_combat_end(combat):
                return None
            combat.state.phase = CombatPhase.PLAYER_DISCARD
            phase_player_discard(combat)
            result = phase_enemy_turn(combat)
            if not combat.state.is_over:
                phase_player_draw(combat)
            return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def outcome(self) -> Optional[CombatPhase]:
        combat = self._require_combat()
        return combat_outcome(combat.player, combat.enemy)

    @property
    def phase(self) -> Optional[CombatPhase]:
        return self.combat.state.phase if self.combat else None

    @property
    def hand(self) -> list[CardInstance]:
        return list(self._require_combat().piles.hand)

    def events_for_turn(self, turn: int) -> list[CombatEvent]:
        return [e for e in self._require_combat().events if e.turn == turn]

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_combat(self) -> Combat:
        if self.combat is None:
            raise CombatStateError("No combat in progress")
        return self.combat

    def _require_action(self) -> Combat:
        combat = self._require_combat()
        combat.require_phase(CombatPhase.PLAYER_ACTION)
        return combat

    def _require_no_combat(self):
        if self.combat is not None:
            raise CombatStateError("Not allowed while a combat is open", details={"enemy": self.combat.enemy.id})


def start_combat(
    enemy: EnemyData,
    player: Optional[PlayerStats] = None,
    cards: Optional[list[CardInstance]] = None,
    rng: Optional[random.Random] = None,
) -> CombatSession:
    session = CombatSession(player, cards, rng)
    session.start_combat(enemy)
    return session
