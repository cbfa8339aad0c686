"""
Anvil Rules Engine — Combat State Machine

    PLAYER_DRAW -> PLAYER_ACTION -> PLAYER_DISCARD -> ENEMY_TURN -> PLAYER_DRAW ...

A dead player ends the combat immediately (COMBAT_LOST) whatever phase it is;
a dead enemy ends it as COMBAT_WON. Randomness comes only from combat.rng.
"""

from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import Optional

from anvil.deck import CardPiles
from anvil.enemy_turn import resolve_enemy_turn
from anvil.exceptions import CombatStateError
from anvil.log import get_logger
from anvil.models import (
    CardInstance, CardType, CombatEvent, CombatPhase, CombatState, EnemyData,
    EnemyTurnResult, PlayerStats, SessionBonuses, WeaponSlots, SLOT_NAMES,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HAND_SIZE = 5


# ---------------------------------------------------------------------------
# Combat container
# ---------------------------------------------------------------------------

@dataclass
class Combat:
    """All mutable state of one combat."""
    player: PlayerStats
    enemy: EnemyData
    piles: CardPiles
    slots: WeaponSlots = field(default_factory=WeaponSlots)
    bonuses: SessionBonuses = field(default_factory=SessionBonuses)
    state: CombatState = field(default_factory=CombatState)
    rng: random.Random = field(default_factory=random.Random)
    hand_size: int = HAND_SIZE
    events: list[CombatEvent] = field(default_factory=list)

    def record(self, events: list[CombatEvent]):
        self.events.extend(events)

    def record_event(self, kind: str, source: str, target: str, amount: int = 0, detail: str = ""):
        self.events.append(CombatEvent(len(self.events) + 1, self.state.turn, kind, source, target, amount, detail))

    def require_phase(self, *phases: CombatPhase):
        if self.state.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise CombatStateError(
                f"Not allowed during {self.state.phase.value}",
                details={"phase": self.state.phase.value, "allowed": allowed},
            )


# ---------------------------------------------------------------------------
# Win / loss
# ---------------------------------------------------------------------------

def combat_outcome(player: PlayerStats, enemy: EnemyData) -> Optional[CombatPhase]:
    """Pure predicate. Loss wins ties: a player at 0 HP has lost, even if the enemy died too."""
    if player.hp <= 0:
        return CombatPhase.COMBAT_LOST
    if enemy.current_hp <= 0:
        return CombatPhase.COMBAT_WON
    return None


def check_combat_end(combat: Combat) -> bool:
    """Move to a terminal phase if the combat is decided. Returns True when over."""
    if combat.state.is_over:
        return True
    outcome = combat_outcome(combat.player, combat.enemy)
    if outcome is None:
        return False
    combat.state.phase = outcome
    combat.record_event("combat_end", "rules", "combat", detail=outcome.value)
    logger.info("combat_ended", outcome=outcome.value, turn=combat.state.turn,
                player_hp=combat.player.hp, enemy_hp=combat.enemy.current_hp)
    return True


# ---------------------------------------------------------------------------
# Phase: Player draw
# ---------------------------------------------------------------------------

def phase_player_draw(combat: Combat) -> Combat:
    """Reset the player's per-turn state and draw the hand."""
    combat.require_phase(CombatPhase.PLAYER_DRAW)
    player = combat.player

    draw_count = combat.hand_size + player.next_turn_draw
    overheat = player.overheat

    player.energy = max(0, player.max_energy - overheat)
    player.block = 0
    player.next_turn_draw = 0
    player.overheat = 0
    player.weapons_used_this_turn = 0
    player.self_damage_this_turn = 0
    combat.enemy.damage_taken_this_turn = 0
    combat.bonuses.infinite_loop_used = False

    drawn = combat.piles.draw(draw_count, combat.rng)
    combat.record_event("draw", "rules", "player", len(drawn), detail=f"requested={draw_count}")
    if overheat:
        combat.record_event("overheat_penalty", "rules", "player", overheat)

    combat.state.phase = CombatPhase.PLAYER_ACTION
    logger.debug("phase_player_draw", turn=combat.state.turn, drawn=len(drawn), energy=player.energy)
    return combat


# ---------------------------------------------------------------------------
# Phase: Player action (slot validation)
# ---------------------------------------------------------------------------

def validate_slot_move(combat: Combat, card: Optional[CardInstance], slot: str) -> tuple[bool, str]:
    """
    Check that card may go into slot.
    Returns (valid, error_message)
    """
    if slot not in SLOT_NAMES.values():
        return False, f"Unknown slot {slot!r}"
    if card is None:
        return False, "Card is not in hand or on the anvil"
    if card.unplayable or card.card_type == CardType.JUNK:
        return False, f"{card.name} cannot be used"
    if SLOT_NAMES.get(card.card_type) != slot:
        return False, f"{card.name} is a {card.card_type.value} and cannot go in the {slot} slot"
    if slot == "head" and combat.player.disarmed:
        return False, "Disarmed: the head slot is unusable this turn"
    return True, ""


# ---------------------------------------------------------------------------
# Phase: Player discard
# ---------------------------------------------------------------------------

def phase_player_discard(combat: Combat) -> Combat:
    combat.require_phase(CombatPhase.PLAYER_DISCARD)
    player = combat.player
    player.cost_limit = None
    player.disarmed = False

    hand = combat.piles.discard_hand()
    slotted = combat.slots.clear()
    combat.piles.add_to_discard(slotted)
    discarded = len(hand) + len(slotted)
    combat.record_event("discard", "rules", "player", discarded)

    combat.state.phase = CombatPhase.ENEMY_TURN
    logger.debug("phase_player_discard", turn=combat.state.turn, discarded=discarded)
    return combat


# ---------------------------------------------------------------------------
# Phase: Enemy turn
# ---------------------------------------------------------------------------

def phase_enemy_turn(combat: Combat) -> EnemyTurnResult:
    combat.require_phase(CombatPhase.ENEMY_TURN)
    result = resolve_enemy_turn(
        combat.player,
        combat.enemy,
        combat.piles,
        combat.rng,
        turn=combat.state.turn,
        event_offset=len(combat.events),
    )
    combat.record(result.events)

    if not check_combat_end(combat):
        combat.state.turn += 1
        combat.state.phase = CombatPhase.PLAYER_DRAW
    logger.debug("phase_enemy_turn", turn=result.turn, stunned=result.stunned,
                 damage_to_player=result.damage_to_player)
    return result
