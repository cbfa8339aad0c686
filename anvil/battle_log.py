"""
Anvil — Battle Log Serializer
Converts a turn's CombatEvents into a clean JSON payload for the narrator.
The narrator reads this and ONLY this. It never touches combat state.
"""

from __future__ import annotations
from typing import Optional

from anvil.models import CombatEvent, CombatPhase, EnemyData, PlayerStats

# Event kinds worth a sentence of narration; the rest is bookkeeping
NARRATED_KINDS = {
    "forge", "roll", "damage", "blocked", "damage_capped", "block", "heal", "self_damage",
    "hp_loss", "status", "gold", "execute", "replica", "crystal", "skip_intent", "exhaust",
    "return_to_hand", "stunned", "poison", "burn", "bleed", "intent", "enemy_attack", "dodge",
    "gold_stolen", "enemy_block", "enemy_heal", "junk_added", "card_cost_up", "cost_limit",
    "disarm", "enemy_empowered", "combat_end",
}


def to_narrator_payload(
    events: list[CombatEvent],
    player: PlayerStats,
    enemy: EnemyData,
    turn: int,
    outcome: Optional[CombatPhase] = None,
    player_name: str = "The Smith",
) -> dict:
    """
    Serialize one turn into the narrator's input payload.
    Every field the narrator needs is here. Nothing more.
    """
    def label(name: str) -> str:
        return player_name if name == "player" else name

    events_payload = []
    for e in events:
        if e.kind not in NARRATED_KINDS:
            continue
        event_dict = {
            "order": e.order,
            "kind": e.kind,
            "source": label(e.source),
            "target": label(e.target),
            "amount": e.amount,
        }
        if e.detail:
            event_dict["detail"] = e.detail
        events_payload.append(event_dict)

    return {
        "turn": turn,
        "combat_events": events_payload,
        "player": {
            "name": player_name,
            "hp": player.hp,
            "max_hp": player.max_hp,
            "block": player.block,
            "gold": player.gold,
        },
        "enemy": {
            "name": enemy.name,
            "tier": enemy.tier.value,
            "hp": enemy.current_hp,
            "max_hp": enemy.max_hp,
            "block": enemy.block,
            "statuses": {k: v for k, v in vars(enemy.statuses).items() if v},
            "next_intent": enemy.current_intent.description if not enemy.is_dead else None,
        },
        "combat_outcome": _outcome_label(outcome, player_name, enemy),
        "turn_summary": summarize(events),
    }


def summarize(events: list[CombatEvent]) -> dict:
    """Totals for a run of events."""
    def total(*kinds):
        return sum(e.amount for e in events if e.kind in kinds)

    return {
        "weapons_forged": sum(1 for e in events if e.kind == "forge"),
        "damage_to_enemy": total("damage", "execute", "poison", "burn", "bleed"),
        "damage_to_player": total("enemy_attack", "self_damage", "hp_loss"),
        "block_gained": total("block"),
        "healed": total("heal"),
    }


def _outcome_label(outcome: Optional[CombatPhase], player_name: str, enemy: EnemyData) -> Optional[str]:
    if outcome == CombatPhase.COMBAT_WON:
        return f"{player_name} defeated {enemy.name}"
    if outcome == CombatPhase.COMBAT_LOST:
        return f"{player_name} fell to {enemy.name}"
    return None
