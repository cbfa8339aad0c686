"""
Anvil — Status Model
Integer stacks on the enemy. Everything floors at 0.

Decay rules:
    poison      -1 each time it ticks (enemy turn)
    bleed       -1 each time it ticks (once per enemy attack hit)
    vulnerable  -1 per enemy turn
    weak        -1 per enemy turn
    stunned     -1 per enemy turn it skips
    burn        never decays
    strength    cleared once spent on an attack
"""

from __future__ import annotations
from anvil.models import EnemyStatus

STATUS_KINDS = ("poison", "bleed", "stunned", "strength", "vulnerable", "weak", "burn")

# Stacks removed at the start of every enemy turn
TURN_DECAY = ("vulnerable", "weak")

VULNERABLE_MULTIPLIER = 1.5
WEAK_MULTIPLIER = 0.75


def _check_kind(kind: str):
    if kind not in STATUS_KINDS:
        raise ValueError(f"Unknown status {kind!r}")


def apply_status(statuses: EnemyStatus, kind: str, amount: int) -> int:
    """Add stacks (negative amounts remove). Returns the new stack count."""
    _check_kind(kind)
    new_value = max(0, getattr(statuses, kind) + int(amount))
    setattr(statuses, kind, new_value)
    return new_value


def decay(statuses: EnemyStatus, kind: str, amount: int = 1) -> int:
    return apply_status(statuses, kind, -amount)


def clear(statuses: EnemyStatus, kind: str):
    _check_kind(kind)
    setattr(statuses, kind, 0)


def tick_turn_start(statuses: EnemyStatus):
    """Vulnerable and weak fall off once per enemy turn, not per hit."""
    for kind in TURN_DECAY:
        decay(statuses, kind)


def tick_poison(statuses: EnemyStatus) -> int:
    """Returns the damage poison deals this tick, then decays it."""
    damage = statuses.poison
    if damage > 0:
        decay(statuses, "poison")
    return damage


def tick_burn(statuses: EnemyStatus) -> int:
    return statuses.burn


def tick_bleed(statuses: EnemyStatus) -> int:
    damage = statuses.bleed
    if damage > 0:
        decay(statuses, "bleed")
    return damage


def amplify_incoming(damage: int, statuses: EnemyStatus) -> int:
    """Damage the enemy takes after Vulnerable."""
    if statuses.vulnerable > 0:
        return int(damage * VULNERABLE_MULTIPLIER)
    return damage


def weaken_outgoing(damage: int, statuses: EnemyStatus) -> int:
    """Damage the enemy deals after Weak."""
    if statuses.weak > 0:
        return int(damage * WEAK_MULTIPLIER)
    return damage
