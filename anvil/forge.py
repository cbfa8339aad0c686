"""
Anvil — Weapon Forge
Predicts what the weapon in the three slots will do. Side-effect free, so the
UI can call it on every slot change.

    damage = floor((head + deco) * handle)
"""

from __future__ import annotations
import math

from anvil.models import CraftedWeapon, EnemyData, PlayerStats, SessionBonuses, WeaponSlots


# ---------------------------------------------------------------------------
# Card ids with forge-time behaviour
# ---------------------------------------------------------------------------

GAMBLERS_HANDLE = 309
GAMBLER_PREVIEW_MULTIPLIER = 2     # Resolution rolls 1-3; the preview shows the middle
PHILOSOPHERS_STONE = 403
SPIKED_SHIELD = 207
DEFENSIVE_HANDLE = 102
DEFENSIVE_HEAD = 104
TWIN_FANGS = 306
COGWHEEL = 209
THORN_SIGIL = 210
POISON_NEEDLE = 213
COMBO_STRIKE = 310
STEEL_PLATING = 311
TIME_COG = 406
GROWING_CRYSTAL = 407


def forge(
    slots: WeaponSlots,
    player: PlayerStats,
    enemy: EnemyData,
    bonuses: SessionBonuses,
) -> CraftedWeapon:
    handle, head, deco = slots.handle, slots.head, slots.deco
    if handle is None or head is None:
        return CraftedWeapon()

    total_cost = handle.cost + head.cost + (deco.cost if deco else 0)
    base_value = head.value + (deco.value if deco else 0)

    handle_multiplier = handle.value
    if handle.id == GAMBLERS_HANDLE:
        handle_multiplier = GAMBLER_PREVIEW_MULTIPLIER

    final_value = math.floor(base_value * handle_multiplier)

    if deco is not None and deco.id == PHILOSOPHERS_STONE:
        total_cost = 0

    damage = final_value
    block = 0
    hit_count = 1

    if head.id == SPIKED_SHIELD:
        damage = player.block

    # Defensive components turn the weapon's value into block
    if handle.id == DEFENSIVE_HANDLE or head.id == DEFENSIVE_HEAD:
        block = final_value
        if head.id != SPIKED_SHIELD:
            damage = 0

    if head.id == TWIN_FANGS:
        hit_count = 2

    # Additive modifiers, fixed order
    deco_id = deco.id if deco else 0
    if head.id == COGWHEEL:
        damage += enemy.statuses.bleed
    if deco_id == THORN_SIGIL:
        damage += math.floor(player.block * 0.5)
    if head.id == POISON_NEEDLE:
        damage += enemy.statuses.poison
    if head.id == COMBO_STRIKE:
        damage += 2 * player.weapons_used_this_turn
    if deco_id == STEEL_PLATING and block > 0:
        block *= 2
    if head.id == TIME_COG:
        damage = 0
    if deco_id == GROWING_CRYSTAL:
        damage += bonuses.growing_crystal_bonus

    return CraftedWeapon(
        total_cost=total_cost,
        damage=max(0, int(damage)),
        block=max(0, int(block)),
        hit_count=hit_count,
    )

