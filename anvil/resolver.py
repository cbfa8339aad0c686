"""
Anvil — Effect Resolver
Turns a forged weapon into state changes. Check first, then commit: a craft
that fails validation touches nothing, a craft that passes runs every step
even if the enemy dies halfway.

Order of a committed craft:
    1. pay energy                     5. FINAL_MULTIPLIER effects
    2. PRE_DAMAGE effects             6. hit loop (ON_HIT effects per hit)
    3. SELF_DAMAGE effects            7. block
    4. BONUS effects                  8. POST_DAMAGE, then DEFERRED effects
                                      9. slotted cards leave the anvil
"""

from __future__ import annotations
import random

from anvil.deck import CardPiles
from anvil.effects import CardEffect, EffectPhase, ResolutionContext, registered_effects
from anvil.log import get_logger
from anvil.models import (
    CombatEvent, CraftedWeapon, EnemyData, EnemyTrait, PlayerStats,
    ResolutionOutcome, SessionBonuses, WeaponSlots,
)
from anvil.status import amplify_incoming
from anvil.templates import template_effects

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TWIN_HANDLE = 301           # Doubles hits and stack-granting effects
VOID_CRYSTAL = 402          # Exhausts after use
INFINITE_LOOP = 405         # Returns to hand once per turn
DAMAGE_CAP = 15
THORNS_DAMAGE = 5
REACTIVE_RARE_BONUS = 2


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_craft(
    slots: WeaponSlots,
    player: PlayerStats,
    weapon: CraftedWeapon,
) -> tuple[bool, str]:
    """
    Check whether the weapon in the slots may be forged right now.
    Returns (valid, error_message)
    """
    if not slots.is_complete():
        return False, "A weapon needs both a handle and a head"
    if player.cost_limit is not None and weapon.total_cost > player.cost_limit:
        return False, f"Overloaded! Only weapons costing {player.cost_limit} or less can be forged"
    if weapon.total_cost > player.energy:
        return False, f"Not enough energy (need {weapon.total_cost}, have {player.energy})"
    return True, ""


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def effects_for(slots: WeaponSlots, phase: EffectPhase) -> list[CardEffect]:
    return registered_effects(slots, phase) + template_effects(slots, phase)


def _run_phase(ctx: ResolutionContext, phase: EffectPhase):
    for effect in effects_for(ctx.slots, phase):
        effect.run(ctx)


def resolve(
    slots: WeaponSlots,
    weapon: CraftedWeapon,
    player: PlayerStats,
    enemy: EnemyData,
    piles: CardPiles,
    bonuses: SessionBonuses,
    rng: random.Random,
    turn: int = 1,
    event_offset: int = 0,
) -> ResolutionOutcome:
    """
    Forge the weapon in slots against enemy. weapon is the forge() prediction
    for exactly these slots. On rejection nothing is mutated.
    """
    valid, error = validate_craft(slots, player, weapon)
    if not valid:
        logger.info("craft_rejected", reason=error, cost=weapon.total_cost, energy=player.energy)
        event = CombatEvent(event_offset + 1, turn, "rejected", "player", "anvil", detail=error)
        return ResolutionOutcome(accepted=False, reason=error, weapon=weapon, events=[event])

    handle_id = slots.card_id("handle")
    ctx = ResolutionContext(
        player=player,
        enemy=enemy,
        slots=slots,
        weapon=weapon,
        piles=piles,
        bonuses=bonuses,
        rng=rng,
        turn=turn,
        event_offset=event_offset,
        final_damage=weapon.damage,
        final_block=weapon.block,
        effect_multiplier=2 if handle_id == TWIN_HANDLE else 1,
    )

    # 1. Commit cost
    player.energy -= weapon.total_cost
    player.weapons_used_this_turn += 1
    ctx.energy_after_cost = player.energy
    ctx.emit("forge", "player", "anvil", int(weapon.total_cost),
             detail=" + ".join(c.name for c in slots.cards()))

    # 2-5. Modifiers
    for phase in (EffectPhase.PRE_DAMAGE, EffectPhase.SELF_DAMAGE,
                  EffectPhase.BONUS, EffectPhase.FINAL_MULTIPLIER):
        _run_phase(ctx, phase)

    # 6. Hits
    if ctx.final_damage > 0:
        loops = weapon.hit_count * (2 if handle_id == TWIN_HANDLE else 1)
        for _ in range(loops):
            _resolve_hit(ctx)

    # 7. Block
    if ctx.final_block > 0:
        ctx.gain_block(ctx.final_block, "weapon")

    # 8. Post-damage effects, then the settled-state pass
    _run_phase(ctx, EffectPhase.POST_DAMAGE)
    _run_phase(ctx, EffectPhase.DEFERRED)

    # 9. Card lifecycle
    _dispose_slotted_cards(ctx)

    logger.debug(
        "craft_resolved",
        damage=ctx.damage_dealt,
        hits=ctx.hits,
        block=ctx.block_gained,
        enemy_hp=enemy.current_hp,
        player_hp=player.hp,
    )
    return ResolutionOutcome(
        accepted=True,
        weapon=weapon,
        damage_dealt=ctx.damage_dealt,
        hits=ctx.hits,
        block_gained=ctx.block_gained,
        cards_drawn=ctx.cards_drawn,
        cards_created=ctx.cards_created,
        events=ctx.events,
        enemy_defeated=enemy.is_dead,
        player_defeated=player.is_dead,
    )


def _resolve_hit(ctx: ResolutionContext):
    enemy = ctx.enemy
    damage = amplify_incoming(ctx.final_damage, enemy.statuses)

    if enemy.has_trait(EnemyTrait.DAMAGE_CAP_15) and damage > DAMAGE_CAP:
        damage = DAMAGE_CAP
        ctx.emit("damage_capped", enemy.name, "weapon", DAMAGE_CAP)

    if enemy.has_trait(EnemyTrait.THORNS_5):
        ctx.lose_hp(THORNS_DAMAGE, enemy.name)

    if enemy.has_trait(EnemyTrait.REACTIVE_RARE) and ctx.has_rare_slotted():
        ctx.empower_enemy_attacks(REACTIVE_RARE_BONUS, enemy.name)

    if not ctx.ignore_block and enemy.block > 0:
        absorbed = min(enemy.block, damage)
        enemy.block -= absorbed
        damage -= absorbed
        ctx.emit("blocked", "weapon", enemy.name, absorbed)

    if damage > 0:
        before = enemy.current_hp
        enemy.current_hp = max(0, enemy.current_hp - damage)
        dealt = before - enemy.current_hp
        enemy.damage_taken_this_turn += dealt
        ctx.damage_dealt += dealt
        ctx.hits += 1
        ctx.emit("damage", "weapon", enemy.name, dealt)
        _run_phase(ctx, EffectPhase.ON_HIT)


def _dispose_slotted_cards(ctx: ResolutionContext):
    slots, piles, bonuses = ctx.slots, ctx.piles, ctx.bonuses
    used = []
    for card in slots.clear():
        if card.id == VOID_CRYSTAL:
            piles.exhaust(card)
            ctx.emit("exhaust", card.name, "player")
        elif card.id == INFINITE_LOOP and not bonuses.infinite_loop_used:
            bonuses.infinite_loop_used = True
            piles.hand.append(card)
            ctx.emit("return_to_hand", card.name, "player")
        else:
            used.append(card)
    piles.add_to_discard(used)
