"""
Anvil — Card Effect Registry

Every card-specific rule is a registered effect:

    @card_effect(318, "handle", EffectPhase.SELF_DAMAGE)
    def blood_handle(ctx: ResolutionContext) -> None:
        ctx.self_damage(4, source="Blood Handle")

The resolver walks the phases in order and runs the effects whose card is in
the matching slot. Within a phase, effects run in registration order, so the
order of this file is part of the rules.
"""

from __future__ import annotations
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from anvil.cards import REPLICA_CARD_ID, create_card_instance
from anvil.deck import CardPiles
from anvil.models import (
    CardInstance, CombatEvent, CraftedWeapon, EnemyData, IntentType,
    PlayerStats, Rarity, SessionBonuses, WeaponSlots,
)
from anvil.status import apply_status as add_status_stacks

GROWING_CRYSTAL_STEP = 2
GROWING_CRYSTAL_CAP = 16
EXECUTE_THRESHOLD = 0.2


class EffectPhase(Enum):
    PRE_DAMAGE = "PRE_DAMAGE"
    SELF_DAMAGE = "SELF_DAMAGE"
    BONUS = "BONUS"
    FINAL_MULTIPLIER = "FINAL_MULTIPLIER"
    ON_HIT = "ON_HIT"
    POST_DAMAGE = "POST_DAMAGE"
    DEFERRED = "DEFERRED"


# ---------------------------------------------------------------------------
# Resolution context
# ---------------------------------------------------------------------------

@dataclass
class ResolutionContext:
    """
    Everything one craft resolution reads and writes. Effects change state
    only through the helper methods, which clamp values and record events.
    """
    player: PlayerStats
    enemy: EnemyData
    slots: WeaponSlots
    weapon: CraftedWeapon
    piles: CardPiles
    bonuses: SessionBonuses
    rng: random.Random
    turn: int = 1
    event_offset: int = 0

    # Running modifiers
    final_damage: int = 0
    final_block: int = 0
    ignore_block: bool = False
    effect_multiplier: int = 1
    energy_after_cost: float = 0

    # Tracking
    events: list[CombatEvent] = field(default_factory=list)
    damage_dealt: int = 0
    hits: int = 0
    block_gained: int = 0
    cards_drawn: list[CardInstance] = field(default_factory=list)
    cards_created: list[CardInstance] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def emit(self, kind: str, source: str, target: str, amount: int = 0, detail: str = "") -> CombatEvent:
        event = CombatEvent(
            order=self.event_offset + len(self.events) + 1,
            turn=self.turn,
            kind=kind,
            source=source,
            target=target,
            amount=amount,
            detail=detail,
        )
        self.events.append(event)
        return event

    # ------------------------------------------------------------------
    # Slot access
    # ------------------------------------------------------------------

    def slot_id(self, slot: str) -> int:
        return self.slots.card_id(slot)

    def has_rare_slotted(self) -> bool:
        return any(c.rarity == Rarity.RARE for c in self.slots.cards())

    @property
    def base_value(self) -> float:
        head, deco = self.slots.head, self.slots.deco
        return (head.value if head else 0) + (deco.value if deco else 0)

    # ------------------------------------------------------------------
    # Player mutations
    # ------------------------------------------------------------------

    def self_damage(self, amount: int, source: str):
        """HP loss the player inflicts on themself. Feeds Berserker Rune."""
        amount = max(0, int(amount))
        self.player.hp = max(0, self.player.hp - amount)
        self.player.self_damage_this_turn += amount
        self.emit("self_damage", source, "player", amount)

    def lose_hp(self, amount: int, source: str):
        """HP loss from outside sources (thorns, block shortfall)."""
        amount = max(0, int(amount))
        self.player.hp = max(0, self.player.hp - amount)
        self.emit("hp_loss", source, "player", amount)

    def heal(self, amount: int, source: str):
        before = self.player.hp
        self.player.hp = min(self.player.max_hp, self.player.hp + max(0, int(amount)))
        self.emit("heal", source, "player", self.player.hp - before)

    def gain_energy(self, amount: float, source: str):
        before = self.player.energy
        self.player.energy = min(self.player.max_energy, self.player.energy + amount)
        self.emit("energy", source, "player", int(self.player.energy - before))

    def gain_block(self, amount: int, source: str):
        amount = max(0, int(amount))
        self.player.block += amount
        self.block_gained += amount
        self.emit("block", source, "player", amount)

    def reduce_block(self, amount: int, source: str):
        """Block goes first; whatever block cannot cover comes off HP."""
        remaining = self.player.block - int(amount)
        if remaining < 0:
            self.player.block = 0
            self.emit("block_loss", source, "player", int(amount) + remaining)
            self.lose_hp(-remaining, source)
        else:
            self.player.block = remaining
            self.emit("block_loss", source, "player", int(amount))

    def gain_gold(self, amount: int, source: str):
        self.player.gold += max(0, int(amount))
        self.emit("gold", source, "player", amount)

    def bank_draw(self, amount: int, source: str):
        self.player.next_turn_draw += amount
        self.emit("next_turn_draw", source, "player", amount)

    def add_overheat(self, amount: int, source: str):
        self.player.overheat += amount
        self.emit("overheat", source, "player", amount)

    def set_dodge(self, source: str):
        self.player.dodge_next_attack = True
        self.emit("dodge_ready", source, "player")

    def draw_cards(self, count: int, source: str):
        drawn = self.piles.draw(count, self.rng)
        self.cards_drawn.extend(drawn)
        self.emit("draw", source, "player", len(drawn))

    # ------------------------------------------------------------------
    # Enemy mutations
    # ------------------------------------------------------------------

    def apply_status(self, kind: str, amount: int, source: str):
        add_status_stacks(self.enemy.statuses, kind, amount)
        self.emit("status", source, self.enemy.name, amount, detail=kind)

    def skip_intent(self, source: str):
        self.enemy.advance_intent()
        self.emit("skip_intent", source, self.enemy.name, detail=self.enemy.current_intent.description)

    def execute_enemy(self, source: str):
        amount = self.enemy.current_hp
        self.enemy.current_hp = 0
        self.emit("execute", source, self.enemy.name, amount)

    def empower_enemy_attacks(self, amount: int, source: str):
        for intent in self.enemy.intents:
            if intent.type == IntentType.ATTACK:
                intent.value += amount
        self.emit("enemy_empowered", source, self.enemy.name, amount)

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def create_replica(self, damage: int, source: str):
        replica = create_card_instance(REPLICA_CARD_ID)
        replica.value = damage
        replica.cost = 0
        replica.description = f"A duplicated weapon. Deals {damage}. Costs 0."
        self.piles.push_top(replica)
        self.cards_created.append(replica)
        self.emit("replica", source, "player", damage)

    def grow_crystal(self, amount: int, cap: int, source: str):
        before = self.bonuses.growing_crystal_bonus
        self.bonuses.growing_crystal_bonus = min(cap, before + amount)
        self.emit("crystal", source, "player", self.bonuses.growing_crystal_bonus - before,
                  detail=f"bonus={self.bonuses.growing_crystal_bonus}")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

Handler = Callable[[ResolutionContext], None]
Condition = Callable[[ResolutionContext], bool]


@dataclass(frozen=True)
class CardEffect:
    card_id: int
    slot: str
    phase: EffectPhase
    handler: Handler
    condition: Optional[Condition] = None
    name: str = ""

    def applies(self, ctx: ResolutionContext) -> bool:
        return self.condition is None or self.condition(ctx)

    def run(self, ctx: ResolutionContext):
        if self.applies(ctx):
            self.handler(ctx)


_EFFECTS: list[CardEffect] = []


def card_effect(card_id: int, slot: str, phase: EffectPhase, when: Optional[Condition] = None):
    """Register the decorated function as card_id's effect in slot during phase."""
    def decorator(func: Handler) -> Handler:
        _EFFECTS.append(CardEffect(card_id, slot, phase, func, when, func.__name__))
        return func
    return decorator


def registered_effects(slots: WeaponSlots, phase: EffectPhase) -> list[CardEffect]:
    """Effects for the cards currently in their slots, in registration order."""
    return [e for e in _EFFECTS if e.phase == phase and slots.card_id(e.slot) == e.card_id]


def registered_card_ids() -> set[int]:
    return {e.card_id for e in _EFFECTS}


def _name(ctx: ResolutionContext, slot: str) -> str:
    card = ctx.slots.get(slot)
    return card.name if card else slot


# ---------------------------------------------------------------------------
# PRE_DAMAGE
# ---------------------------------------------------------------------------

@card_effect(309, "handle", EffectPhase.PRE_DAMAGE)
def gamblers_handle(ctx):
    roll = ctx.rng.randint(1, 3)
    ctx.emit("roll", _name(ctx, "handle"), "player", roll)
    # The roll replaces the forged damage outright
    ctx.final_damage = math.floor(ctx.base_value * roll)


@card_effect(211, "deco", EffectPhase.PRE_DAMAGE, when=lambda ctx: ctx.energy_after_cost > 0)
def capacitor(ctx):
    bonus = int(4 * ctx.energy_after_cost)
    ctx.final_damage += bonus
    ctx.emit("damage_bonus", _name(ctx, "deco"), "weapon", bonus)


@card_effect(317, "handle", EffectPhase.PRE_DAMAGE)
def piercing_handle(ctx):
    ctx.ignore_block = True
    ctx.emit("ignore_block", _name(ctx, "handle"), "weapon")


# ---------------------------------------------------------------------------
# SELF_DAMAGE
# ---------------------------------------------------------------------------

@card_effect(318, "handle", EffectPhase.SELF_DAMAGE)
def blood_handle(ctx):
    ctx.self_damage(4, _name(ctx, "handle"))


@card_effect(314, "head", EffectPhase.SELF_DAMAGE)
def frenzy_blade(ctx):
    ctx.self_damage(4, _name(ctx, "head"))


# ---------------------------------------------------------------------------
# BONUS / FINAL_MULTIPLIER
# ---------------------------------------------------------------------------

@card_effect(320, "deco", EffectPhase.BONUS, when=lambda ctx: ctx.player.self_damage_this_turn > 0)
def berserker_rune(ctx):
    bonus = ctx.player.self_damage_this_turn
    ctx.final_damage += bonus
    ctx.emit("damage_bonus", _name(ctx, "deco"), "weapon", bonus)


@card_effect(413, "deco", EffectPhase.FINAL_MULTIPLIER)
def dragon_sigil(ctx):
    ctx.final_damage *= 2
    ctx.emit("damage_multiplier", _name(ctx, "deco"), "weapon", 2)


# ---------------------------------------------------------------------------
# ON_HIT (once per hit that reached enemy HP)
# ---------------------------------------------------------------------------

@card_effect(307, "handle", EffectPhase.ON_HIT)
def midas_touch(ctx):
    ctx.gain_gold(5, _name(ctx, "handle"))


# ---------------------------------------------------------------------------
# POST_DAMAGE
# ---------------------------------------------------------------------------

def _weaken(ctx, slot):
    ctx.apply_status("weak", 1, _name(ctx, slot))


@card_effect(201, "handle", EffectPhase.POST_DAMAGE)
def swift_dagger_hilt(ctx):
    _weaken(ctx, "handle")


@card_effect(214, "head", EffectPhase.POST_DAMAGE)
def blunt_club(ctx):
    _weaken(ctx, "head")


@card_effect(219, "deco", EffectPhase.POST_DAMAGE)
def weakening_sigil(ctx):
    _weaken(ctx, "deco")


@card_effect(206, "handle", EffectPhase.POST_DAMAGE)
def bone_handle(ctx):
    ctx.apply_status("vulnerable", 2, _name(ctx, "handle"))


@card_effect(208, "deco", EffectPhase.POST_DAMAGE)
def charged_gem(ctx):
    ctx.gain_energy(1, _name(ctx, "deco"))


@card_effect(313, "head", EffectPhase.POST_DAMAGE)
def mana_blade(ctx):
    ctx.gain_energy(1, _name(ctx, "head"))


@card_effect(404, "head", EffectPhase.POST_DAMAGE)
def meteor_shard(ctx):
    ctx.self_damage(6, _name(ctx, "head"))


@card_effect(203, "head", EffectPhase.POST_DAMAGE, when=lambda ctx: ctx.weapon.damage > 0)
def serrated_blade(ctx):
    ctx.apply_status("bleed", 3 * ctx.effect_multiplier, _name(ctx, "head"))


@card_effect(312, "head", EffectPhase.POST_DAMAGE)
def lava_blade(ctx):
    ctx.apply_status("burn", 4 * ctx.effect_multiplier, _name(ctx, "head"))


@card_effect(303, "head", EffectPhase.POST_DAMAGE)
def flamethrower(ctx):
    ctx.apply_status("burn", 3 * ctx.effect_multiplier, _name(ctx, "head"))


@card_effect(319, "deco", EffectPhase.POST_DAMAGE)
def blood_whetstone(ctx):
    ctx.apply_status("bleed", 2 * ctx.effect_multiplier, _name(ctx, "deco"))


@card_effect(205, "deco", EffectPhase.POST_DAMAGE)
def poisoned_rag(ctx):
    ctx.apply_status("poison", 4, _name(ctx, "deco"))


@card_effect(302, "handle", EffectPhase.POST_DAMAGE, when=lambda ctx: ctx.final_damage > 0)
def vampiric_vine(ctx):
    ctx.heal(math.floor(ctx.final_damage * 0.5), _name(ctx, "handle"))


@card_effect(304, "head", EffectPhase.POST_DAMAGE)
def heavy_warhammer(ctx):
    ctx.reduce_block(5 * ctx.effect_multiplier, _name(ctx, "head"))


@card_effect(401, "handle", EffectPhase.POST_DAMAGE, when=lambda ctx: ctx.final_damage > 0)
def giants_grip(ctx):
    ctx.apply_status("stunned", 1, _name(ctx, "handle"))


@card_effect(408, "head", EffectPhase.POST_DAMAGE)
def frost_blade(ctx):
    ctx.apply_status("stunned", 1, _name(ctx, "head"))


@card_effect(204, "deco", EffectPhase.POST_DAMAGE)
def light_feather(ctx):
    ctx.bank_draw(1, _name(ctx, "deco"))


@card_effect(106, "deco", EffectPhase.POST_DAMAGE)
def quill(ctx):
    ctx.bank_draw(1, _name(ctx, "deco"))


@card_effect(215, "head", EffectPhase.POST_DAMAGE)
def agile_blade(ctx):
    ctx.bank_draw(1, _name(ctx, "head"))


@card_effect(305, "deco", EffectPhase.POST_DAMAGE)
def mirror_of_duplication(ctx):
    ctx.create_replica(ctx.final_damage, _name(ctx, "deco"))


@card_effect(212, "handle", EffectPhase.POST_DAMAGE, when=lambda ctx: ctx.weapon.total_cost <= 1)
def quick_grip(ctx):
    ctx.draw_cards(1, _name(ctx, "handle"))


@card_effect(308, "head", EffectPhase.POST_DAMAGE)
def furnace_core(ctx):
    ctx.add_overheat(1, _name(ctx, "head"))


@card_effect(412, "handle", EffectPhase.POST_DAMAGE)
def evasion_handle(ctx):
    ctx.set_dodge(_name(ctx, "handle"))


@card_effect(406, "head", EffectPhase.POST_DAMAGE)
def time_cog(ctx):
    source = _name(ctx, "head")
    ctx.apply_status("stunned", 1, source)
    ctx.skip_intent(source)


@card_effect(407, "deco", EffectPhase.POST_DAMAGE,
             when=lambda ctx: ctx.bonuses.growing_crystal_bonus < GROWING_CRYSTAL_CAP)
def growing_crystal(ctx):
    ctx.grow_crystal(GROWING_CRYSTAL_STEP, GROWING_CRYSTAL_CAP, _name(ctx, "deco"))


# ---------------------------------------------------------------------------
# DEFERRED (after everything else in the resolution has settled)
# ---------------------------------------------------------------------------

def _below_execute_threshold(ctx) -> bool:
    enemy = ctx.enemy
    return 0 < enemy.current_hp <= enemy.max_hp * EXECUTE_THRESHOLD


@card_effect(409, "head", EffectPhase.DEFERRED, when=_below_execute_threshold)
def executioners_blade(ctx):
    ctx.execute_enemy(_name(ctx, "head"))
