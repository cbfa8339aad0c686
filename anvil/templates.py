"""
Anvil — Content-driven effect templates

Generated cards carry their rule as a string instead of code:

    ai_effect:<TYPE>:<PHASE>:<value>:<percentage>:<condition>
    ai_effect:APPLY_WEAK:POST_DAMAGE:2:0:none   -> apply Weak 2 after damage

A template that cannot be parsed is ignored and the card behaves generically.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Callable, Optional

from anvil.effects import (
    CardEffect, EffectPhase, ResolutionContext,
    EXECUTE_THRESHOLD, GROWING_CRYSTAL_CAP,
)
from anvil.log import get_logger
from anvil.models import WeaponSlots

logger = get_logger(__name__)

PREFIX = "ai_effect"

TEMPLATE_TYPES = (
    "DAMAGE_BONUS", "DAMAGE_MULTIPLIER", "IGNORE_BLOCK",
    "APPLY_WEAK", "APPLY_VULNERABLE", "APPLY_POISON", "APPLY_BLEED", "APPLY_BURN", "APPLY_STUN",
    "LIFESTEAL", "GAIN_ENERGY", "GAIN_BLOCK", "DRAW_CARDS", "DRAW_NEXT_TURN", "DODGE_NEXT", "GAIN_GOLD",
    "SELF_DAMAGE", "LOSE_BLOCK", "OVERHEAT",
    "EXECUTE", "SKIP_INTENT", "CREATE_REPLICA", "GROW_CRYSTAL",
)

CONDITIONS: dict[str, Callable[[ResolutionContext], bool]] = {
    "hasDamage": lambda ctx: ctx.final_damage > 0,
    "lowCost": lambda ctx: ctx.weapon.total_cost <= 1,
    "hasSelfDamage": lambda ctx: ctx.player.self_damage_this_turn > 0,
    "hasEnergy": lambda ctx: ctx.energy_after_cost > 0,
    "lowHp": lambda ctx: ctx.player.hp < ctx.player.max_hp * 0.5,
}


def _to_int(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        return 0


@dataclass(frozen=True)
class EffectTemplate:
    type: str
    phase: EffectPhase
    value: int = 0
    percentage: int = 0
    condition: Optional[str] = None

    @classmethod
    def parse(cls, effect_id: Optional[str]) -> Optional[EffectTemplate]:
        if not effect_id or not effect_id.startswith(PREFIX + ":"):
            return None
        parts = effect_id.split(":")
        if len(parts) < 4:
            return None
        effect_type = parts[1]
        if effect_type not in TEMPLATE_TYPES:
            return None
        try:
            phase = EffectPhase(parts[2])
        except ValueError:
            return None
        condition = parts[5] if len(parts) > 5 and parts[5] not in ("", "none") else None
        return cls(
            type=effect_type,
            phase=phase,
            value=_to_int(parts[3]),
            percentage=_to_int(parts[4]) if len(parts) > 4 else 0,
            condition=condition,
        )

    def serialize(self) -> str:
        return ":".join([
            PREFIX,
            self.type,
            self.phase.value,
            str(self.value),
            str(self.percentage),
            self.condition or "none",
        ])

    def condition_met(self, ctx: ResolutionContext) -> bool:
        check = CONDITIONS.get(self.condition) if self.condition else None
        return check is None or check(ctx)

    def run(self, ctx: ResolutionContext, source: str):
        """Apply this template's action to the resolution in progress."""
        v = self.value
        t = self.type
        if t == "DAMAGE_BONUS":
            ctx.final_damage += v
        elif t == "DAMAGE_MULTIPLIER":
            ctx.final_damage = math.floor(ctx.final_damage * v / 100)
        elif t == "IGNORE_BLOCK":
            ctx.ignore_block = True
        elif t == "APPLY_WEAK":
            ctx.apply_status("weak", v, source)
        elif t == "APPLY_VULNERABLE":
            ctx.apply_status("vulnerable", v, source)
        elif t == "APPLY_POISON":
            ctx.apply_status("poison", v * ctx.effect_multiplier, source)
        elif t == "APPLY_BLEED":
            ctx.apply_status("bleed", v * ctx.effect_multiplier, source)
        elif t == "APPLY_BURN":
            ctx.apply_status("burn", v * ctx.effect_multiplier, source)
        elif t == "APPLY_STUN":
            ctx.apply_status("stunned", v, source)
        elif t == "LIFESTEAL":
            heal = math.floor(ctx.final_damage * self.percentage / 100)
            if heal > 0:
                ctx.heal(heal, source)
        elif t == "GAIN_ENERGY":
            ctx.gain_energy(v, source)
        elif t == "GAIN_BLOCK":
            ctx.gain_block(v, source)
        elif t == "DRAW_CARDS":
            ctx.draw_cards(v, source)
        elif t == "DRAW_NEXT_TURN":
            ctx.bank_draw(v, source)
        elif t == "DODGE_NEXT":
            ctx.set_dodge(source)
        elif t == "GAIN_GOLD":
            ctx.gain_gold(v, source)
        elif t == "SELF_DAMAGE":
            ctx.self_damage(v, source)
        elif t == "LOSE_BLOCK":
            ctx.reduce_block(v, source)
        elif t == "OVERHEAT":
            ctx.add_overheat(v, source)
        elif t == "EXECUTE":
            threshold = (self.percentage / 100) if self.percentage else EXECUTE_THRESHOLD
            if 0 < ctx.enemy.current_hp <= ctx.enemy.max_hp * threshold:
                ctx.execute_enemy(source)
        elif t == "SKIP_INTENT":
            ctx.skip_intent(source)
        elif t == "CREATE_REPLICA":
            ctx.create_replica(ctx.final_damage, source)
        elif t == "GROW_CRYSTAL":
            cap = self.percentage or GROWING_CRYSTAL_CAP
            if ctx.bonuses.growing_crystal_bonus < cap:
                ctx.grow_crystal(v, cap, source)

    @property
    def run_phase(self) -> EffectPhase:
        # Execute checks always wait until the resolution has settled
        return EffectPhase.DEFERRED if self.type == "EXECUTE" else self.phase


def template_effects(slots: WeaponSlots, phase: EffectPhase) -> list[CardEffect]:
    """CardEffects for every slotted card whose effect_id holds a template for phase."""
    found = []
    for slot in ("handle", "head", "deco"):
        card = slots.get(slot)
        if card is None or not card.effect_id:
            continue
        template = EffectTemplate.parse(card.effect_id)
        if template is None:
            logger.debug("effect_template_ignored", card_id=card.id, effect_id=card.effect_id)
            continue
        if template.run_phase != phase:
            continue
        name = card.name
        found.append(CardEffect(
            card_id=card.id,
            slot=slot,
            phase=phase,
            handler=lambda ctx, t=template, n=name: t.run(ctx, n),
            condition=template.condition_met,
            name=f"template:{template.type}",
        ))
    return found
