"""
Anvil — Enemy Turn Resolver

    1. enemy block resets
    2. vulnerable / weak tick down
    3. stunned? lose one stun, do nothing else, keep the same intent
    4. poison ticks (and decays)      5. burn ticks (never decays)
    6. dead from damage over time? stop
    7. the current intent resolves (scripted behaviour first, then generic)
    8. the intent queue advances

The turn counter belongs to the state machine, see rules.phase_enemy_turn.
"""

from __future__ import annotations
import random
from dataclasses import dataclass, field

from anvil import status
from anvil.cards import JUNK_CARD_ID, create_card_instance
from anvil.deck import CardPiles
from anvil.enemies import behavior_for
from anvil.log import get_logger
from anvil.models import (
    CombatEvent, EnemyData, EnemyIntent, EnemyTrait, EnemyTurnResult, IntentType, PlayerStats,
)

logger = get_logger(__name__)

THIEVERY_AMOUNT = 5


@dataclass
class EnemyTurnContext:
    player: PlayerStats
    enemy: EnemyData
    piles: CardPiles
    rng: random.Random
    turn: int = 1
    event_offset: int = 0
    events: list[CombatEvent] = field(default_factory=list)
    damage_to_player: int = 0
    dot_damage: int = 0

    def emit(self, kind: str, source: str, target: str, amount: int = 0, detail: str = "") -> CombatEvent:
        event = CombatEvent(self.event_offset + len(self.events) + 1, self.turn, kind, source, target, amount, detail)
        self.events.append(event)
        return event

    def damage_enemy(self, amount: int, kind: str):
        """Damage over time. Ignores block."""
        before = self.enemy.current_hp
        self.enemy.current_hp = max(0, before - amount)
        dealt = before - self.enemy.current_hp
        self.dot_damage += dealt
        self.emit(kind, kind, self.enemy.name, dealt)

    def attack(self, intent: EnemyIntent, base_damage: int):
        """
        Resolve an attack of base_damage: strength is added (and spent),
        weak shrinks it, and every hit first makes the enemy bleed.
        """
        enemy, player = self.enemy, self.player
        damage = base_damage + enemy.statuses.strength
        damage = status.weaken_outgoing(damage, enemy.statuses)

        for _ in range(intent.attack_count):
            bleed = status.tick_bleed(enemy.statuses)
            if bleed > 0:
                self.damage_enemy(bleed, "bleed")
            if enemy.is_dead or player.is_dead:
                break

            if player.dodge_next_attack:
                player.dodge_next_attack = False
                self.emit("dodge", "player", enemy.name)
                continue

            unblocked = max(0, damage - player.block)
            player.block = max(0, player.block - damage)
            player.hp = max(0, player.hp - unblocked)
            self.damage_to_player += unblocked
            self.emit("enemy_attack", enemy.name, "player", unblocked, detail=f"attempted={damage}")

            if enemy.has_trait(EnemyTrait.THIEVERY) and unblocked > 0:
                stolen = min(player.gold, THIEVERY_AMOUNT)
                if stolen > 0:
                    player.gold -= stolen
                    self.emit("gold_stolen", enemy.name, "player", stolen)

        status.clear(enemy.statuses, "strength")


def resolve_enemy_turn(
    player: PlayerStats,
    enemy: EnemyData,
    piles: CardPiles,
    rng: random.Random,
    turn: int = 1,
    event_offset: int = 0,
) -> EnemyTurnResult:
    ctx = EnemyTurnContext(player, enemy, piles, rng, turn, event_offset)
    result = EnemyTurnResult(turn=turn, intent=None)

    enemy.block = 0
    status.tick_turn_start(enemy.statuses)

    if enemy.statuses.stunned > 0:
        status.decay(enemy.statuses, "stunned")
        ctx.emit("stunned", enemy.name, enemy.name, detail=enemy.current_intent.description)
        logger.debug("enemy_stunned", enemy=enemy.id, remaining=enemy.statuses.stunned)
        result.stunned = True
        return _finish(ctx, result)

    poison = status.tick_poison(enemy.statuses)
    if poison > 0:
        ctx.damage_enemy(poison, "poison")
    burn = status.tick_burn(enemy.statuses)
    if burn > 0:
        ctx.damage_enemy(burn, "burn")
    if enemy.is_dead:
        return _finish(ctx, result)

    intent = enemy.current_intent
    result.intent = intent
    ctx.emit("intent", enemy.name, "player", intent.value, detail=f"{intent.type.value}: {intent.description}")

    behavior = behavior_for(enemy)
    if not behavior.take_intent(ctx, intent):
        _resolve_generic(ctx, intent, behavior)

    # A kill during the enemy's own attack (bleed) ends the combat before the queue moves
    if enemy.is_dead:
        return _finish(ctx, result)

    enemy.advance_intent()
    logger.debug("enemy_intent_resolved", enemy=enemy.id, intent=intent.type.value,
                 next_intent=enemy.current_intent_index)
    return _finish(ctx, result)


def _resolve_generic(ctx: EnemyTurnContext, intent: EnemyIntent, behavior):
    enemy = ctx.enemy
    if intent.type == IntentType.ATTACK:
        ctx.attack(intent, intent.value)
    elif intent.type == IntentType.DEFEND:
        enemy.block += intent.value
        ctx.emit("enemy_block", enemy.name, enemy.name, intent.value)
    elif intent.type == IntentType.BUFF:
        if intent.has_tag("strength"):
            gain = behavior.strength_gain(ctx, intent)
            status.apply_status(enemy.statuses, "strength", gain)
            ctx.emit("status", enemy.name, enemy.name, gain, detail="strength")
        else:
            before = enemy.current_hp
            enemy.current_hp = min(enemy.max_hp, enemy.current_hp + intent.value)
            ctx.emit("enemy_heal", enemy.name, enemy.name, enemy.current_hp - before)
    elif intent.type == IntentType.DEBUFF:
        count = intent.value or 1
        junk = [create_card_instance(JUNK_CARD_ID) for _ in range(count)]
        ctx.piles.add_to_discard(junk)
        ctx.emit("junk_added", enemy.name, "player", count)
    # WAIT and unscripted SPECIAL intents do nothing


def _finish(ctx: EnemyTurnContext, result: EnemyTurnResult) -> EnemyTurnResult:
    result.damage_to_player = ctx.damage_to_player
    result.dot_damage = ctx.dot_damage
    result.events = ctx.events
    result.enemy_defeated = ctx.enemy.is_dead
    result.player_defeated = ctx.player.is_dead
    return result
