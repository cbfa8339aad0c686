"""
Anvil — Enemy Roster
Enemy templates per act, plus the few enemies that script their own intents.
create_enemy() always hands out a fresh copy; templates are never fought.
"""

from __future__ import annotations
import copy
import random
from typing import TYPE_CHECKING

from anvil.exceptions import InvalidContentError
from anvil.models import (
    CardType, EnemyData, EnemyIntent, EnemyStatus, EnemyTier, EnemyTrait, IntentType,
)

if TYPE_CHECKING:
    from anvil.enemy_turn import EnemyTurnContext

A, DF, B, DB, S = IntentType.ATTACK, IntentType.DEFEND, IntentType.BUFF, IntentType.DEBUFF, IntentType.SPECIAL
STRENGTH = frozenset({"strength"})
REFLECT = frozenset({"reflect"})
COST_LIMIT = frozenset({"cost_limit"})

COST_LIMIT_VALUE = 2


def _enemy(enemy_id, name, tier, hp, intents, traits=()):
    return EnemyData(id=enemy_id, name=name, tier=tier, max_hp=hp, intents=intents, traits=list(traits))


ENEMIES: dict[str, EnemyData] = {e.id: e for e in [

    # ── ACT 1: The Scrapyard ──────────────────────────────────────────────
    _enemy("rust_slime", "Rust Slime", EnemyTier.COMMON, 30, [
        EnemyIntent(A, 6, "Body slam"),
        EnemyIntent(DB, 1, "Adds a [Rust Lump] to your deck"),
        EnemyIntent(B, 4, "Ooze back together (heal 4)"),
    ]),
    _enemy("kobold_scrapper", "Kobold Scrapper", EnemyTier.COMMON, 45, [
        EnemyIntent(A, 5, "Scratch"),
        EnemyIntent(A, 5, "Scratch"),
        EnemyIntent(B, 0, "Rummage through the bag (attack +1 to 3)", tags=STRENGTH),
    ], traits=[EnemyTrait.REACTIVE_RARE]),
    _enemy("skeleton_warrior", "Skeleton Warrior", EnemyTier.COMMON, 32, [
        EnemyIntent(A, 6, "Old sword"),
        EnemyIntent(DF, 5, "Defensive stance"),
        EnemyIntent(A, 8, "Heavy slash"),
    ]),
    _enemy("rock_crusher", "Rock Crusher", EnemyTier.ELITE, 80, [
        EnemyIntent(A, 12, "Crushing blow"),
        EnemyIntent(DF, 15, "Hide in stone"),
        EnemyIntent(A, 8, "Quake"),
    ], traits=[EnemyTrait.DAMAGE_CAP_15]),
    _enemy("junk_king", "Junk King", EnemyTier.BOSS, 150, [
        EnemyIntent(A, 10, "Magnet punch"),
        EnemyIntent(DB, 3, "Adds 3 [Rust Lump] to your deck"),
        EnemyIntent(A, 15, "Scrap toss"),
    ]),

    # ── ACT 2: The Molten Forge ───────────────────────────────────────────
    _enemy("ember_wisp", "Ember Wisp", EnemyTier.COMMON, 50, [
        EnemyIntent(A, 4, "Ember"),
        EnemyIntent(A, 4, "Ember"),
        EnemyIntent(A, 4, "Ember"),
    ]),
    _enemy("hammerhead", "Hammerhead Goblin", EnemyTier.COMMON, 65, [
        EnemyIntent(A, 12, "Overhead smash"),
        EnemyIntent(DB, 0, "A random handle costs 1 more"),
    ]),
    _enemy("loot_goblin", "Loot Goblin", EnemyTier.COMMON, 55, [
        EnemyIntent(A, 5, "Pickpocket (steals gold)"),
        EnemyIntent(DB, 0, "Throw sand (adds a [Rust Lump])"),
        EnemyIntent(DF, 10, "Ready to flee"),
    ], traits=[EnemyTrait.THIEVERY]),
    _enemy("mimic_anvil", "Mimic Anvil", EnemyTier.ELITE, 100, [
        EnemyIntent(DF, 20, "Harden"),
        EnemyIntent(A, 0, "Reflect damage taken", tags=REFLECT),
    ]),
    _enemy("corrupted_smith", "Corrupted Smith", EnemyTier.BOSS, 250, [
        EnemyIntent(A, 20, "Red-hot hammer"),
        EnemyIntent(S, 0, "Breaks your weapon next turn"),
        EnemyIntent(A, 30, "Extinction"),
    ]),

    # ── ACT 3: Clockwork Sanctuary ────────────────────────────────────────
    _enemy("automaton_defender", "Automaton Defender", EnemyTier.COMMON, 80, [
        EnemyIntent(DF, 15, "Deploy shield"),
        EnemyIntent(A, 10, "Shield bash"),
        EnemyIntent(B, 15, "Emergency repairs (heal 15)"),
    ], traits=[EnemyTrait.THORNS_5]),
    _enemy("shadow_assassin", "Shadow Assassin", EnemyTier.ELITE, 120, [
        EnemyIntent(A, 25, "Vital strike"),
        EnemyIntent(DF, 30, "Hide in shadow"),
        EnemyIntent(B, 5, "Sharpen blades (attack +5)", tags=STRENGTH),
    ]),
    _enemy("chimera_engine", "Chimera Engine", EnemyTier.ELITE, 180, [
        EnemyIntent(A, 5, "Machine gun (x3)", hits=3),
        EnemyIntent(A, 5, "Machine gun (x3)", hits=3),
        EnemyIntent(A, 5, "Machine gun (x3)", hits=3),
    ]),
    _enemy("deus_ex_machina", "Deus Ex Machina", EnemyTier.BOSS, 500, [
        EnemyIntent(A, 10, "Imitation of creation"),
        EnemyIntent(A, 15, "Imitation of creation"),
        EnemyIntent(DB, 0, "Cost limit (MAX 2)", tags=COST_LIMIT),
        EnemyIntent(A, 50, "Final judgement"),
    ]),
]}

ENEMY_POOLS: dict[int, dict[EnemyTier, list[str]]] = {
    1: {
        EnemyTier.COMMON: ["rust_slime", "kobold_scrapper", "skeleton_warrior"],
        EnemyTier.ELITE: ["rock_crusher"],
        EnemyTier.BOSS: ["junk_king"],
    },
    2: {
        EnemyTier.COMMON: ["ember_wisp", "hammerhead", "loot_goblin"],
        EnemyTier.ELITE: ["mimic_anvil"],
        EnemyTier.BOSS: ["corrupted_smith"],
    },
    3: {
        EnemyTier.COMMON: ["automaton_defender", "skeleton_warrior"],
        EnemyTier.ELITE: ["chimera_engine", "shadow_assassin"],
        EnemyTier.BOSS: ["deus_ex_machina"],
    },
}


def validate_enemy_data(enemy: EnemyData) -> tuple[bool, str]:
    """Returns (valid, error_message)"""
    if not enemy.id:
        return False, "Enemy has no id"
    if not isinstance(enemy.tier, EnemyTier):
        return False, f"Enemy {enemy.id} has unknown tier {enemy.tier!r}"
    if enemy.max_hp <= 0:
        return False, f"Enemy {enemy.id} must have positive max HP"
    if not (0 <= enemy.current_hp <= enemy.max_hp):
        return False, f"Enemy {enemy.id} HP {enemy.current_hp} outside 0..{enemy.max_hp}"
    if not enemy.intents:
        return False, f"Enemy {enemy.id} has no intents"
    for intent in enemy.intents:
        if not isinstance(intent.type, IntentType):
            return False, f"Enemy {enemy.id} has unknown intent type {intent.type!r}"
        if intent.value < 0 or intent.hits < 1:
            return False, f"Enemy {enemy.id} intent '{intent.description}' has invalid values"
    if any(not isinstance(t, EnemyTrait) for t in enemy.traits):
        return False, f"Enemy {enemy.id} has an unknown trait"
    return True, ""


def fresh_enemy(template: EnemyData) -> EnemyData:
    """A combat-ready copy: full HP, no block, no statuses, first intent."""
    valid, error = validate_enemy_data(template)
    if not valid:
        raise InvalidContentError(error, details={"enemy_id": template.id})
    enemy = copy.deepcopy(template)
    enemy.current_hp = enemy.max_hp
    enemy.block = 0
    enemy.current_intent_index = 0
    enemy.damage_taken_this_turn = 0
    enemy.statuses = EnemyStatus()
    return enemy


def create_enemy(enemy_id: str) -> EnemyData:
    try:
        template = ENEMIES[enemy_id]
    except KeyError:
        raise InvalidContentError(f"Unknown enemy {enemy_id!r}", details={"enemy_id": enemy_id}) from None
    return fresh_enemy(template)


def pick_enemy(act: int, tier: EnemyTier, rng: random.Random) -> EnemyData:
    pool = ENEMY_POOLS.get(act, ENEMY_POOLS[1])[tier]
    return create_enemy(rng.choice(pool))


# ---------------------------------------------------------------------------
# Scripted behaviours
# ---------------------------------------------------------------------------

class EnemyBehavior:
    """Generic enemy. Subclasses override the hooks the enemy turn calls."""

    def take_intent(self, ctx: EnemyTurnContext, intent: EnemyIntent) -> bool:
        """Handle intent entirely. Return False to fall through to generic handling."""
        return False

    def strength_gain(self, ctx: EnemyTurnContext, intent: EnemyIntent) -> int:
        return intent.value


_BEHAVIORS: dict[str, EnemyBehavior] = {}
_DEFAULT = EnemyBehavior()


def enemy_behavior(enemy_id: str):
    def decorator(cls):
        _BEHAVIORS[enemy_id] = cls()
        return cls
    return decorator


def behavior_for(enemy: EnemyData) -> EnemyBehavior:
    return _BEHAVIORS.get(enemy.id, _DEFAULT)


@enemy_behavior("hammerhead")
class Hammerhead(EnemyBehavior):
    """Its debuff makes a random handle in deck or discard permanently dearer."""

    def take_intent(self, ctx, intent):
        if intent.type != IntentType.DEBUFF:
            return False
        handles = [c for c in ctx.piles.deck_and_discard() if c.card_type == CardType.HANDLE]
        if handles:
            target = ctx.rng.choice(handles)
            target.cost += 1
            ctx.emit("card_cost_up", ctx.enemy.name, target.name, 1)
        return True


@enemy_behavior("deus_ex_machina")
class DeusExMachina(EnemyBehavior):
    """Its debuffs never add Junk; only the tagged one caps weapon cost."""

    def take_intent(self, ctx, intent):
        if intent.type != IntentType.DEBUFF:
            return False
        if not intent.has_tag("cost_limit"):
            return True
        ctx.player.cost_limit = COST_LIMIT_VALUE
        ctx.emit("cost_limit", ctx.enemy.name, "player", COST_LIMIT_VALUE)
        return True


@enemy_behavior("corrupted_smith")
class CorruptedSmith(EnemyBehavior):

    def take_intent(self, ctx, intent):
        if intent.type != IntentType.SPECIAL:
            return False
        ctx.player.disarmed = True
        ctx.emit("disarm", ctx.enemy.name, "player")
        return True


@enemy_behavior("mimic_anvil")
class MimicAnvil(EnemyBehavior):
    """Hits back with everything it took during the player's turn."""

    def take_intent(self, ctx, intent):
        if not intent.has_tag("reflect"):
            return False
        ctx.attack(intent, base_damage=ctx.enemy.damage_taken_this_turn)
        return True


@enemy_behavior("kobold_scrapper")
class KoboldScrapper(EnemyBehavior):

    def strength_gain(self, ctx, intent):
        return ctx.rng.randint(1, 3)
