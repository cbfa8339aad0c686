"""
Anvil Enemy Turn — Test Suite
Status ticks, generic intents and the scripted enemies.
"""

import pytest
import random
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from anvil.cards import create_card_instance
from anvil.deck import CardPiles
from anvil.enemies import ENEMIES, create_enemy, fresh_enemy, pick_enemy, ENEMY_POOLS
from anvil.enemy_turn import resolve_enemy_turn
from anvil.exceptions import InvalidContentError
from anvil.models import EnemyData, EnemyIntent, EnemyTier, IntentType, PlayerStats


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def dummy_enemy(hp: int = 30) -> EnemyData:
    return EnemyData("training_dummy", "Training Dummy", EnemyTier.COMMON, hp,
                     [EnemyIntent(IntentType.WAIT, 0, "Stand still"),
                      EnemyIntent(IntentType.WAIT, 0, "Stand still")])


def enemy_at(enemy_id: str, intent_index: int = 0) -> EnemyData:
    enemy = create_enemy(enemy_id)
    enemy.current_intent_index = intent_index
    return enemy


def run_turn(enemy, player=None, piles=None, seed=11):
    player = player if player is not None else PlayerStats()
    piles = piles if piles is not None else CardPiles()
    return resolve_enemy_turn(player, enemy, piles, random.Random(seed)), player, piles


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------

def test_create_enemy_is_a_fresh_copy():
    a = create_enemy("rust_slime")
    a.current_hp = 1
    a.statuses.poison = 3
    b = create_enemy("rust_slime")
    assert b.current_hp == 30
    assert b.statuses.poison == 0
    assert ENEMIES["rust_slime"].current_hp == 30


def test_unknown_enemy_rejected():
    with pytest.raises(InvalidContentError):
        create_enemy("dragon_of_nowhere")


def test_invalid_record_rejected():
    broken = EnemyData("broken", "Broken", EnemyTier.COMMON, 10, [])
    with pytest.raises(InvalidContentError):
        fresh_enemy(broken)


def test_pick_enemy_from_pool():
    enemy = pick_enemy(2, EnemyTier.ELITE, random.Random(3))
    assert enemy.id in ENEMY_POOLS[2][EnemyTier.ELITE]


# ---------------------------------------------------------------------------
# Status ticks
# ---------------------------------------------------------------------------

def test_stun_skips_the_whole_turn():
    enemy = enemy_at("skeleton_warrior")
    enemy.statuses.stunned = 1
    result, player, _ = run_turn(enemy)
    assert result.stunned
    assert enemy.statuses.stunned == 0
    assert enemy.current_intent_index == 0
    assert player.hp == 50
    assert result.intent is None


def test_poison_decays_burn_does_not():
    enemy = dummy_enemy(30)
    enemy.statuses.poison = 3
    enemy.statuses.burn = 3
    result, _, _ = run_turn(enemy)
    assert enemy.statuses.poison == 2
    assert enemy.statuses.burn == 3
    assert enemy.current_hp == 24
    assert result.dot_damage == 6


def test_death_by_poison_stops_the_turn():
    enemy = dummy_enemy(2)
    enemy.statuses.poison = 3
    result, _, _ = run_turn(enemy)
    assert enemy.current_hp == 0
    assert result.enemy_defeated
    assert result.intent is None
    assert enemy.current_intent_index == 0


def test_block_resets_each_enemy_turn():
    enemy = dummy_enemy()
    enemy.block = 9
    run_turn(enemy)
    assert enemy.block == 0


# ---------------------------------------------------------------------------
# Generic attack
# ---------------------------------------------------------------------------

def test_attack_consumes_attempted_damage_from_block():
    enemy = enemy_at("skeleton_warrior")
    result, player, _ = run_turn(enemy, PlayerStats(block=2))
    assert player.hp == 46
    assert player.block == 0
    assert result.damage_to_player == 4
    assert enemy.current_intent_index == 1


def test_weak_softens_attack():
    enemy = enemy_at("skeleton_warrior")
    enemy.statuses.weak = 2   # one stack falls off at turn start
    _, player, _ = run_turn(enemy)
    assert player.hp == 46
    assert enemy.statuses.weak == 1


def test_strength_is_spent_on_the_attack():
    enemy = enemy_at("skeleton_warrior")
    enemy.statuses.strength = 3
    _, player, _ = run_turn(enemy)
    assert player.hp == 41
    assert enemy.statuses.strength == 0


def test_bleed_ticks_per_hit():
    enemy = enemy_at("chimera_engine")
    enemy.statuses.bleed = 2
    result, player, _ = run_turn(enemy)
    assert enemy.current_hp == 177
    assert enemy.statuses.bleed == 0
    assert player.hp == 35
    assert result.dot_damage == 3


def test_dodge_skips_one_hit():
    enemy = enemy_at("chimera_engine")
    _, player, _ = run_turn(enemy, PlayerStats(dodge_next_attack=True))
    assert player.hp == 40
    assert not player.dodge_next_attack


def test_thievery_steals_gold():
    result, player, _ = run_turn(enemy_at("loot_goblin"), PlayerStats(gold=12))
    assert player.gold == 7
    assert any(e.kind == "gold_stolen" for e in result.events)


def test_lethal_attack():
    result, player, _ = run_turn(enemy_at("skeleton_warrior"), PlayerStats(hp=3))
    assert player.hp == 0
    assert result.player_defeated


# ---------------------------------------------------------------------------
# Generic defend / buff / debuff
# ---------------------------------------------------------------------------

def test_defend_gains_block_and_advances():
    enemy = enemy_at("skeleton_warrior", 1)
    run_turn(enemy)
    assert enemy.block == 5
    assert enemy.current_intent_index == 2


def test_heal_buff_caps_at_max():
    enemy = enemy_at("rust_slime", 2)
    enemy.current_hp = 20
    run_turn(enemy)
    assert enemy.current_hp == 24

    enemy = enemy_at("rust_slime", 2)
    enemy.current_hp = 29
    run_turn(enemy)
    assert enemy.current_hp == 30


def test_strength_buff_rolls_for_kobold():
    enemy = enemy_at("kobold_scrapper", 2)
    run_turn(enemy)
    assert 1 <= enemy.statuses.strength <= 3
    assert enemy.current_hp == 45


def test_strength_buff_fixed_for_assassin():
    enemy = enemy_at("shadow_assassin", 2)
    run_turn(enemy)
    assert enemy.statuses.strength == 5


def test_debuff_adds_junk_to_discard():
    _, _, piles = run_turn(enemy_at("rust_slime", 1))
    assert [c.id for c in piles.discard] == [901]

    _, _, piles = run_turn(enemy_at("junk_king", 1))
    assert [c.id for c in piles.discard] == [901, 901, 901]


# ---------------------------------------------------------------------------
# Scripted enemies
# ---------------------------------------------------------------------------

def test_hammerhead_raises_a_handle_cost():
    handle, head = create_card_instance(101), create_card_instance(103)
    piles = CardPiles([handle, head])
    run_turn(enemy_at("hammerhead", 1), piles=piles)
    assert handle.cost == 2
    assert head.cost == 1
    assert piles.discard == []


def test_hammerhead_without_handles_does_nothing():
    enemy = enemy_at("hammerhead", 1)
    _, player, piles = run_turn(enemy, piles=CardPiles([create_card_instance(103)]))
    assert player.hp == 50
    assert piles.discard == []
    assert enemy.current_intent_index == 0


def test_deus_sets_cost_limit():
    _, player, piles = run_turn(enemy_at("deus_ex_machina", 2))
    assert player.cost_limit == 2
    assert piles.discard == []


def test_deus_untagged_debuff_adds_no_junk():
    enemy = enemy_at("deus_ex_machina")
    enemy.intents = [EnemyIntent(IntentType.DEBUFF, 2, "Glitch")]
    _, player, piles = run_turn(enemy)
    assert piles.discard == []
    assert player.cost_limit is None


def test_corrupted_smith_disarms():
    _, player, _ = run_turn(enemy_at("corrupted_smith", 1))
    assert player.disarmed
    assert player.hp == 50


def test_mimic_reflects_damage_taken():
    enemy = enemy_at("mimic_anvil", 1)
    enemy.damage_taken_this_turn = 12
    _, player, _ = run_turn(enemy)
    assert player.hp == 38


def test_mimic_harden_is_generic_defend():
    enemy = enemy_at("mimic_anvil", 0)
    run_turn(enemy)
    assert enemy.block == 20
