"""
Anvil Forge — Test Suite
The forge is a pure prediction: same slots, same state, same weapon.
"""

import copy
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from anvil.cards import create_card_instance
from anvil.forge import forge
from anvil.models import (
    EnemyData, EnemyIntent, EnemyTier, IntentType, PlayerStats, SessionBonuses, WeaponSlots,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_slots(handle=None, head=None, deco=None) -> WeaponSlots:
    return WeaponSlots(
        handle=create_card_instance(handle) if handle else None,
        head=create_card_instance(head) if head else None,
        deco=create_card_instance(deco) if deco else None,
    )


def dummy_enemy(hp: int = 30) -> EnemyData:
    return EnemyData("training_dummy", "Training Dummy", EnemyTier.COMMON, hp,
                     [EnemyIntent(IntentType.WAIT, 0, "Stand still")])


def predict(slots, player=None, enemy=None, bonuses=None):
    return forge(slots, player or PlayerStats(), enemy or dummy_enemy(), bonuses or SessionBonuses())


# ---------------------------------------------------------------------------
# Base formula
# ---------------------------------------------------------------------------

def test_basic_weapon():
    weapon = predict(make_slots(101, 103))
    assert weapon.total_cost == 2
    assert weapon.damage == 6
    assert weapon.block == 0
    assert weapon.hit_count == 1


def test_deco_adds_before_multiplier():
    assert predict(make_slots(101, 103, 105)).damage == 9
    assert predict(make_slots(301, 103, 105)).damage == 18


def test_fractional_handle_floors():
    weapon = predict(make_slots(218, 202))
    assert weapon.total_cost == 1.5
    assert weapon.damage == 6


def test_incomplete_weapon_is_empty():
    for slots in (make_slots(101), make_slots(head=103), make_slots(deco=105)):
        weapon = predict(slots)
        assert (weapon.total_cost, weapon.damage, weapon.block) == (0, 0, 0)


def test_prediction_has_no_side_effects():
    slots = make_slots(309, 103, 407)
    player, enemy, bonuses = PlayerStats(block=4), dummy_enemy(), SessionBonuses(growing_crystal_bonus=2)
    before = copy.deepcopy((player, enemy, bonuses))
    first = predict(slots, player, enemy, bonuses)
    second = predict(slots, player, enemy, bonuses)
    assert first == second
    assert (player, enemy, bonuses) == before


# ---------------------------------------------------------------------------
# Card overrides
# ---------------------------------------------------------------------------

def test_gamblers_handle_previews_double():
    assert predict(make_slots(309, 103)).damage == 12


def test_philosophers_stone_zeroes_cost():
    weapon = predict(make_slots(401, 402, 403))
    assert weapon.total_cost == 0
    assert weapon.damage == 90


def test_defensive_handle_converts_to_block():
    weapon = predict(make_slots(102, 103))
    assert weapon.block == 6
    assert weapon.damage == 0


def test_defensive_head_converts_to_block():
    weapon = predict(make_slots(102, 104))
    assert weapon.block == 5
    assert weapon.damage == 0
    weapon = predict(make_slots(101, 104))
    assert weapon.block == 5
    assert weapon.damage == 0


def test_spiked_shield_hits_for_current_block():
    assert predict(make_slots(101, 207), PlayerStats(block=7)).damage == 7
    # A defensive handle keeps the shield's damage
    weapon = predict(make_slots(102, 207), PlayerStats(block=7))
    assert weapon.damage == 7
    assert weapon.block == 0


def test_twin_fangs_two_hits():
    assert predict(make_slots(101, 306)).hit_count == 2


def test_status_scaling_heads():
    enemy = dummy_enemy()
    enemy.statuses.bleed = 3
    enemy.statuses.poison = 4
    assert predict(make_slots(101, 209), enemy=enemy).damage == 8
    assert predict(make_slots(101, 213), enemy=enemy).damage == 7


def test_thorn_sigil_uses_half_block():
    assert predict(make_slots(101, 103, 210), PlayerStats(block=7)).damage == 9


def test_combo_strike_counts_weapons_used():
    assert predict(make_slots(101, 310), PlayerStats(weapons_used_this_turn=2)).damage == 8


def test_steel_plating_doubles_block_only():
    assert predict(make_slots(102, 104, 311)).block == 10
    weapon = predict(make_slots(101, 103, 311))
    assert weapon.block == 0
    assert weapon.damage == 6


def test_time_cog_deals_nothing():
    assert predict(make_slots(401, 406)).damage == 0


def test_growing_crystal_reads_current_bonus():
    assert predict(make_slots(101, 103, 407), bonuses=SessionBonuses(growing_crystal_bonus=4)).damage == 10
