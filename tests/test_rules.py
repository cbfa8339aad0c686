"""
Anvil Rules Engine — Test Suite
Tests cover: win/loss detection, phase guards, draw, slot validation, discard, enemy turn hand-off.
Every test uses a seeded generator. Outcomes are verifiable.
"""

import pytest
import random
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from anvil.cards import build_starter_deck, create_card_instance
from anvil.deck import CardPiles
from anvil.exceptions import CombatStateError
from anvil.models import (
    CombatPhase, EnemyData, EnemyIntent, EnemyTier, IntentType, PlayerStats,
)
from anvil.rules import (
    HAND_SIZE, Combat, check_combat_end, combat_outcome,
    phase_enemy_turn, phase_player_discard, phase_player_draw, validate_slot_move,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def dummy_enemy(hp: int = 30, intents=None) -> EnemyData:
    return EnemyData("training_dummy", "Training Dummy", EnemyTier.COMMON, hp,
                     intents or [EnemyIntent(IntentType.WAIT, 0, "Stand still")])


def fresh_combat(player=None, enemy=None, deck=None) -> Combat:
    return Combat(
        player=player or PlayerStats(),
        enemy=enemy or dummy_enemy(),
        piles=CardPiles(deck if deck is not None else build_starter_deck()),
        rng=random.Random(4),
    )


# ---------------------------------------------------------------------------
# Test 1: Win / loss
# ---------------------------------------------------------------------------

def test_outcome_predicate():
    assert combat_outcome(PlayerStats(), dummy_enemy()) is None
    enemy = dummy_enemy()
    enemy.current_hp = 0
    assert combat_outcome(PlayerStats(), enemy) == CombatPhase.COMBAT_WON
    assert combat_outcome(PlayerStats(hp=0), dummy_enemy()) == CombatPhase.COMBAT_LOST


def test_loss_takes_priority():
    enemy = dummy_enemy()
    enemy.current_hp = 0
    assert combat_outcome(PlayerStats(hp=0), enemy) == CombatPhase.COMBAT_LOST


def test_check_combat_end_sets_terminal_phase_once():
    combat = fresh_combat()
    combat.enemy.current_hp = 0
    assert check_combat_end(combat)
    assert combat.state.phase == CombatPhase.COMBAT_WON
    assert check_combat_end(combat)
    assert [e.kind for e in combat.events].count("combat_end") == 1


# ---------------------------------------------------------------------------
# Test 2: Player draw
# ---------------------------------------------------------------------------

def test_draw_resets_turn_state():
    player = PlayerStats(energy=0, block=7, next_turn_draw=2, weapons_used_this_turn=3,
                         self_damage_this_turn=4)
    combat = fresh_combat(player)
    combat.enemy.damage_taken_this_turn = 9
    combat.bonuses.infinite_loop_used = True

    phase_player_draw(combat)

    assert combat.state.phase == CombatPhase.PLAYER_ACTION
    assert len(combat.piles.hand) == HAND_SIZE + 2
    assert player.energy == 3
    assert player.block == 0
    assert player.next_turn_draw == 0
    assert player.weapons_used_this_turn == 0
    assert player.self_damage_this_turn == 0
    assert combat.enemy.damage_taken_this_turn == 0
    assert not combat.bonuses.infinite_loop_used


def test_overheat_costs_energy_next_turn():
    player = PlayerStats(overheat=1)
    combat = fresh_combat(player)
    phase_player_draw(combat)
    assert player.energy == 2
    assert player.overheat == 0


def test_draw_with_tiny_deck_does_not_fail():
    combat = fresh_combat(deck=[create_card_instance(101)])
    phase_player_draw(combat)
    assert len(combat.piles.hand) == 1


def test_wrong_phase_raises():
    combat = fresh_combat()
    combat.state.phase = CombatPhase.ENEMY_TURN
    with pytest.raises(CombatStateError) as exc:
        phase_player_draw(combat)
    assert exc.value.details["phase"] == "ENEMY_TURN"


# ---------------------------------------------------------------------------
# Test 3: Slot validation
# ---------------------------------------------------------------------------

def test_slot_move_validation():
    combat = fresh_combat()
    handle, head, junk = create_card_instance(101), create_card_instance(103), create_card_instance(901)

    assert validate_slot_move(combat, handle, "handle") == (True, "")
    assert validate_slot_move(combat, head, "head") == (True, "")

    valid, error = validate_slot_move(combat, head, "handle")
    assert not valid and "cannot go in the handle slot" in error

    valid, error = validate_slot_move(combat, junk, "deco")
    assert not valid and "cannot be used" in error

    valid, error = validate_slot_move(combat, handle, "blade")
    assert not valid and "Unknown slot" in error

    valid, _ = validate_slot_move(combat, None, "handle")
    assert not valid


def test_disarmed_blocks_the_head_slot():
    combat = fresh_combat(PlayerStats(disarmed=True))
    valid, error = validate_slot_move(combat, create_card_instance(103), "head")
    assert not valid
    assert "Disarmed" in error
    assert validate_slot_move(combat, create_card_instance(101), "handle")[0]


# ---------------------------------------------------------------------------
# Test 4: Discard and enemy hand-off
# ---------------------------------------------------------------------------

def test_discard_clears_one_turn_restrictions():
    combat = fresh_combat(PlayerStats(cost_limit=2, disarmed=True))
    phase_player_draw(combat)
    combat.slots.put("handle", combat.piles.hand.pop())
    combat.state.phase = CombatPhase.PLAYER_DISCARD

    phase_player_discard(combat)

    assert combat.player.cost_limit is None
    assert not combat.player.disarmed
    assert combat.piles.hand == []
    assert combat.slots.cards() == []
    assert len(combat.piles.discard) == HAND_SIZE
    assert combat.state.phase == CombatPhase.ENEMY_TURN


def test_enemy_turn_advances_turn_counter():
    combat = fresh_combat()
    combat.state.phase = CombatPhase.ENEMY_TURN
    result = phase_enemy_turn(combat)
    assert result.turn == 1
    assert combat.state.turn == 2
    assert combat.state.phase == CombatPhase.PLAYER_DRAW


def test_enemy_turn_can_end_the_combat():
    enemy = dummy_enemy(intents=[EnemyIntent(IntentType.ATTACK, 60, "Crush")])
    combat = fresh_combat(enemy=enemy)
    combat.state.phase = CombatPhase.ENEMY_TURN
    phase_enemy_turn(combat)
    assert combat.state.phase == CombatPhase.COMBAT_LOST
    assert combat.state.turn == 1
    assert combat.player.hp == 0
