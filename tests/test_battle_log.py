"""Tests for the battle log and the narrator"""
import json
import pytest
import sys
import os
from types import SimpleNamespace
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from anvil.battle_log import summarize, to_narrator_payload
from anvil.models import (
    CombatEvent, CombatPhase, EnemyData, EnemyIntent, EnemyTier, IntentType, PlayerStats,
)
from anvil.narrator import NarrationError, narrate_turn, parse_narration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def sample_events():
    return [
        CombatEvent(1, 2, "draw", "rules", "player", 5),
        CombatEvent(2, 2, "forge", "player", "anvil", 2, "Worn Wooden Handle + Rusty Iron Blade"),
        CombatEvent(3, 2, "damage", "weapon", "Rust Slime", 6),
        CombatEvent(4, 2, "self_damage", "Blood Handle", "player", 4),
        CombatEvent(5, 2, "block", "weapon", "player", 5),
        CombatEvent(6, 2, "poison", "poison", "Rust Slime", 3),
        CombatEvent(7, 2, "enemy_attack", "Rust Slime", "player", 2, "attempted=6"),
    ]


def sample_enemy():
    enemy = EnemyData("rust_slime", "Rust Slime", EnemyTier.COMMON, 30,
                      [EnemyIntent(IntentType.ATTACK, 6, "Body slam")])
    enemy.current_hp = 21
    enemy.statuses.poison = 2
    return enemy


VALID_NARRATION = json.dumps({
    "narration": "Sparks fly as the blade bites.",
    "title": "First Blood at the Anvil",
    "key_moment": "The rusty blade finds its mark.",
    "tone": "tense",
})


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeClient:
    def __init__(self, content):
        self.chat = SimpleNamespace(completions=FakeCompletions(content))


# ---------------------------------------------------------------------------
# Battle log
# ---------------------------------------------------------------------------

def test_payload_shape():
    payload = to_narrator_payload(sample_events(), PlayerStats(hp=44), sample_enemy(), turn=2)
    assert payload["turn"] == 2
    assert payload["player"]["hp"] == 44
    assert payload["enemy"]["hp"] == 21
    assert payload["enemy"]["statuses"] == {"poison": 2}
    assert payload["enemy"]["next_intent"] == "Body slam"
    assert payload["combat_outcome"] is None


def test_bookkeeping_events_are_filtered():
    payload = to_narrator_payload(sample_events(), PlayerStats(), sample_enemy(), turn=2)
    kinds = [e["kind"] for e in payload["combat_events"]]
    assert "draw" not in kinds
    assert kinds[0] == "forge"
    assert [e["order"] for e in payload["combat_events"]] == [2, 3, 4, 5, 6, 7]


def test_player_is_named():
    payload = to_narrator_payload(sample_events(), PlayerStats(), sample_enemy(), turn=2,
                                  player_name="Brenna")
    attack = payload["combat_events"][-1]
    assert attack["target"] == "Brenna"
    assert attack["detail"] == "attempted=6"


def test_outcome_label():
    enemy = sample_enemy()
    enemy.current_hp = 0
    payload = to_narrator_payload([], PlayerStats(), enemy, turn=4, outcome=CombatPhase.COMBAT_WON)
    assert payload["combat_outcome"] == "The Smith defeated Rust Slime"
    assert payload["enemy"]["next_intent"] is None


def test_summary_totals():
    summary = summarize(sample_events())
    assert summary == {
        "weapons_forged": 1,
        "damage_to_enemy": 9,
        "damage_to_player": 6,
        "block_gained": 5,
        "healed": 0,
    }


# ---------------------------------------------------------------------------
# Narrator
# ---------------------------------------------------------------------------

def test_parse_clean_json():
    narration = parse_narration(VALID_NARRATION, {"turn": 1})
    assert narration.title == "First Blood at the Anvil"
    assert narration.raw_payload == {"turn": 1}


def test_parse_json_wrapped_in_fences():
    narration = parse_narration(f"```json\n{VALID_NARRATION}\n```", {})
    assert narration.tone == "tense"


def test_parse_rejects_prose():
    with pytest.raises(NarrationError):
        parse_narration("The smith swings. Nothing else to say.", {})


def test_parse_rejects_missing_fields():
    with pytest.raises(NarrationError) as exc:
        parse_narration(json.dumps({"narration": "x", "title": "y"}), {})
    assert exc.value.details["missing"] == ["key_moment", "tone"]


def test_narrate_turn_with_injected_client():
    client = FakeClient(VALID_NARRATION)
    payload = to_narrator_payload(sample_events(), PlayerStats(), sample_enemy(), turn=2)
    narration = narrate_turn(payload, model="test-model", client=client)

    assert narration.key_moment == "The rusty blade finds its mark."
    call = client.chat.completions.calls[0]
    assert call["model"] == "test-model"
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"][0]["role"] == "system"
    assert "Rust Slime" in call["messages"][1]["content"]
