"""Tests for the card catalog and card instances"""
import pytest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from anvil.cards import (
    CARD_CATALOG, CARD_REGISTRY, STARTER_DECK_IDS,
    build_starter_deck, create_card_instance, get_card_definition,
    instance_from_record, validate_card_definition,
)
from anvil.effects import registered_card_ids
from anvil.exceptions import CardNotFoundError, InvalidContentError
from anvil.models import CardDefinition, CardType, Rarity


def test_lookup_known_card():
    card = get_card_definition(103)
    assert card.name == "Rusty Iron Blade"
    assert card.card_type == CardType.HEAD
    assert card.value == 6
    assert card.slot == "head"


def test_lookup_missing_card_fails_loudly():
    with pytest.raises(CardNotFoundError) as exc:
        get_card_definition(999)
    assert exc.value.card_id == 999
    assert "999" in str(exc.value)


def test_missing_card_is_also_a_key_error():
    with pytest.raises(KeyError):
        create_card_instance(12345)


def test_instances_share_definition_but_not_identity():
    a = create_card_instance(202)
    b = create_card_instance(202)
    assert a.definition == b.definition
    assert a.instance_id != b.instance_id
    assert (a.cost, a.value, a.description) == (b.cost, b.value, b.description)


def test_instance_fields_are_independent():
    a = create_card_instance(101)
    b = create_card_instance(101)
    a.cost += 1
    assert b.cost == 1
    assert get_card_definition(101).cost == 1


def test_starter_deck():
    deck = build_starter_deck()
    assert [c.id for c in deck] == STARTER_DECK_IDS
    assert len({c.instance_id for c in deck}) == len(deck)


def test_catalog_ids_are_unique():
    assert len(CARD_REGISTRY) == len(CARD_CATALOG)


def test_every_catalog_card_is_valid():
    for card in CARD_CATALOG:
        valid, error = validate_card_definition(card)
        assert valid, error


def test_every_registered_effect_has_a_card():
    assert registered_card_ids() <= set(CARD_REGISTRY)


def test_junk_is_unplayable():
    junk = get_card_definition(901)
    assert junk.card_type == CardType.JUNK
    assert junk.unplayable
    assert junk.slot is None


# ---------------------------------------------------------------------------
# Records from outside the catalog
# ---------------------------------------------------------------------------

def test_generated_record_becomes_instance():
    record = CardDefinition(5001, "Glass Edge", CardType.HEAD, 1, 7, Rarity.COMMON, "Deal 7")
    card = instance_from_record(record)
    assert card.value == 7
    assert card.name == "Glass Edge"


def test_negative_cost_record_rejected():
    record = CardDefinition(5002, "Debt Blade", CardType.HEAD, -1, 7, Rarity.COMMON, "")
    valid, error = validate_card_definition(record)
    assert not valid
    assert "negative cost" in error
    with pytest.raises(InvalidContentError):
        instance_from_record(record)


def test_playable_junk_record_rejected():
    record = CardDefinition(5003, "Shiny Rust", CardType.JUNK, 1, 0, Rarity.JUNK, "")
    valid, error = validate_card_definition(record)
    assert not valid
    assert "unplayable" in error
