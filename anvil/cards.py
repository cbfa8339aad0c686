"""
Anvil — Card Catalog
Every card the forge knows about. Definitions are immutable templates;
combat only ever touches CardInstance copies.
"""

from __future__ import annotations
from anvil.exceptions import CardNotFoundError, InvalidContentError
from anvil.models import CardDefinition, CardInstance, CardType, Rarity

H, D, X, J = CardType.HANDLE, CardType.HEAD, CardType.DECO, CardType.JUNK

CARD_CATALOG: list[CardDefinition] = [

    # ── STARTER ───────────────────────────────────────────────────────────
    CardDefinition(101, "Worn Wooden Handle", H, 1, 1, Rarity.STARTER, "Basic attack"),
    CardDefinition(102, "Parrying Guard", H, 1, 1, Rarity.STARTER,
                   "[Defense] Converts the head's power into block"),
    CardDefinition(103, "Rusty Iron Blade", D, 1, 6, Rarity.STARTER, "Deal 6"),
    CardDefinition(104, "Pot Lid", D, 1, 5, Rarity.STARTER, "Block 5 (defensive head)"),
    CardDefinition(105, "Rough Whetstone", X, 0, 3, Rarity.STARTER, "+3 damage"),
    CardDefinition(106, "Quill", X, 0, 0, Rarity.STARTER, "Draw 1 extra card next turn"),

    # ── COMMON ────────────────────────────────────────────────────────────
    CardDefinition(201, "Swift Dagger Hilt", H, 0, 1, Rarity.COMMON, "Cost 0. Apply Weak 1"),
    CardDefinition(202, "Steel Longsword", D, 1, 9, Rarity.COMMON, "Deal 9"),
    CardDefinition(203, "Serrated Blade", D, 1, 3, Rarity.COMMON,
                   "Deal 3, apply Bleed 3 (hurts the enemy when it attacks)"),
    CardDefinition(204, "Light Feather", X, 0, 0, Rarity.COMMON, "Draw 1 extra card next turn"),
    CardDefinition(205, "Poisoned Rag", X, 1, 0, Rarity.COMMON, "Apply Poison 4"),
    CardDefinition(206, "Bone Handle", H, 1, 1, Rarity.COMMON,
                   "Apply Vulnerable 2 (takes 50% more damage)"),
    CardDefinition(207, "Spiked Shield", D, 1, 0, Rarity.COMMON, "Deals damage equal to your block"),
    CardDefinition(208, "Charged Gem", X, 0, 0, Rarity.COMMON, "Restore 1 energy"),
    CardDefinition(209, "Cogwheel", D, 1, 5, Rarity.COMMON, "Deal 5, +1 per enemy Bleed"),
    CardDefinition(210, "Thorn Sigil", X, 1, 0, Rarity.COMMON, "+50% of your block as damage"),
    CardDefinition(211, "Capacitor", X, 0, 0, Rarity.COMMON, "+4 damage per energy left after forging"),
    CardDefinition(212, "Quick Grip", H, 0, 1, Rarity.COMMON, "Draw 1 if the weapon costs 1 or less"),
    CardDefinition(213, "Poison Needle", D, 1, 3, Rarity.COMMON, "Deal 3, +1 per enemy Poison"),
    CardDefinition(214, "Blunt Club", D, 1, 8, Rarity.COMMON, "Deal 8, apply Weak 1"),
    CardDefinition(215, "Agile Blade", D, 1, 6, Rarity.COMMON, "Deal 6, draw 1 extra card next turn"),
    CardDefinition(218, "Lightweight Handle", H, 0.5, 0.75, Rarity.COMMON, "Cost 0.5. x0.75 damage"),
    CardDefinition(219, "Weakening Sigil", X, 1, 0, Rarity.COMMON, "Apply Weak 1"),

    # ── RARE ──────────────────────────────────────────────────────────────
    CardDefinition(301, "Twin Handle", H, 2, 2, Rarity.RARE, "Head strikes twice, status effects doubled"),
    CardDefinition(302, "Vampiric Vine", H, 2, 1, Rarity.RARE, "Heal 50% of damage dealt"),
    CardDefinition(303, "Flamethrower", D, 2, 6, Rarity.RARE, "Deal 6, apply Burn 3"),
    CardDefinition(304, "Heavy Warhammer", D, 2, 18, Rarity.RARE,
                   "Deal 18. Lose 5 block (HP if not enough)"),
    CardDefinition(305, "Mirror of Duplication", X, 2, 0, Rarity.RARE,
                   "Copy the finished weapon onto the top of your deck (cost 0)"),
    CardDefinition(306, "Twin Fangs", D, 1, 4, Rarity.RARE, "Deal 4 twice"),
    CardDefinition(307, "Midas Touch", H, 1, 1, Rarity.RARE, "Gain 5 gold per hit"),
    CardDefinition(308, "Furnace Core", D, 2, 15, Rarity.RARE, "Deal 15. Overheat 1"),
    CardDefinition(309, "Gambler's Handle", H, 1, 2, Rarity.RARE, "x1 to x3 damage, rolled on forge"),
    CardDefinition(310, "Combo Strike", D, 1, 4, Rarity.RARE, "Deal 4, +2 per weapon used this turn"),
    CardDefinition(311, "Steel Plating", X, 1, 0, Rarity.RARE, "Double the weapon's block"),
    CardDefinition(312, "Lava Blade", D, 2, 10, Rarity.RARE, "Deal 10, apply Burn 4"),
    CardDefinition(313, "Mana Blade", D, 1, 4, Rarity.RARE, "Deal 4, restore 1 energy"),
    CardDefinition(314, "Frenzy Blade", D, 1, 12, Rarity.RARE, "Deal 12, take 4 damage"),
    CardDefinition(317, "Piercing Handle", H, 1, 1, Rarity.RARE, "Ignore enemy block"),
    CardDefinition(318, "Blood Handle", H, 1, 1, Rarity.RARE, "Take 4 damage"),
    CardDefinition(319, "Blood Whetstone", X, 1, 2, Rarity.RARE, "+2 damage, apply Bleed 2"),
    CardDefinition(320, "Berserker Rune", X, 1, 0, Rarity.RARE,
                   "+damage equal to self-damage taken this turn"),

    # ── LEGEND ────────────────────────────────────────────────────────────
    CardDefinition(401, "Giant's Grip", H, 3, 3, Rarity.LEGEND, "x3 damage. Stun"),
    CardDefinition(402, "Void Crystal", D, 3, 30, Rarity.LEGEND, "Deal 30. Exhaust"),
    CardDefinition(403, "Philosopher's Stone", X, 0, 0, Rarity.LEGEND, "Weapon costs 0"),
    CardDefinition(404, "Meteor Shard", D, 2, 40, Rarity.LEGEND, "Deal 40. Take 6 damage"),
    CardDefinition(405, "Infinite Loop", H, 1, 1, Rarity.LEGEND, "Returns to hand once per turn"),
    CardDefinition(406, "Time Cog", D, 2, 0, Rarity.LEGEND, "Stun and skip the enemy's next intent"),
    CardDefinition(407, "Growing Crystal", X, 1, 0, Rarity.LEGEND, "+2 damage each forge this combat (max 16)"),
    CardDefinition(408, "Frost Blade", D, 2, 8, Rarity.LEGEND, "Deal 8. Stun"),
    CardDefinition(409, "Executioner's Blade", D, 2, 5, Rarity.LEGEND,
                   "Deal 5. Execute enemies at 20% HP or less"),
    CardDefinition(412, "Evasion Handle", H, 1, 1, Rarity.LEGEND, "Dodge the next enemy attack"),
    CardDefinition(413, "Dragon Sigil", X, 2, 0, Rarity.LEGEND, "Double the final damage"),

    # ── SPECIAL / GENERATED ───────────────────────────────────────────────
    CardDefinition(801, "Shadow Weapon", D, 0, 0, Rarity.SPECIAL,
                   "A shadow holding the power of a duplicated weapon"),

    # ── JUNK (enemy generated) ────────────────────────────────────────────
    CardDefinition(901, "Rust Lump", J, 1, 0, Rarity.JUNK, "Unplayable. Takes up space in hand",
                   unplayable=True),
]

CARD_REGISTRY: dict[int, CardDefinition] = {c.id: c for c in CARD_CATALOG}

STARTER_DECK_IDS = [101, 101, 102, 103, 103, 104, 105, 204]

REPLICA_CARD_ID = 801
JUNK_CARD_ID = 901


def get_card_definition(card_id: int) -> CardDefinition:
    """Raises CardNotFoundError: the catalog is static, a miss is a data bug."""
    try:
        return CARD_REGISTRY[card_id]
    except KeyError:
        raise CardNotFoundError(card_id) from None


def create_card_instance(card_id: int) -> CardInstance:
    return CardInstance.from_definition(get_card_definition(card_id))


def build_starter_deck(card_ids: list[int] | None = None) -> list[CardInstance]:
    return [create_card_instance(cid) for cid in (card_ids or STARTER_DECK_IDS)]


def validate_card_definition(card: CardDefinition) -> tuple[bool, str]:
    """
    Check a card record (e.g. one produced by the content generator)
    against the data-model invariants. Returns (valid, error_message).
    """
    if not isinstance(card.card_type, CardType):
        return False, f"Card {card.id} has unknown type {card.card_type!r}"
    if not isinstance(card.rarity, Rarity):
        return False, f"Card {card.id} has unknown rarity {card.rarity!r}"
    if card.cost < 0:
        return False, f"Card {card.id} has negative cost {card.cost}"
    if card.card_type == CardType.JUNK and not card.unplayable:
        return False, f"Junk card {card.id} must be unplayable"
    if card.card_type == CardType.HANDLE and card.value < 0:
        return False, f"Handle {card.id} has negative multiplier {card.value}"
    if not card.name:
        return False, f"Card {card.id} has no name"
    return True, ""


def instance_from_record(card: CardDefinition) -> CardInstance:
    """Create an instance from a record that is not in the static catalog."""
    valid, error = validate_card_definition(card)
    if not valid:
        raise InvalidContentError(error, details={"card_id": card.id})
    return CardInstance.from_definition(card)
