"""
Anvil Combat Engine — Data Models
All combat state is represented here. Pure data, minimal logic.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import uuid


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class CardType(Enum):
    HANDLE = "Handle"     # Multiplier
    HEAD = "Head"         # Base damage
    DECO = "Deco"         # Additive bonus
    JUNK = "Junk"         # Enemy-generated, cannot be slotted


class Rarity(Enum):
    STARTER = "Starter"
    COMMON = "Common"
    RARE = "Rare"
    LEGEND = "Legend"
    JUNK = "Junk"
    SPECIAL = "Special"   # Created during combat (replicas)


class IntentType(Enum):
    ATTACK = "ATTACK"
    DEFEND = "DEFEND"
    BUFF = "BUFF"
    DEBUFF = "DEBUFF"
    WAIT = "WAIT"
    SPECIAL = "SPECIAL"


class EnemyTrait(Enum):
    DAMAGE_CAP_15 = "DAMAGE_CAP_15"    # Rock Crusher
    THORNS_5 = "THORNS_5"              # Automaton
    REACTIVE_RARE = "REACTIVE_RARE"    # Kobold
    THIEVERY = "THIEVERY"              # Goblin: steals gold on hit


class EnemyTier(Enum):
    COMMON = "Common"
    ELITE = "Elite"
    BOSS = "Boss"


class CombatPhase(Enum):
    PLAYER_DRAW = "PLAYER_DRAW"
    PLAYER_ACTION = "PLAYER_ACTION"
    PLAYER_DISCARD = "PLAYER_DISCARD"
    ENEMY_TURN = "ENEMY_TURN"
    COMBAT_WON = "COMBAT_WON"
    COMBAT_LOST = "COMBAT_LOST"


TERMINAL_PHASES = (CombatPhase.COMBAT_WON, CombatPhase.COMBAT_LOST)

# Slot name for each slottable card type
SLOT_NAMES: dict[CardType, str] = {
    CardType.HANDLE: "handle",
    CardType.HEAD: "head",
    CardType.DECO: "deco",
}


# ---------------------------------------------------------------------------
# Card Definition (the template, shared across all copies)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CardDefinition:
    id: int
    name: str
    card_type: CardType
    cost: float         # Energy. Only a few handles use fractions
    value: float        # Head: damage, Handle: multiplier, Deco: additive bonus
    rarity: Rarity
    description: str
    unplayable: bool = False
    effect_id: Optional[str] = None   # Content-driven effect template

    @property
    def slot(self) -> Optional[str]:
        return SLOT_NAMES.get(self.card_type)


# ---------------------------------------------------------------------------
# Card Instance (a runtime copy with its own identity)
# ---------------------------------------------------------------------------

@dataclass
class CardInstance:
    instance_id: str
    definition: CardDefinition
    # Copied from the definition at creation; some effects rewrite them
    cost: float = 0
    value: float = 0
    description: str = ""

    @classmethod
    def from_definition(cls, definition: CardDefinition) -> CardInstance:
        return cls(
            instance_id=uuid.uuid4().hex[:12],
            definition=definition,
            cost=definition.cost,
            value=definition.value,
            description=definition.description,
        )

    @property
    def id(self) -> int:
        return self.definition.id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def card_type(self) -> CardType:
        return self.definition.card_type

    @property
    def rarity(self) -> Rarity:
        return self.definition.rarity

    @property
    def unplayable(self) -> bool:
        return self.definition.unplayable

    @property
    def effect_id(self) -> Optional[str]:
        return self.definition.effect_id

    def __repr__(self):
        return f"CardInstance({self.id} {self.name}, cost={self.cost}, value={self.value})"


# ---------------------------------------------------------------------------
# Weapon Slots
# ---------------------------------------------------------------------------

@dataclass
class WeaponSlots:
    handle: Optional[CardInstance] = None
    head: Optional[CardInstance] = None
    deco: Optional[CardInstance] = None

    def get(self, slot: str) -> Optional[CardInstance]:
        return getattr(self, slot)

    def put(self, slot: str, card: Optional[CardInstance]) -> Optional[CardInstance]:
        """Place card in slot. Returns the evicted occupant, if any."""
        previous = getattr(self, slot)
        setattr(self, slot, card)
        return previous

    def cards(self) -> list[CardInstance]:
        return [c for c in (self.handle, self.head, self.deco) if c is not None]

    def find(self, instance_id: str) -> Optional[str]:
        for slot in ("handle", "head", "deco"):
            card = getattr(self, slot)
            if card is not None and card.instance_id == instance_id:
                return slot
        return None

    def is_complete(self) -> bool:
        return self.handle is not None and self.head is not None

    def clear(self) -> list[CardInstance]:
        cards = self.cards()
        self.handle = self.head = self.deco = None
        return cards

    def card_id(self, slot: str) -> int:
        card = getattr(self, slot)
        return card.id if card is not None else 0


# ---------------------------------------------------------------------------
# Crafted Weapon (derived, never stored)
# ---------------------------------------------------------------------------

@dataclass
class CraftedWeapon:
    total_cost: float = 0
    damage: int = 0
    block: int = 0
    hit_count: int = 1
    effects: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Player
# ---------------------------------------------------------------------------

@dataclass
class PlayerStats:
    hp: int = 50
    max_hp: int = 50
    energy: float = 3
    max_energy: int = 3
    block: int = 0
    gold: int = 0
    cost_limit: Optional[int] = None      # Deus Ex Machina
    disarmed: bool = False                # Corrupted Smith: cannot slot a Head
    next_turn_draw: int = 0
    overheat: int = 0
    weapons_used_this_turn: int = 0
    dodge_next_attack: bool = False
    self_damage_this_turn: int = 0

    @property
    def is_dead(self) -> bool:
        return self.hp <= 0

    def reset_combat_flags(self):
        self.energy = self.max_energy
        self.block = 0
        self.cost_limit = None
        self.disarmed = False
        self.next_turn_draw = 0
        self.overheat = 0
        self.weapons_used_this_turn = 0
        self.dodge_next_attack = False
        self.self_damage_this_turn = 0


# ---------------------------------------------------------------------------
# Enemy
# ---------------------------------------------------------------------------

@dataclass
class EnemyStatus:
    poison: int = 0
    bleed: int = 0
    stunned: int = 0
    strength: int = 0
    vulnerable: int = 0    # Takes 50% more damage
    weak: int = 0          # Deals 25% less damage
    burn: int = 0          # Does not decay


@dataclass
class EnemyIntent:
    type: IntentType
    value: int
    description: str
    hits: int = 1
    tags: frozenset[str] = frozenset()

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    @property
    def attack_count(self) -> int:
        if self.hits > 1:
            return self.hits
        return 3 if "(x3)" in self.description else 1


@dataclass
class EnemyData:
    id: str
    name: str
    tier: EnemyTier
    max_hp: int
    intents: list[EnemyIntent]
    current_hp: int = -1          # -1 means "start at max"
    block: int = 0
    current_intent_index: int = 0
    traits: list[EnemyTrait] = field(default_factory=list)
    statuses: EnemyStatus = field(default_factory=EnemyStatus)
    damage_taken_this_turn: int = 0

    def __post_init__(self):
        if self.current_hp < 0:
            self.current_hp = self.max_hp

    @property
    def is_dead(self) -> bool:
        return self.current_hp <= 0

    @property
    def current_intent(self) -> EnemyIntent:
        return self.intents[self.current_intent_index % len(self.intents)]

    def advance_intent(self, steps: int = 1):
        self.current_intent_index = (self.current_intent_index + steps) % len(self.intents)

    def has_trait(self, trait: EnemyTrait) -> bool:
        return trait in self.traits


# ---------------------------------------------------------------------------
# Combat
# ---------------------------------------------------------------------------

@dataclass
class CombatState:
    turn: int = 1
    phase: CombatPhase = CombatPhase.PLAYER_DRAW

    @property
    def is_over(self) -> bool:
        return self.phase in TERMINAL_PHASES


@dataclass
class SessionBonuses:
    """Combat-scoped state that is neither player nor enemy."""
    growing_crystal_bonus: int = 0
    infinite_loop_used: bool = False


# ---------------------------------------------------------------------------
# Combat Events (what the battle log and narrator read)
# ---------------------------------------------------------------------------

@dataclass
class CombatEvent:
    order: int
    turn: int
    kind: str              # "damage", "block", "status", "heal", "self_damage", ...
    source: str
    target: str
    amount: int = 0
    detail: str = ""


@dataclass
class ResolutionOutcome:
    accepted: bool
    reason: str = ""
    weapon: Optional[CraftedWeapon] = None
    damage_dealt: int = 0          # Total HP damage to the enemy
    hits: int = 0                  # Hits that reduced enemy HP
    block_gained: int = 0
    cards_drawn: list[CardInstance] = field(default_factory=list)
    cards_created: list[CardInstance] = field(default_factory=list)
    events: list[CombatEvent] = field(default_factory=list)
    enemy_defeated: bool = False
    player_defeated: bool = False


@dataclass
class EnemyTurnResult:
    turn: int
    intent: Optional[EnemyIntent]
    stunned: bool = False
    damage_to_player: int = 0
    dot_damage: int = 0            # Poison + burn + bleed dealt to the enemy
    events: list[CombatEvent] = field(default_factory=list)
    enemy_defeated: bool = False
    player_defeated: bool = False
