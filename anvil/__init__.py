"""Anvil Combat Engine"""

from .cards import create_card_instance, get_card_definition
from .enemies import create_enemy
from .exceptions import AnvilError, CardNotFoundError, CombatStateError, InvalidContentError
from .forge import forge
from .resolver import resolve
from .rules import combat_outcome
from .session import CombatSession, start_combat

__all__ = [
    'CombatSession', 'start_combat', 'combat_outcome',
    'forge', 'resolve',
    'get_card_definition', 'create_card_instance', 'create_enemy',
    'AnvilError', 'CardNotFoundError', 'CombatStateError', 'InvalidContentError',
]
