"""
Anvil — Combat Simulator
Runs a headless combat (or a short run of combats) with an AI smith choosing
crafts, pipes each turn through the narrator, and prints the battle log.

Usage:
    python simulate_combat.py                         # uses OPENAI_API_KEY env var
    python simulate_combat.py --dry-run               # skip API calls, show payloads only
    python simulate_combat.py --enemy mimic_anvil     # fight one specific enemy
    python simulate_combat.py --act 2 --fights 3      # three fights from the act 2 pools
"""

from __future__ import annotations
import argparse
import itertools
import json
import random
import sys
from typing import Optional

from anvil.battle_log import to_narrator_payload
from anvil.config import load_settings
from anvil.enemies import ENEMIES, create_enemy, pick_enemy
from anvil.exceptions import AnvilError
from anvil.forge import forge
from anvil.log import configure_logging, get_logger
from anvil.models import CardType, CraftedWeapon, EnemyTier, WeaponSlots
from anvil.narrator import narrate_turn
from anvil.session import CombatSession

logger = get_logger("simulate_combat")

MAX_TURNS = 40


# ---------------------------------------------------------------------------
# AI Smith: picks the strongest affordable weapon each time
# ---------------------------------------------------------------------------

class AISmith:
    """
    Greedy crafter. Tries every handle/head/deco combination in hand and
    forges the one with the best score it can pay for.
    No lookahead: it never saves energy or cards for a later craft.
    """

    def __init__(self, strategy: str = "aggressive"):
        self.strategy = strategy  # 'aggressive' | 'defensive'

    def score(self, weapon: CraftedWeapon) -> float:
        attack = weapon.damage * weapon.hit_count
        if self.strategy == "defensive":
            return weapon.block * 1.5 + attack
        return attack + weapon.block * 0.5

    def choose_craft(self, session: CombatSession) -> Optional[WeaponSlots]:
        combat = session.combat
        player = combat.player
        hand = [c for c in combat.piles.hand if not c.unplayable]
        handles = [c for c in hand if c.card_type == CardType.HANDLE]
        heads = [] if player.disarmed else [c for c in hand if c.card_type == CardType.HEAD]
        decos = [None] + [c for c in hand if c.card_type == CardType.DECO]

        best, best_score = None, 0.0
        for handle, head, deco in itertools.product(handles, heads, decos):
            slots = WeaponSlots(handle=handle, head=head, deco=deco)
            weapon = forge(slots, player, combat.enemy, combat.bonuses)
            if weapon.total_cost > player.energy:
                continue
            if player.cost_limit is not None and weapon.total_cost > player.cost_limit:
                continue
            s = self.score(weapon)
            if s > best_score:
                best, best_score = slots, s
        return best


def play_turn(session: CombatSession, smith: AISmith) -> int:
    """Craft until nothing useful is affordable. Returns the number of weapons forged."""
    forged = 0
    while session.phase is not None and not session.combat.state.is_over:
        choice = smith.choose_craft(session)
        if choice is None:
            break
        for slot in ("handle", "head", "deco"):
            card = choice.get(slot)
            if card is not None:
                session.move_card_to_slot(card.instance_id, slot)
        outcome = session.craft_and_resolve()
        if not outcome.accepted:
            session.clear_slots()
            break
        forged += 1
        print(f"  ⚒  {outcome.weapon.damage} dmg x{outcome.hits} hits | "
              f"+{outcome.block_gained} block | enemy HP {session.combat.enemy.current_hp}")
    return forged


# ---------------------------------------------------------------------------
# Combat Simulator
# ---------------------------------------------------------------------------

def simulate_combat(
    session: CombatSession,
    enemy_id: str,
    smith: AISmith,
    dry_run: bool = False,
    api_key: Optional[str] = None,
) -> dict:
    """Fight one enemy to the end. Returns all turn payloads and narrations."""
    combat = session.start_combat(create_enemy(enemy_id))
    enemy = combat.enemy

    print(f"\n{'=' * 60}")
    print(f"  🔥 THE ANVIL — {enemy.name.upper()} ({enemy.tier.value}, {enemy.max_hp} HP)")
    print(f"{'=' * 60}")

    results = {"enemy": enemy.id, "turns": [], "narrations": [], "outcome": None}

    while not combat.state.is_over and combat.state.turn <= MAX_TURNS:
        turn = combat.state.turn
        print(f"\n{'─' * 60}")
        print(f"  TURN {turn} | HP {session.player.hp}/{session.player.max_hp} | "
              f"energy {session.player.energy} | intent: {enemy.current_intent.description}")
        print(f"  ✋ Hand: {', '.join(c.name for c in session.hand)}")

        play_turn(session, smith)
        if not combat.state.is_over:
            result = session.end_turn()
            if result is not None and result.stunned:
                print("  💫 Enemy is stunned")
            elif result is not None:
                print(f"  🗡  Enemy dealt {result.damage_to_player} | DoT dealt {result.dot_damage}")

        payload = to_narrator_payload(
            session.events_for_turn(turn), session.player, enemy, turn, session.outcome()
        )
        results["turns"].append(payload)

        if not dry_run:
            print("\n  🎭 Requesting narration...", end="", flush=True)
            try:
                narration = narrate_turn(payload, api_key=api_key)
                results["narrations"].append({"turn": turn, "title": narration.title,
                                              "narration": narration.narration})
                narration.display()
            except Exception as e:
                # A failed narration is logged and the fight goes on
                logger.warning("narration_failed", turn=turn, error=str(e))
                results["narrations"].append({"turn": turn, "error": str(e)})
        else:
            print(f"  [dry-run] {json.dumps(payload['turn_summary'])}")

    outcome = session.outcome()
    results["outcome"] = outcome.value if outcome else "UNFINISHED"
    print(f"\n  🏁 {results['outcome']} after {combat.state.turn} turns")
    if combat.state.is_over:
        session.finish_combat()
    return results


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Anvil Combat Simulator")
    parser.add_argument("--dry-run", action="store_true",
                        help="Skip API calls, show battle log summaries instead")
    parser.add_argument("--enemy", choices=sorted(ENEMIES), default=None,
                        help="Fight this enemy (default: random common from --act)")
    parser.add_argument("--act", type=int, default=1, choices=[1, 2, 3])
    parser.add_argument("--fights", type=int, default=1,
                        help="Number of consecutive fights with the same deck")
    parser.add_argument("--strategy", default="aggressive", choices=["aggressive", "defensive"])
    parser.add_argument("--seed", type=int, default=None, help="Overrides ANVIL_SEED")
    parser.add_argument("--output", default=None, help="Write all payloads to this JSON file")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    seed = args.seed if args.seed is not None else settings.seed
    session = CombatSession.from_settings(settings)
    session.rng = random.Random(seed)

    api_key = settings.openai_api_key
    if not api_key and not args.dry_run:
        print("⚠️  No OPENAI_API_KEY found. Running in dry-run mode.")
        args.dry_run = True

    smith = AISmith(args.strategy)
    all_results = []
    try:
        for _ in range(args.fights):
            enemy_id = args.enemy or pick_enemy(args.act, EnemyTier.COMMON, session.rng).id
            results = simulate_combat(session, enemy_id, smith, dry_run=args.dry_run, api_key=api_key)
            all_results.append(results)
            if results["outcome"] != "COMBAT_WON":
                break
    except AnvilError as e:
        logger.error("simulation_failed", error=e.message, details=e.details)
        return 1

    if args.output:
        with open(args.output, "w") as f:
            json.dump(all_results, f, indent=2, default=str)
        print(f"📁 Combat results saved to: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
