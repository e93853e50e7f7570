"""
Main entry point for the Conquest Missions engine.
Demonstrates core functionality with a simple simulated scenario.
"""

import random

from conquest.engine.state import Territory
from conquest.engine.actions import attack, end_turn
from conquest.engine.combat import resolve_attack_with_rolls
from conquest.engine.missions import describe_mission
from conquest.engine.queries import get_attack_options
from conquest.engine.reducer import apply_action
from conquest.engine.utils import (
    new_game_from_setup,
    print_game_state,
    generate_attack_rolls,
)


def main():
    print("Conquest Missions Engine")
    print("=" * 60)

    rng = random.Random(42)

    # ===== SCENARIO 1: A single attack with fixed dice =====
    print("\n[SCENARIO 1: Fixed-dice attack]")
    brazil = Territory(id="brazil", display_name="Brazil", owner="blue", troops=5)
    peru = Territory(id="peru", display_name="Peru", owner="red", troops=1)
    result = resolve_attack_with_rolls(brazil, peru, [6, 4, 2], [3])
    print(f"Dice: {result.attacker_rolls} vs {result.defender_rolls} -> {result.outcome}")
    print(f"Brazil: {brazil.owner} {brazil.troops} | Peru: {peru.owner} {peru.troops}")

    # ===== SCENARIO 2: Play the master setup until the game ends =====
    print("\n[SCENARIO 2: Master game on the Americas map]")
    state = new_game_from_setup("americas", "master", rng)
    print(f"Mission: {describe_mission(state.mission)}")
    print_game_state(state)

    while not state.game_over:
        # Attack with the player's strongest option each round, a few times
        for _ in range(3):
            options = [
                o for o in get_attack_options(state)
                if state.territories[o["attacker_index"]].owner == state.player_faction
            ]
            if not options or state.game_over:
                break
            best = max(options, key=lambda o: state.territories[o["attacker_index"]].troops)
            dice = generate_attack_rolls(state, best["attacker_index"], best["defender_index"], rng)
            state, events = apply_action(
                state,
                attack(state.player_faction, best["attacker_index"], best["defender_index"], dice),
            )
            for e in events:
                print(f"  - {e.type}: {e.payload.get('outcome', e.payload.get('reason', ''))}")

        if not state.game_over:
            state, events = apply_action(state, end_turn(state.player_faction))
            print(f"Turn {state.turn_number}: {[e.type for e in events]}")

    print_game_state(state)


if __name__ == "__main__":
    main()
