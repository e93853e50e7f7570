"""
Utility functions for the game engine.
"""

import random

from conquest.engine.state import GameState, GameRules, Territory
from conquest.engine.definitions import TerritoryDefinition, load_setup, build_rules
from conquest.engine.combat import attacker_dice_count, defender_dice_count, roll_dice
from conquest.engine.missions import generate_mission
from conquest.engine.reinforcements import group_by_faction
from conquest.engine.reducer import check_end
from conquest.engine.events import GameEvent, mission_assigned


def distribute_extra_troops(
    territories: list[Territory],
    count: int,
    rng: random.Random,
) -> dict[str, int]:
    """
    Add count troops one at a time to uniformly random territories (in place).

    Returns:
        territory_id -> troops added (only territories that received any)
    """
    added: dict[str, int] = {}
    if not territories:
        return added
    for _ in range(max(0, count)):
        territory = territories[rng.randrange(len(territories))]
        territory.troops += 1
        added[territory.id] = added.get(territory.id, 0) + 1
    return added


def initialize_game_state(
    territory_defs: list[TerritoryDefinition],
    rules: GameRules,
    rng: random.Random,
    player_faction: str | None = None,
    setup_id: str | None = None,
    events: list[GameEvent] | None = None,
) -> GameState:
    """
    Create an initial game state.

    The mission and domination are checked once before the first action, so a
    map that already meets the mission (or has a single owner) starts finished.

    Args:
        territory_defs: Starting territories in map order (already validated)
        rules: Game rules for this game
        rng: Random source for extra troops and the mission
        player_faction: The player's faction; defaults to the first territory's owner
        setup_id: Setup the map came from (informational)
        events: If given, setup events (mission_assigned, then any
            mission_completed / game_over) are appended to it
    """
    if not territory_defs:
        raise ValueError("Cannot start a game without territories")

    territories = [
        Territory(
            id=td.id,
            display_name=td.display_name,
            owner=td.owner,
            troops=td.troops,
            original_owner=td.owner,
        )
        for td in territory_defs
    ]
    if player_faction is None:
        player_faction = territories[0].owner
    elif player_faction not in {t.owner for t in territories}:
        raise ValueError(f"Player faction {player_faction} owns no territory")

    distribute_extra_troops(territories, rules.extra_troops, rng)

    mission = None
    if rules.missions_enabled:
        mission = generate_mission(
            territories, player_faction, rng, max_attempts=rules.mission_attempts)

    state = GameState(
        turn_number=1,
        player_faction=player_faction,
        territories=territories,
        rules=rules,
        mission=mission,
        setup_id=setup_id,
    )

    setup_events: list[GameEvent] = []
    if mission is not None:
        setup_events.append(mission_assigned(player_faction, mission.to_dict()))
    setup_events.extend(check_end(state))
    if events is not None:
        events.extend(setup_events)
    return state


def new_game_from_setup(
    setup_id: str | None = None,
    ruleset: str | None = None,
    rng: random.Random | None = None,
    rule_overrides: dict | None = None,
) -> GameState:
    """
    Load a setup from data/setups/ and initialize a game from it.
    Ruleset resolution: explicit ruleset, else the setup manifest's, else config default.
    Rule overrides: setup manifest rules, then rule_overrides on top.
    """
    setup = load_setup(setup_id)
    overrides = dict(setup["rules"])
    overrides.update(rule_overrides or {})
    rules = build_rules(ruleset or setup["ruleset"], overrides)
    return initialize_game_state(
        setup["territories"],
        rules,
        rng if rng is not None else random.Random(),
        player_faction=setup["player_faction"],
        setup_id=setup["id"],
    )


def generate_attack_rolls(
    state: GameState,
    attacker_index: int,
    defender_index: int,
    rng: random.Random,
) -> dict[str, list[int]]:
    """
    Roll the dice for an attack between two territories of this state.

    Returns:
        Dict with "attacker" and "defender" roll lists, sized for the current troops
    """
    attacker = state.territories[attacker_index]
    defender = state.territories[defender_index]
    return {
        "attacker": roll_dice(attacker_dice_count(attacker.troops, state.rules.dice_mode), rng),
        "defender": roll_dice(defender_dice_count(defender.troops), rng),
    }


def print_game_state(state: GameState) -> None:
    """Pretty-print the current game state."""
    print(f"\n{'='*60}")
    print(f"Turn {state.turn_number}/{state.rules.max_turns} | Player: {state.player_faction}")
    print(f"{'='*60}")

    for idx, territory in enumerate(state.territories):
        marker = "*" if territory.owner == state.player_faction else " "
        print(f"{marker}[{idx}] {territory.display_name:<20} {territory.owner:<10} troops={territory.troops}")

    print(f"\n{'Factions':.<40}")
    for faction_id, owned in group_by_faction(state.territories).items():
        troops = sum(t.troops for t in owned)
        print(f"  {faction_id}: {len(owned)} territories, {troops} troops")

    if state.mission:
        status = "DONE" if state.mission.completed else "open"
        print(f"\nMission [{status}]: {state.mission.description}")
    if state.game_over:
        print(f"\nGAME OVER ({state.end_reason}) - winner: {state.winner or 'none'}")
    print()
