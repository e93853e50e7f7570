"""
Mission system.
One mission is generated at game start from the territory distribution and
evaluated every round against the current map and turn counter.

Mission kinds:
- conquer_faction: take every territory a faction held at game start
- eliminate_faction: no territory may remain owned by the target
- control_count: the player owns at least target_value territories
- survive_turns: reach turn target_value
"""

import random

from conquest.engine.state import Mission, Territory

MISSION_CONQUER_FACTION = "conquer_faction"
MISSION_ELIMINATE_FACTION = "eliminate_faction"
MISSION_CONTROL_COUNT = "control_count"
MISSION_SURVIVE_TURNS = "survive_turns"

MISSION_KINDS = (
    MISSION_CONQUER_FACTION,
    MISSION_ELIMINATE_FACTION,
    MISSION_CONTROL_COUNT,
    MISSION_SURVIVE_TURNS,
)

DEFAULT_MISSION_ATTEMPTS = 10
CONTROL_COUNT_PERCENT = 70
CONTROL_COUNT_MINIMUM = 3
FALLBACK_CONTROL_PERCENT = 60
SURVIVE_TURNS_RANGE = (8, 12)


def describe_mission(mission: Mission) -> str:
    """Human-readable objective text."""
    if mission.kind == MISSION_CONQUER_FACTION:
        return f"Conquer every territory held by {mission.target_faction}"
    if mission.kind == MISSION_ELIMINATE_FACTION:
        return f"Eliminate {mission.target_faction} from the map"
    if mission.kind == MISSION_CONTROL_COUNT:
        return f"Control at least {mission.target_value} territories"
    if mission.kind == MISSION_SURVIVE_TURNS:
        return f"Survive until turn {mission.target_value}"
    raise ValueError(f"Unknown mission kind: {mission.kind}")


def _ceil_percent(count: int, percent: int) -> int:
    return -(-count * percent // 100)


def _make(kind: str, target_faction: str | None = None, target_value: int | None = None) -> Mission:
    mission = Mission(kind=kind, target_faction=target_faction, target_value=target_value)
    mission.description = describe_mission(mission)
    return mission


def _fallback_control_count(territory_count: int) -> Mission:
    return _make(
        MISSION_CONTROL_COUNT,
        target_value=_ceil_percent(territory_count, FALLBACK_CONTROL_PERCENT),
    )


def _count_owned(territories: list[Territory], faction_id: str) -> int:
    return sum(1 for t in territories if t.owner == faction_id)


def generate_mission(
    territories: list[Territory],
    player_faction: str,
    rng: random.Random,
    max_attempts: int = DEFAULT_MISSION_ATTEMPTS,
) -> Mission:
    """
    Generate a random mission for the player.

    The kind is drawn uniformly from MISSION_KINDS, then:
    - conquer_faction: up to max_attempts random territory draws; a draw is
      accepted when its owner is not the player and owns 2+ territories.
      Falls back to control_count with ceil(0.6 * n).
    - eliminate_faction: uniform pick among non-player factions on the map
      (same fallback when the player already owns everything).
    - control_count: max(3, ceil(0.7 * n))
    - survive_turns: uniform in [8, 12]

    Args:
        territories: Current territories (not modified)
        player_faction: The player's faction id
        rng: Random source
        max_attempts: Bound for the conquer_faction retry loop

    Returns:
        A new, not-yet-completed Mission
    """
    if not territories:
        raise ValueError("Cannot generate a mission for an empty map")

    n = len(territories)
    kind = rng.choice(MISSION_KINDS)

    if kind == MISSION_CONQUER_FACTION:
        for _ in range(max_attempts):
            candidate = territories[rng.randrange(n)].owner
            if candidate != player_faction and _count_owned(territories, candidate) >= 2:
                return _make(MISSION_CONQUER_FACTION, target_faction=candidate)
        return _fallback_control_count(n)

    if kind == MISSION_ELIMINATE_FACTION:
        others: list[str] = []
        for t in territories:
            if t.owner != player_faction and t.owner not in others:
                others.append(t.owner)
        if not others:
            return _fallback_control_count(n)
        return _make(MISSION_ELIMINATE_FACTION, target_faction=rng.choice(others))

    if kind == MISSION_CONTROL_COUNT:
        return _make(
            MISSION_CONTROL_COUNT,
            target_value=max(CONTROL_COUNT_MINIMUM, _ceil_percent(n, CONTROL_COUNT_PERCENT)),
        )

    if kind == MISSION_SURVIVE_TURNS:
        low, high = SURVIVE_TURNS_RANGE
        return _make(MISSION_SURVIVE_TURNS, target_value=rng.randint(low, high))

    raise ValueError(f"Unknown mission kind: {kind}")


def evaluate_mission(
    mission: Mission,
    territories: list[Territory],
    player_faction: str,
    current_turn: int,
) -> bool:
    """
    Check whether the mission is complete. Pure: never mutates the mission.

    Returns True immediately for an already completed mission, so completion
    survives later reversals once the caller has persisted it
    (see complete_mission).
    """
    if mission.completed:
        return True

    if mission.kind == MISSION_CONQUER_FACTION:
        targets = [t for t in territories if t.original_owner == mission.target_faction]
        return bool(targets) and all(t.owner == player_faction for t in targets)

    if mission.kind == MISSION_ELIMINATE_FACTION:
        return all(t.owner != mission.target_faction for t in territories)

    if mission.kind == MISSION_CONTROL_COUNT:
        return _count_owned(territories, player_faction) >= (mission.target_value or 0)

    if mission.kind == MISSION_SURVIVE_TURNS:
        return current_turn >= (mission.target_value or 0)

    raise ValueError(f"Unknown mission kind: {mission.kind}")


def complete_mission(
    mission: Mission,
    territories: list[Territory],
    player_faction: str,
    current_turn: int,
) -> bool:
    """
    Evaluate and persist completion on the mission.

    Returns True only on the call that flips completed from False to True.
    """
    if mission.completed:
        return False
    if evaluate_mission(mission, territories, player_faction, current_turn):
        mission.completed = True
        return True
    return False
