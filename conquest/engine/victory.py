"""
End-of-game predicates.
"""

from conquest.engine.state import GameState, Territory

END_MISSION = "mission"
END_DOMINATION = "domination"
END_TURN_LIMIT = "turn_limit"


def is_dominated(territories: list[Territory]) -> bool:
    """True iff the map is non-empty and every territory has the first territory's owner."""
    if not territories:
        return False
    owner = territories[0].owner
    return all(t.owner == owner for t in territories)


def check_game_end(state: GameState) -> tuple[str, str | None] | None:
    """
    Check whether the game should end now (mission or domination).
    Does not look at the turn limit; that is decided when a turn ends.

    Returns:
        None if the game goes on, else (end_reason, winner_faction)
    """
    if state.mission is not None and state.mission.completed:
        return END_MISSION, state.player_faction
    if is_dominated(state.territories):
        return END_DOMINATION, state.territories[0].owner
    return None


def territory_counts(territories: list[Territory]) -> dict[str, int]:
    """faction_id -> number of territories owned, first-seen order."""
    counts: dict[str, int] = {}
    for t in territories:
        counts[t.owner] = counts.get(t.owner, 0) + 1
    return counts
