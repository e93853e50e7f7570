"""
Events emitted by the reducer.
Each apply_action call returns the events describing what it changed; they
are the game log and what UIs animate.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """One thing that happened: a type constant and a JSON-ready payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


# ===== Event Type Constants =====

# Turn events
TURN_STARTED = "turn_started"
TURN_ENDED = "turn_ended"

# Reinforcement events
REINFORCEMENTS_ALLOCATED = "reinforcements_allocated"

# Combat events
ATTACK_RESOLVED = "attack_resolved"
ATTACK_REJECTED = "attack_rejected"

# Territory events
TERRITORY_CAPTURED = "territory_captured"

# Mission events
MISSION_ASSIGNED = "mission_assigned"
MISSION_COMPLETED = "mission_completed"

# End of game
GAME_OVER = "game_over"


# ===== Event Factory Functions =====

def turn_started(turn_number: int, faction: str) -> GameEvent:
    return GameEvent(TURN_STARTED, {
        "turn_number": turn_number,
        "faction": faction,
    })


def turn_ended(turn_number: int, faction: str) -> GameEvent:
    return GameEvent(TURN_ENDED, {
        "turn_number": turn_number,
        "faction": faction,
    })


def reinforcements_allocated(
    faction: str,
    total: int,
    territories: dict[str, int],
) -> GameEvent:
    """Emitted once per faction at the start of a round."""
    return GameEvent(REINFORCEMENTS_ALLOCATED, {
        "faction": faction,
        "total": total,
        "territories": territories,  # territory_id -> troops added
    })


def attack_resolved(
    attacker_territory: str,
    defender_territory: str,
    attacker_faction: str,
    defender_faction: str,
    result: dict[str, Any],
) -> GameEvent:
    """
    Emit attack resolved event.

    result is AttackResult.to_dict(): outcome, sorted rolls, duels,
    losses and post-combat troop counts.
    """
    return GameEvent(ATTACK_RESOLVED, {
        "attacker_territory": attacker_territory,
        "defender_territory": defender_territory,
        "attacker_faction": attacker_faction,
        "defender_faction": defender_faction,
        **result,
    })


def attack_rejected(
    attacker_index: int,
    defender_index: int,
    reason: str,
) -> GameEvent:
    return GameEvent(ATTACK_REJECTED, {
        "attacker_index": attacker_index,
        "defender_index": defender_index,
        "reason": reason,
    })


def territory_captured(
    territory: str,
    old_owner: str,
    new_owner: str,
    troops: int,
) -> GameEvent:
    return GameEvent(TERRITORY_CAPTURED, {
        "territory": territory,
        "old_owner": old_owner,
        "new_owner": new_owner,
        "troops": troops,
    })


def mission_assigned(faction: str, mission: dict[str, Any]) -> GameEvent:
    return GameEvent(MISSION_ASSIGNED, {
        "faction": faction,
        "mission": mission,
    })


def mission_completed(faction: str, mission: dict[str, Any], turn_number: int) -> GameEvent:
    return GameEvent(MISSION_COMPLETED, {
        "faction": faction,
        "mission": mission,
        "turn_number": turn_number,
    })


def game_over(
    reason: str,  # "mission", "domination", "turn_limit"
    winner: str | None,
    turn_number: int,
    territory_counts: dict[str, int],
) -> GameEvent:
    return GameEvent(GAME_OVER, {
        "reason": reason,
        "winner": winner,
        "turn_number": turn_number,
        "territory_counts": territory_counts,
    })
