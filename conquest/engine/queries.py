"""
Query functions for UI integration.
These functions help the UI understand what actions are available
without mutating game state.
"""

from dataclasses import dataclass
from typing import Any

from conquest.engine.state import GameState
from conquest.engine.actions import Action
from conquest.engine.combat import attacker_dice_count, check_rolls, defender_dice_count
from conquest.engine.reducer import ACTION_TYPES, attack_rejection_reason
from conquest.engine.reinforcements import group_by_faction


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error}


# ===== Action Validation =====

def validate_action(state: GameState, action: Action) -> ValidationResult:
    """
    Validate an action without applying it.
    Returns ValidationResult with valid=True or valid=False with error message.
    """
    if state.game_over:
        return ValidationResult(False, f"Game is over ({state.end_reason}).")

    if action.faction != state.player_faction:
        return ValidationResult(
            False,
            f"Not {action.faction}'s game. Player faction: {state.player_faction}"
        )

    if action.type not in ACTION_TYPES:
        return ValidationResult(False, f"Unknown action type: {action.type}")

    if action.type == "attack":
        return _validate_attack(state, action)

    return ValidationResult(True)


def _validate_attack(state: GameState, action: Action) -> ValidationResult:
    attacker_index = action.payload.get("attacker_index")
    defender_index = action.payload.get("defender_index")
    reason = attack_rejection_reason(state, attacker_index, defender_index)
    if reason is not None:
        return ValidationResult(False, reason)

    dice_rolls = action.payload.get("dice_rolls") or {}
    error = check_rolls(
        state.territories[attacker_index],
        state.territories[defender_index],
        list(dice_rolls.get("attacker", [])),
        list(dice_rolls.get("defender", [])),
        state.rules.dice_mode,
    )
    if error is not None:
        return ValidationResult(False, error)
    return ValidationResult(True)


# ===== UI Queries =====

def get_available_action_types(state: GameState) -> list[str]:
    """Action types the player can use right now."""
    if state.game_over:
        return []
    if get_attack_options(state):
        return ["attack", "end_turn"]
    return ["end_turn"]


def get_attack_options(state: GameState) -> list[dict[str, Any]]:
    """
    Every (attacker, defender) pairing that would not be rejected.

    Returns:
        [{"attacker_index", "defender_index", "attacker_dice", "defender_dice"}, ...]
        ordered by attacker then defender position
    """
    options = []
    n = len(state.territories)
    for a in range(n):
        for d in range(n):
            if attack_rejection_reason(state, a, d) is not None:
                continue
            options.append({
                "attacker_index": a,
                "defender_index": d,
                "attacker_dice": attacker_dice_count(state.territories[a].troops, state.rules.dice_mode),
                "defender_dice": defender_dice_count(state.territories[d].troops),
            })
    return options


def get_faction_stats(state: GameState) -> dict[str, dict[str, Any]]:
    """faction_id -> {territories, troops, territory_ids, is_player}, first-seen order."""
    stats = {}
    for faction_id, owned in group_by_faction(state.territories).items():
        stats[faction_id] = {
            "territories": len(owned),
            "troops": sum(t.troops for t in owned),
            "territory_ids": [t.id for t in owned],
            "is_player": faction_id == state.player_faction,
        }
    return stats


def get_game_summary(state: GameState) -> dict[str, Any]:
    """Compact overview for status bars."""
    player_stats = get_faction_stats(state).get(state.player_faction, {})
    return {
        "turn_number": state.turn_number,
        "max_turns": state.rules.max_turns,
        "player_faction": state.player_faction,
        "player_territories": player_stats.get("territories", 0),
        "player_troops": player_stats.get("troops", 0),
        "total_territories": len(state.territories),
        "mission": state.mission.to_dict() if state.mission else None,
        "game_over": state.game_over,
        "end_reason": state.end_reason,
        "winner": state.winner,
    }
