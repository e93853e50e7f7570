"""
Player actions.
An action carries everything the reducer needs, dice included, so replaying
the same actions from the same state gives the same game.
"""

from dataclasses import dataclass


@dataclass
class Action:
    """A player instruction: attack or end_turn, issued by the player faction."""
    type: str  # "attack" or "end_turn"
    faction: str  # faction_id performing the action (the player)
    payload: dict  # Action-specific data


def attack(
    faction: str,
    attacker_index: int,
    defender_index: int,
    # "attacker" -> [rolls], "defender" -> [rolls]
    dice_rolls: dict[str, list[int]],
) -> Action:
    """
    Attack one territory from another, by position on the map.

    dice_rolls must be provided (deterministic, no RNG in reducer) and must
    hold exactly as many dice as each side rolls for its current troops.
    Use utils.generate_attack_rolls to produce them.

    Example: attack("blue", 0, 3, {"attacker": [6, 4, 2], "defender": [3]})
    """
    return Action(
        type="attack",
        faction=faction,
        payload={
            "attacker_index": attacker_index,
            "defender_index": defender_index,
            "dice_rolls": dice_rolls,
        },
    )


def end_turn(faction: str) -> Action:
    """End the current round: advance the turn counter and reinforce every faction."""
    return Action(
        type="end_turn",
        faction=faction,
        payload={},
    )
