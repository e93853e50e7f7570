"""
Combat resolution system.
One attack = one round of dice between two territories.
Dice are compared highest-to-highest; ties go to the defender.
Losses are applied after all duels, then conquest is checked.
Illegal attacks are reported as a rejected result, never raised.
"""

import random
from dataclasses import dataclass, field
from typing import Any

from conquest.engine import DICE_SIDES, DICE_MODE_CLASSIC, DICE_MODE_EXTENDED
from conquest.engine.state import Territory

# Outcomes
OUTCOME_REJECTED = "rejected"
OUTCOME_CONTINUED = "continued"  # Both sides hold; attacker may attack again
OUTCOME_REPELLED = "repelled"  # Attacker down to 1 troop, cannot continue
OUTCOME_CONQUERED = "conquered"

# Rejection reasons
REJECT_INVALID_ATTACKER = "invalid_attacker"  # Fewer than 2 troops
REJECT_INVALID_DEFENDER = "invalid_defender"  # No troops
REJECT_SAME_FACTION = "same_faction"
REJECT_OUT_OF_RANGE = "out_of_range"  # Index checks (reducer/queries)
REJECT_SAME_TERRITORY = "same_territory"  # Index checks (reducer/queries)

DUEL_ATTACKER = "attacker"
DUEL_DEFENDER = "defender"


@dataclass
class AttackResult:
    """Result of a single attack (one combat round)."""
    outcome: str
    reason: str | None = None  # Set only when outcome is rejected
    attacker_rolls: list[int] = field(default_factory=list)  # sorted desc
    defender_rolls: list[int] = field(default_factory=list)  # sorted desc
    # (attacker_die, defender_die, "attacker" | "defender") per compared pair
    duels: list[tuple[int, int, str]] = field(default_factory=list)
    attacker_losses: int = 0
    defender_losses: int = 0
    attacker_troops: int = 0  # after combat (and conquest transfer)
    defender_troops: int = 0

    @property
    def rejected(self) -> bool:
        return self.outcome == OUTCOME_REJECTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome,
            "reason": self.reason,
            "attacker_rolls": self.attacker_rolls,
            "defender_rolls": self.defender_rolls,
            "duels": [
                {"attacker": a, "defender": d, "winner": w} for a, d, w in self.duels
            ],
            "attacker_losses": self.attacker_losses,
            "defender_losses": self.defender_losses,
            "attacker_troops": self.attacker_troops,
            "defender_troops": self.defender_troops,
        }


def attacker_dice_count(troops: int, dice_mode: str = DICE_MODE_EXTENDED) -> int:
    """
    Number of dice the attacker rolls.

    classic:  2 if troops >= 3 else 1
    extended: min(3, max(1, troops - 1))
    """
    if dice_mode == DICE_MODE_CLASSIC:
        return 2 if troops >= 3 else 1
    if dice_mode == DICE_MODE_EXTENDED:
        return min(3, max(1, troops - 1))
    raise ValueError(f"Unknown dice mode: {dice_mode}")


def defender_dice_count(troops: int) -> int:
    """Defender rolls 2 dice with 2+ troops, else 1."""
    return 2 if troops >= 2 else 1


def roll_dice(count: int, rng: random.Random) -> list[int]:
    """Roll count dice (1..DICE_SIDES) from the given RNG."""
    return [rng.randint(1, DICE_SIDES) for _ in range(count)]


def check_attack(attacker: Territory, defender: Territory) -> str | None:
    """Return the rejection reason for this pairing, or None if the attack is legal."""
    if attacker.troops < 2:
        return REJECT_INVALID_ATTACKER
    if defender.troops < 1:
        return REJECT_INVALID_DEFENDER
    if attacker.owner == defender.owner:
        return REJECT_SAME_FACTION
    return None


def check_rolls(
    attacker: Territory,
    defender: Territory,
    attacker_rolls: list[int],
    defender_rolls: list[int],
    dice_mode: str = DICE_MODE_EXTENDED,
) -> str | None:
    """
    Return an error message if the dice do not fit this attack, else None.

    Each side must roll exactly its dice count for the current troops and
    every die must be in 1..DICE_SIDES.
    """
    expected_attacker = attacker_dice_count(attacker.troops, dice_mode)
    expected_defender = defender_dice_count(defender.troops)
    if len(attacker_rolls) != expected_attacker or len(defender_rolls) != expected_defender:
        return (
            f"Expected {expected_attacker} attacker and {expected_defender} defender dice, "
            f"got {len(attacker_rolls)} and {len(defender_rolls)}"
        )
    for die in list(attacker_rolls) + list(defender_rolls):
        if not isinstance(die, int) or isinstance(die, bool) or not 1 <= die <= DICE_SIDES:
            return f"Dice must be integers from 1 to {DICE_SIDES}, got {die!r}"
    return None


def compare_dice(
    attacker_rolls: list[int],
    defender_rolls: list[int],
) -> tuple[list[tuple[int, int, str]], int, int]:
    """
    Compare sorted dice pairwise, highest to highest.

    Only min(len(attacker_rolls), len(defender_rolls)) pairs are compared.
    The attacker needs a strictly greater die to win a duel.

    Returns:
        (duels, attacker_losses, defender_losses)
    """
    attacker_sorted = sorted(attacker_rolls, reverse=True)
    defender_sorted = sorted(defender_rolls, reverse=True)

    duels: list[tuple[int, int, str]] = []
    attacker_losses = 0
    defender_losses = 0
    for a, d in zip(attacker_sorted, defender_sorted):
        if a > d:
            defender_losses += 1
            duels.append((a, d, DUEL_ATTACKER))
        else:
            attacker_losses += 1
            duels.append((a, d, DUEL_DEFENDER))
    return duels, attacker_losses, defender_losses


def resolve_attack_with_rolls(
    attacker: Territory,
    defender: Territory,
    attacker_rolls: list[int],
    defender_rolls: list[int],
    dice_mode: str = DICE_MODE_EXTENDED,
) -> AttackResult:
    """
    Resolve one attack using pre-rolled dice.

    Combat rules:
    - Rejected (no mutation) if attacker has < 2 troops, defender has 0 troops,
      or both territories share an owner
    - Dice are sorted descending and compared pairwise
    - Accumulated losses are applied to both sides after all duels
    - Defender at 0 troops: ownership transfers, defender gets attacker.troops - 1,
      attacker keeps 1
    - Otherwise repelled if attacker is down to 1 troop, else continued

    Note: This function MODIFIES both territories in place.

    Args:
        attacker: Attacking territory (modified in place)
        defender: Defending territory (modified in place)
        attacker_rolls: Attacker dice, any order
        defender_rolls: Defender dice, any order
        dice_mode: Attacker dice tiering the roll count is checked against

    Returns:
        AttackResult with outcome, dice and losses

    Raises:
        ValueError: wrong number of dice for either side or a die outside 1..DICE_SIDES
    """
    reason = check_attack(attacker, defender)
    if reason is not None:
        return AttackResult(
            outcome=OUTCOME_REJECTED,
            reason=reason,
            attacker_troops=attacker.troops,
            defender_troops=defender.troops,
        )

    error = check_rolls(attacker, defender, attacker_rolls, defender_rolls, dice_mode)
    if error is not None:
        raise ValueError(error)

    duels, attacker_losses, defender_losses = compare_dice(attacker_rolls, defender_rolls)

    attacker.troops -= attacker_losses
    defender.troops -= defender_losses

    if defender.troops == 0:
        defender.owner = attacker.owner
        defender.troops = attacker.troops - 1
        attacker.troops = 1
        outcome = OUTCOME_CONQUERED
    elif attacker.troops <= 1:
        outcome = OUTCOME_REPELLED
    else:
        outcome = OUTCOME_CONTINUED

    return AttackResult(
        outcome=outcome,
        attacker_rolls=sorted(attacker_rolls, reverse=True),
        defender_rolls=sorted(defender_rolls, reverse=True),
        duels=duels,
        attacker_losses=attacker_losses,
        defender_losses=defender_losses,
        attacker_troops=attacker.troops,
        defender_troops=defender.troops,
    )


def resolve_attack(
    attacker: Territory,
    defender: Territory,
    rng: random.Random,
    dice_mode: str = DICE_MODE_EXTENDED,
) -> AttackResult:
    """Roll dice for both sides from rng and resolve the attack. Rejected attacks roll nothing."""
    reason = check_attack(attacker, defender)
    if reason is not None:
        return AttackResult(
            outcome=OUTCOME_REJECTED,
            reason=reason,
            attacker_troops=attacker.troops,
            defender_troops=defender.troops,
        )
    attacker_rolls = roll_dice(attacker_dice_count(attacker.troops, dice_mode), rng)
    defender_rolls = roll_dice(defender_dice_count(defender.troops), rng)
    return resolve_attack_with_rolls(attacker, defender, attacker_rolls, defender_rolls, dice_mode)
