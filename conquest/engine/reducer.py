"""
Main game reducer.
Applies actions to state, enforcing rules and producing new state.
Returns (new_state, events) where events describe what happened.
"""

from conquest.engine.state import GameState
from conquest.engine.actions import Action
from conquest.engine.combat import (
    resolve_attack_with_rolls,
    check_attack,
    OUTCOME_CONQUERED,
    REJECT_OUT_OF_RANGE,
    REJECT_SAME_TERRITORY,
)
from conquest.engine.missions import complete_mission
from conquest.engine.reinforcements import allocate_reinforcements
from conquest.engine.victory import check_game_end, territory_counts, END_TURN_LIMIT
from conquest.engine.events import (
    GameEvent,
    turn_started,
    turn_ended,
    reinforcements_allocated,
    attack_resolved,
    attack_rejected,
    territory_captured,
    mission_completed,
    game_over,
)

ACTION_TYPES = ("attack", "end_turn")


def apply_action(
    state: GameState,
    action: Action,
) -> tuple[GameState, list[GameEvent]]:
    """
    Apply a single action to the current state, returning new state and events.

    Validates:
    - Game is not over
    - Action faction matches the player faction
    - Action type is known

    Illegal attacks (bad indices, too few troops, same faction) are not errors:
    state is returned unchanged with an attack_rejected event.

    Args:
        state: Current game state (not modified)
        action: Action to apply

    Returns:
        Tuple of (new_state, events) where events describe what happened
    """
    if state.game_over:
        raise ValueError(f"Game is over ({state.end_reason}).")

    if action.faction != state.player_faction:
        raise ValueError(
            f"Action faction {action.faction} does not match player faction {state.player_faction}")

    new_state = state.copy()

    if action.type == "attack":
        return _handle_attack(new_state, action)

    elif action.type == "end_turn":
        return _handle_end_turn(new_state)

    raise ValueError(f"Unknown action type: {action.type}")


def attack_rejection_reason(state: GameState, attacker_index, defender_index) -> str | None:
    """Index and precondition checks for an attack. None if the attack is legal."""
    n = len(state.territories)
    for idx in (attacker_index, defender_index):
        if not isinstance(idx, int) or isinstance(idx, bool) or idx < 0 or idx >= n:
            return REJECT_OUT_OF_RANGE
    if attacker_index == defender_index:
        return REJECT_SAME_TERRITORY
    return check_attack(state.territories[attacker_index], state.territories[defender_index])


def _handle_attack(
    state: GameState,
    action: Action,
) -> tuple[GameState, list[GameEvent]]:
    """
    Resolve one attack with the dice carried in the action.

    After a resolved attack the mission and domination are re-checked.
    """
    events: list[GameEvent] = []
    attacker_index = action.payload.get("attacker_index")
    defender_index = action.payload.get("defender_index")

    reason = attack_rejection_reason(state, attacker_index, defender_index)
    if reason is not None:
        events.append(attack_rejected(attacker_index, defender_index, reason))
        return state, events

    attacker = state.territories[attacker_index]
    defender = state.territories[defender_index]

    dice_rolls = action.payload.get("dice_rolls") or {}
    attacker_rolls = list(dice_rolls.get("attacker", []))
    defender_rolls = list(dice_rolls.get("defender", []))
    attacker_faction = attacker.owner
    defender_faction = defender.owner
    # Raises ValueError for dice that do not fit the attack
    result = resolve_attack_with_rolls(
        attacker, defender, attacker_rolls, defender_rolls, state.rules.dice_mode)

    events.append(attack_resolved(
        attacker.id,
        defender.id,
        attacker_faction,
        defender_faction,
        result.to_dict(),
    ))
    if result.outcome == OUTCOME_CONQUERED:
        events.append(territory_captured(
            defender.id, defender_faction, defender.owner, defender.troops))

    events.extend(check_end(state))
    return state, events


def _handle_end_turn(state: GameState) -> tuple[GameState, list[GameEvent]]:
    """
    End the current round.

    - Turn counter increments
    - Past max_turns the game ends (turn_limit, no winner)
    - Otherwise every faction is reinforced, then mission/domination checked
    """
    events: list[GameEvent] = []
    events.append(turn_ended(state.turn_number, state.player_faction))
    state.turn_number += 1

    if state.turn_number > state.rules.max_turns:
        state.game_over = True
        state.end_reason = END_TURN_LIMIT
        state.winner = None
        events.append(game_over(
            END_TURN_LIMIT, None, state.turn_number, territory_counts(state.territories)))
        return state, events

    allocations = allocate_reinforcements(state.territories, state.rules.min_reinforcement)
    for faction_id, per_territory in allocations.items():
        events.append(reinforcements_allocated(
            faction_id, sum(per_territory.values()), per_territory))

    events.append(turn_started(state.turn_number, state.player_faction))
    events.extend(check_end(state))
    return state, events


def check_end(state: GameState) -> list[GameEvent]:
    """
    Persist mission completion and end the game on mission or domination.
    Runs after every resolved attack, at every round start and once at setup.
    """
    events: list[GameEvent] = []
    if state.mission is not None:
        if complete_mission(state.mission, state.territories, state.player_faction, state.turn_number):
            events.append(mission_completed(
                state.player_faction, state.mission.to_dict(), state.turn_number))

    end = check_game_end(state)
    if end is not None:
        reason, winner = end
        state.game_over = True
        state.end_reason = reason
        state.winner = winner
        events.append(game_over(
            reason, winner, state.turn_number, territory_counts(state.territories)))
    return events


def replay_from_actions(
    initial_state: GameState,
    actions: list[Action],
) -> tuple[GameState, list[GameEvent]]:
    """
    Replay a series of actions from an initial state.
    Event sourcing: state is derived from action log.

    Returns:
        Tuple of (final_state, all_events) after all actions applied
    """
    current_state = initial_state.copy()
    all_events: list[GameEvent] = []

    for action in actions:
        current_state, events = apply_action(current_state, action)
        all_events.extend(events)

    return current_state, all_events
