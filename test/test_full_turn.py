"""
End-to-end tests through the reducer: attacks, rejections, round ends and game end.
"""

import pytest

from conquest.engine import DICE_MODE_CLASSIC
from conquest.engine.state import GameState, GameRules, Mission, Territory
from conquest.engine.actions import Action, attack, end_turn
from conquest.engine.reducer import apply_action, replay_from_actions
from conquest.engine.missions import MISSION_CONTROL_COUNT, MISSION_SURVIVE_TURNS
from conquest.engine.combat import (
    OUTCOME_CONQUERED,
    OUTCOME_REPELLED,
    REJECT_INVALID_ATTACKER,
    REJECT_OUT_OF_RANGE,
    REJECT_SAME_FACTION,
    REJECT_SAME_TERRITORY,
)
from conquest.engine.events import (
    ATTACK_RESOLVED,
    ATTACK_REJECTED,
    TERRITORY_CAPTURED,
    REINFORCEMENTS_ALLOCATED,
    TURN_ENDED,
    TURN_STARTED,
    MISSION_COMPLETED,
    GAME_OVER,
)
from conquest.engine.victory import END_DOMINATION, END_MISSION, END_TURN_LIMIT


def make_state(*cells: tuple[str, str, int], mission: Mission | None = None, **rules) -> GameState:
    """Helper: (id, owner, troops) per territory; the first owner is the player."""
    territories = [
        Territory(id=tid, display_name=tid.title(), owner=owner, troops=troops, original_owner=owner)
        for tid, owner, troops in cells
    ]
    rules.setdefault("missions_enabled", mission is not None)
    return GameState(
        turn_number=1,
        player_faction=territories[0].owner,
        territories=territories,
        rules=GameRules(**rules),
        mission=mission,
    )


def three_way_state(**kwargs) -> GameState:
    return make_state(
        ("brazil", "blue", 5),
        ("peru", "red", 1),
        ("chile", "green", 2),
        ("argentina", "red", 3),
        **kwargs,
    )


def event_types(events) -> list[str]:
    return [e.type for e in events]


# ===== Attacks =====

def test_attack_conquers_territory():
    state = three_way_state()
    action = attack("blue", 0, 1, {"attacker": [6, 4, 2], "defender": [3]})

    new_state, events = apply_action(state, action)

    assert event_types(events) == [ATTACK_RESOLVED, TERRITORY_CAPTURED]
    resolved = events[0].payload
    assert resolved["outcome"] == OUTCOME_CONQUERED
    assert resolved["attacker_territory"] == "brazil"
    assert resolved["defender_faction"] == "red"
    assert events[1].payload == {"territory": "peru", "old_owner": "red", "new_owner": "blue", "troops": 4}

    assert new_state.territories[1].owner == "blue"
    assert new_state.territories[1].troops == 4
    assert new_state.territories[0].troops == 1
    assert new_state.game_over is False


def test_apply_action_does_not_mutate_input_state():
    state = three_way_state()
    before = state.to_dict()

    apply_action(state, attack("blue", 0, 1, {"attacker": [6, 4, 2], "defender": [3]}))

    assert state.to_dict() == before


def test_attack_repelled():
    state = make_state(("brazil", "blue", 2), ("peru", "red", 2), ("chile", "green", 2))

    new_state, events = apply_action(state, attack("blue", 0, 1, {"attacker": [3], "defender": [5, 1]}))

    assert events[0].payload["outcome"] == OUTCOME_REPELLED
    assert new_state.territories[0].troops == 1
    assert new_state.territories[1].troops == 2


def test_attack_from_any_faction_is_allowed():
    # The player drives attacks for every army on the map
    state = three_way_state()

    new_state, events = apply_action(state, attack("blue", 2, 1, {"attacker": [5], "defender": [1]}))

    assert event_types(events) == [ATTACK_RESOLVED, TERRITORY_CAPTURED]
    assert new_state.territories[1].owner == "green"


def test_classic_dice_mode_limits_attacker_to_two_dice():
    state = three_way_state(dice_mode=DICE_MODE_CLASSIC)

    with pytest.raises(ValueError):
        apply_action(state, attack("blue", 0, 3, {"attacker": [6, 5, 4], "defender": [1, 1]}))

    _, events = apply_action(state, attack("blue", 0, 3, {"attacker": [6, 5], "defender": [1, 1]}))
    assert events[0].payload["defender_losses"] == 2


@pytest.mark.parametrize("attacker_index,defender_index,reason", [
    (0, 0, REJECT_SAME_TERRITORY),
    (0, 4, REJECT_OUT_OF_RANGE),
    (-1, 1, REJECT_OUT_OF_RANGE),
    (1, 0, REJECT_INVALID_ATTACKER),
    (1, 3, REJECT_INVALID_ATTACKER),
    (3, 1, REJECT_SAME_FACTION),
])
def test_rejected_attack_is_an_event_not_an_error(attacker_index, defender_index, reason):
    state = three_way_state()

    new_state, events = apply_action(
        state, attack("blue", attacker_index, defender_index, {"attacker": [], "defender": []}))

    assert event_types(events) == [ATTACK_REJECTED]
    assert events[0].payload["reason"] == reason
    assert new_state.to_dict() == state.to_dict()


def test_out_of_range_checked_before_same_territory():
    state = three_way_state()
    _, events = apply_action(state, attack("blue", 9, 9, {}))
    assert events[0].payload["reason"] == REJECT_OUT_OF_RANGE


def test_wrong_dice_count_raises():
    state = three_way_state()
    with pytest.raises(ValueError):
        apply_action(state, attack("blue", 0, 1, {"attacker": [6, 4], "defender": [3]}))


def test_wrong_faction_raises():
    state = three_way_state()
    with pytest.raises(ValueError):
        apply_action(state, end_turn("red"))


def test_unknown_action_type_raises():
    state = three_way_state()
    with pytest.raises(ValueError):
        apply_action(state, Action(type="fortify", faction="blue", payload={}))


def test_no_actions_after_game_over():
    state = three_way_state()
    state.game_over = True
    state.end_reason = END_TURN_LIMIT
    with pytest.raises(ValueError):
        apply_action(state, end_turn("blue"))


# ===== Round end =====

def test_end_turn_reinforces_every_faction():
    state = three_way_state()

    new_state, events = apply_action(state, end_turn("blue"))

    assert new_state.turn_number == 2
    assert event_types(events) == [
        TURN_ENDED,
        REINFORCEMENTS_ALLOCATED,
        REINFORCEMENTS_ALLOCATED,
        REINFORCEMENTS_ALLOCATED,
        TURN_STARTED,
    ]
    totals = {e.payload["faction"]: e.payload["total"] for e in events if e.type == REINFORCEMENTS_ALLOCATED}
    assert totals == {"blue": 2, "red": 2, "green": 2}
    # blue: single territory takes both; red: one each
    assert [t.troops for t in new_state.territories] == [7, 2, 4, 4]


def test_turn_limit_ends_game_without_winner():
    state = three_way_state(max_turns=1)

    new_state, events = apply_action(state, end_turn("blue"))

    assert new_state.game_over is True
    assert new_state.end_reason == END_TURN_LIMIT
    assert new_state.winner is None
    assert event_types(events) == [TURN_ENDED, GAME_OVER]
    # No reinforcements once the limit is passed
    assert [t.troops for t in new_state.territories] == [5, 1, 2, 3]


def test_survive_turns_mission_completes_on_round_end():
    state = three_way_state(mission=Mission(kind=MISSION_SURVIVE_TURNS, target_value=3))

    state, events = apply_action(state, end_turn("blue"))
    assert MISSION_COMPLETED not in event_types(events)
    assert state.game_over is False

    state, events = apply_action(state, end_turn("blue"))
    assert event_types(events)[-2:] == [MISSION_COMPLETED, GAME_OVER]
    assert state.mission.completed is True
    assert state.end_reason == END_MISSION
    assert state.winner == "blue"


# ===== Game end after attacks =====

def test_mission_completion_after_attack_ends_game():
    state = three_way_state(mission=Mission(kind=MISSION_CONTROL_COUNT, target_value=2))

    new_state, events = apply_action(state, attack("blue", 0, 1, {"attacker": [6, 4, 2], "defender": [3]}))

    assert event_types(events) == [ATTACK_RESOLVED, TERRITORY_CAPTURED, MISSION_COMPLETED, GAME_OVER]
    assert new_state.game_over is True
    assert new_state.end_reason == END_MISSION
    assert new_state.winner == "blue"
    assert events[-1].payload["territory_counts"] == {"blue": 2, "green": 1, "red": 1}


def test_domination_ends_game():
    state = make_state(("brazil", "blue", 5), ("peru", "red", 1))

    new_state, events = apply_action(state, attack("blue", 0, 1, {"attacker": [6, 4, 2], "defender": [3]}))

    assert event_types(events)[-1] == GAME_OVER
    assert new_state.end_reason == END_DOMINATION
    assert new_state.winner == "blue"


def test_domination_by_opponent_is_a_loss():
    state = make_state(("brazil", "blue", 1), ("peru", "red", 4))

    new_state, _ = apply_action(state, attack("blue", 1, 0, {"attacker": [6, 6, 6], "defender": [1]}))

    assert new_state.end_reason == END_DOMINATION
    assert new_state.winner == "red"


# ===== Replay =====

def test_replay_matches_step_by_step():
    initial = three_way_state(mission=Mission(kind=MISSION_CONTROL_COUNT, target_value=4))
    actions = [
        attack("blue", 0, 1, {"attacker": [6, 4, 2], "defender": [3]}),
        attack("blue", 0, 0, {}),
        end_turn("blue"),
        attack("blue", 2, 3, {"attacker": [2, 2, 1], "defender": [5, 4]}),
        end_turn("blue"),
    ]

    state = initial
    stepwise = []
    for action in actions:
        state, events = apply_action(state, action)
        stepwise.extend(events)

    replayed, all_events = replay_from_actions(initial, actions)

    assert replayed.to_dict() == state.to_dict()
    assert [e.to_dict() for e in all_events] == [e.to_dict() for e in stepwise]
    assert initial.turn_number == 1


def test_out_of_range_die_raises():
    state = three_way_state()
    with pytest.raises(ValueError):
        apply_action(state, attack("blue", 0, 1, {"attacker": [6, 4, 0], "defender": [3]}))
    with pytest.raises(ValueError):
        apply_action(state, attack("blue", 0, 1, {"attacker": [6, 4, 2], "defender": [99]}))
