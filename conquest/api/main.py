"""
FastAPI backend for Conquest Missions.
Single-player game sessions held in memory: one human player against passive factions.
"""

import random
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from conquest.engine.state import GameState
from conquest.engine.actions import Action, attack, end_turn
from conquest.engine.reducer import apply_action, attack_rejection_reason
from conquest.engine.definitions import (
    TerritoryDefinition,
    build_rules,
    list_setups,
    load_setup,
    validate_setup,
    RULESET_PRESETS,
)
from conquest.engine.queries import (
    get_attack_options,
    get_available_action_types,
    get_faction_stats,
    get_game_summary,
)
from conquest.engine.utils import generate_attack_rolls, initialize_game_state

app = FastAPI(
    title="Conquest Missions API",
    description="Backend API for Conquest Missions - dice-based territorial conquest with missions",
    version="1.0.0",
)

# CORS configuration for frontend
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = getattr(request, "method", "?")
    url = getattr(request, "url", None)
    path = url.path if url else "?"
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            print(f"[500] {method} {path}", flush=True)
        return response
    except Exception:
        print(f"[500] {method} {path} (exception)", flush=True)
        raise


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    """Return 500 with the error message so the frontend can show it."""
    import traceback
    traceback.print_exc()
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@dataclass
class GameSession:
    """One running game: its state, its own RNG and the action log."""
    state: GameState
    rng: random.Random
    actions: list[Action] = field(default_factory=list)


# In-memory games; nothing is persisted across runs
games: dict[str, GameSession] = {}


# ===== Pydantic Models =====

class TerritoryInput(BaseModel):
    id: str
    display_name: str | None = None
    owner: str
    troops: int


class CreateGameRequest(BaseModel):
    """Setup id from GET /setups. Omitted = default from conquest.config.DEFAULT_SETUP_ID."""
    setup_id: str | None = None
    ruleset: str | None = None
    seed: int | None = None
    # Custom map; owners must be factions of the chosen setup
    territories: list[TerritoryInput] | None = None
    player_faction: str | None = None
    dice_mode: str | None = None
    max_turns: int | None = Field(default=None, ge=1)
    missions_enabled: bool | None = None


class AttackRequest(BaseModel):
    attacker_index: int
    defender_index: int


# ===== Helper Functions =====

def get_session(game_id: str) -> GameSession:
    """Get a game session; raise 404 if not found."""
    session = games.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
    return session


def state_for_response(state: GameState) -> dict[str, Any]:
    """State dict including computed faction_stats and summary for the UI."""
    out = state.to_dict()
    out["faction_stats"] = get_faction_stats(state)
    out["summary"] = get_game_summary(state)
    return out


def _apply(session: GameSession, action: Action) -> dict[str, Any]:
    try:
        new_state, events = apply_action(session.state, action)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    session.state = new_state
    session.actions.append(action)
    return {
        "state": state_for_response(new_state),
        "events": [e.to_dict() for e in events],
    }


# ===== API Endpoints =====

@app.get("/")
def root():
    return {"message": "Conquest Missions API", "version": "1.0.0"}


@app.get("/setups")
def get_setups():
    """List shipped setups and ruleset presets."""
    return {"setups": list_setups(), "rulesets": sorted(RULESET_PRESETS)}


@app.post("/games")
def create_game(request: CreateGameRequest):
    """Create a new single-player game from a setup or a custom map."""
    try:
        setup = load_setup(request.setup_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    overrides = dict(setup["rules"])
    overrides.update({
        "dice_mode": request.dice_mode,
        "max_turns": request.max_turns,
        "missions_enabled": request.missions_enabled,
    })
    rng = random.Random(request.seed)
    events = []
    try:
        rules = build_rules(request.ruleset or setup["ruleset"], overrides)
        if request.territories is not None:
            territory_defs = [
                TerritoryDefinition(
                    id=t.id,
                    display_name=t.display_name or t.id,
                    owner=t.owner,
                    troops=t.troops,
                )
                for t in request.territories
            ]
            validate_setup(territory_defs, setup["factions"])
            player_faction = request.player_faction
        else:
            territory_defs = setup["territories"]
            player_faction = request.player_faction or setup["player_faction"]
        state = initialize_game_state(
            territory_defs, rules, rng,
            player_faction=player_faction,
            setup_id=setup["id"],
            events=events,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    game_id = str(uuid.uuid4())
    games[game_id] = GameSession(state=state, rng=rng)
    return {
        "game_id": game_id,
        "state": state_for_response(state),
        "events": [e.to_dict() for e in events],
        "factions": {fid: asdict(fd) for fid, fd in setup["factions"].items()},
    }


@app.get("/games/{game_id}")
def get_game_state(game_id: str):
    """Get current game state."""
    session = get_session(game_id)
    return {"game_id": game_id, "state": state_for_response(session.state)}


@app.get("/games/{game_id}/available-actions")
def get_available_actions(game_id: str):
    """Get available actions and legal attack pairings for the player."""
    state = get_session(game_id).state
    return {
        "faction": state.player_faction,
        "action_types": get_available_action_types(state),
        "attack_options": get_attack_options(state),
    }


@app.post("/games/{game_id}/attack")
def do_attack(game_id: str, request: AttackRequest):
    """
    Attack by territory position. Dice are rolled here from the game's RNG.
    Illegal attacks are not errors: the response carries an attack_rejected event.
    """
    session = get_session(game_id)
    state = session.state
    dice_rolls: dict[str, list[int]] = {"attacker": [], "defender": []}
    if not state.game_over and attack_rejection_reason(
            state, request.attacker_index, request.defender_index) is None:
        dice_rolls = generate_attack_rolls(
            state, request.attacker_index, request.defender_index, session.rng)
    action = attack(state.player_faction, request.attacker_index, request.defender_index, dice_rolls)
    return _apply(session, action)


@app.post("/games/{game_id}/end-turn")
def do_end_turn(game_id: str):
    """End the round: reinforcements for every faction, then mission and end checks."""
    session = get_session(game_id)
    return _apply(session, end_turn(session.state.player_faction))


@app.delete("/games/{game_id}")
def delete_game(game_id: str):
    get_session(game_id)
    del games[game_id]
    return {"message": f"Game {game_id} deleted"}
