"""
Game state representation.
Territories are mutated in place by the core rules (combat, reinforcements);
the reducer works on a copy so callers keep the previous state.
Includes dict serialization for API responses.
"""

from dataclasses import dataclass, field
from copy import deepcopy
from typing import Any

from conquest.engine import DICE_MODE_EXTENDED


def _int(v: Any, default: int) -> int:
    try:
        return int(v) if v is not None else default
    except (TypeError, ValueError):
        return default


def _bool(v: Any, default: bool) -> bool:
    return bool(v) if v is not None else default


def _str_or_none(v: Any) -> str | None:
    return str(v) if v is not None and v != "" else None


@dataclass
class Territory:
    """A map cell with an owner faction and a troop count."""
    id: str  # Unique key within a game (e.g. "brazil")
    display_name: str
    owner: str  # faction_id, exactly one at any time
    troops: int  # Never negative
    # Owner at game start (used by conquer_faction missions); defaults to owner
    original_owner: str | None = None

    def __post_init__(self):
        if self.original_owner is None:
            self.original_owner = self.owner

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "owner": self.owner,
            "troops": self.troops,
            "original_owner": self.original_owner,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Territory":
        if not isinstance(data, dict):
            data = {}
        tid = str(data.get("id") or "")
        return cls(
            id=tid,
            display_name=str(data.get("display_name") or tid),
            owner=str(data.get("owner") or ""),
            troops=max(0, _int(data.get("troops"), 0)),
            original_owner=_str_or_none(data.get("original_owner")),
        )


@dataclass
class Mission:
    """
    A player-specific win condition.

    kind is one of the MISSION_* constants in conquest.engine.missions.
    target_faction is set for conquer_faction / eliminate_faction,
    target_value for control_count / survive_turns.
    completed is monotonic: once True it stays True.
    """
    kind: str
    target_faction: str | None = None
    target_value: int | None = None
    completed: bool = False
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "target_faction": self.target_faction,
            "target_value": self.target_value,
            "completed": self.completed,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Mission":
        if not isinstance(data, dict):
            data = {}
        tv = data.get("target_value")
        return cls(
            kind=str(data.get("kind") or ""),
            target_faction=_str_or_none(data.get("target_faction")),
            target_value=_int(tv, 0) if tv is not None else None,
            completed=_bool(data.get("completed"), False),
            description=str(data.get("description") or ""),
        )


@dataclass
class GameRules:
    """Per-game rule configuration (from ruleset preset + setup manifest overrides)."""
    dice_mode: str = DICE_MODE_EXTENDED  # "classic" (2-tier) or "extended" (3-tier)
    missions_enabled: bool = True
    max_turns: int = 15
    min_reinforcement: int = 2  # Minimum troops a faction receives per round
    mission_attempts: int = 10  # Bounded retries when picking a conquer_faction target
    extra_troops: int = 10  # Bonus troops scattered at random during setup

    def to_dict(self) -> dict[str, Any]:
        return {
            "dice_mode": self.dice_mode,
            "missions_enabled": self.missions_enabled,
            "max_turns": self.max_turns,
            "min_reinforcement": self.min_reinforcement,
            "mission_attempts": self.mission_attempts,
            "extra_troops": self.extra_troops,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameRules":
        if not isinstance(data, dict):
            data = {}
        default = cls()
        return cls(
            dice_mode=str(data.get("dice_mode") or default.dice_mode),
            missions_enabled=_bool(data.get("missions_enabled"), default.missions_enabled),
            max_turns=_int(data.get("max_turns"), default.max_turns),
            min_reinforcement=_int(data.get("min_reinforcement"), default.min_reinforcement),
            mission_attempts=_int(data.get("mission_attempts"), default.mission_attempts),
            extra_troops=_int(data.get("extra_troops"), default.extra_troops),
        )


@dataclass
class GameState:
    """Complete game state."""
    turn_number: int  # Starts at 1, incremented once per completed round
    player_faction: str  # Stable identity of the human player's faction
    territories: list[Territory]  # Ordered; indices are the attack coordinates
    rules: GameRules = field(default_factory=GameRules)
    # Active mission (None when the ruleset disables missions)
    mission: Mission | None = None
    # Faction that won (player on mission, dominant faction on domination), None otherwise
    winner: str | None = None
    game_over: bool = False
    # "mission", "domination" or "turn_limit" once game_over is True
    end_reason: str | None = None
    setup_id: str | None = None

    def copy(self) -> "GameState":
        """Return a deep copy of this game state."""
        return deepcopy(self)

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Convert GameState to a dictionary for JSON serialization."""
        return {
            "turn_number": self.turn_number,
            "player_faction": self.player_faction,
            "territories": [t.to_dict() for t in self.territories],
            "rules": self.rules.to_dict(),
            "mission": self.mission.to_dict() if self.mission else None,
            "winner": self.winner,
            "game_over": self.game_over,
            "end_reason": self.end_reason,
            "setup_id": self.setup_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameState":
        """Create GameState from a dictionary (handles missing/None fields)."""
        if not isinstance(data, dict):
            data = {}
        territories_data = data.get("territories") or []
        if not isinstance(territories_data, list):
            territories_data = []
        territories = [Territory.from_dict(t) for t in territories_data if isinstance(t, dict)]
        player = data.get("player_faction")
        if not player and territories:
            player = territories[0].owner
        return cls(
            turn_number=max(1, _int(data.get("turn_number"), 1)),
            player_faction=str(player or ""),
            territories=territories,
            rules=GameRules.from_dict(data.get("rules") or {}),
            mission=Mission.from_dict(data["mission"]) if data.get("mission") else None,
            winner=_str_or_none(data.get("winner")),
            game_over=_bool(data.get("game_over"), False),
            end_reason=_str_or_none(data.get("end_reason")),
            setup_id=_str_or_none(data.get("setup_id")),
        )
