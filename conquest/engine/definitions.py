"""
Static definitions for factions and starting territories, plus ruleset presets.
All setup data lives under data/setups/<setup_id>/: factions.json, starting_setup.json,
and optional manifest.json (display_name, ruleset, rules overrides).
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from conquest.engine import DICE_MODES, DICE_MODE_CLASSIC, DICE_MODE_EXTENDED
from conquest.engine.state import GameRules

DATA_DIR = Path(__file__).parent.parent / "data"
SETUPS_DIR = DATA_DIR / "setups"

MIN_TERRITORIES = 3
MAX_TERRITORIES = 20
STARTING_TROOP_OPTIONS = (1, 2, 3, 4, 5)

# Ruleset presets. "adventurer" is a single attack phase with the 2-tier dice and
# no mission; "master" is the full game.
RULESET_PRESETS: dict[str, dict[str, Any]] = {
    "adventurer": {
        "dice_mode": DICE_MODE_CLASSIC,
        "missions_enabled": False,
        "max_turns": 1,
    },
    "master": {
        "dice_mode": DICE_MODE_EXTENDED,
        "missions_enabled": True,
        "max_turns": 15,
    },
}


def _default_setup_id() -> str:
    """Single place for default: conquest.config.DEFAULT_SETUP_ID."""
    from conquest.config import DEFAULT_SETUP_ID
    return DEFAULT_SETUP_ID


def _setup_dir(setup_id: str) -> Path:
    return SETUPS_DIR / setup_id


@dataclass
class FactionDefinition:
    """Defines immutable properties of a faction (an army color)."""
    id: str
    display_name: str
    color: str  # Hex color for UIs


@dataclass
class TerritoryDefinition:
    """Starting placement of a territory."""
    id: str
    display_name: str
    owner: str  # faction_id
    troops: int


def build_rules(ruleset: str | None = None, overrides: dict[str, Any] | None = None) -> GameRules:
    """
    Build GameRules from a preset name plus field overrides.

    Raises ValueError for an unknown preset or dice mode.
    """
    if ruleset is None:
        from conquest.config import DEFAULT_RULESET
        ruleset = DEFAULT_RULESET
    if ruleset not in RULESET_PRESETS:
        raise ValueError(f"Unknown ruleset: {ruleset}. Known: {', '.join(RULESET_PRESETS)}")
    data = dict(RULESET_PRESETS[ruleset])
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value
    rules = GameRules.from_dict(data)
    if rules.dice_mode not in DICE_MODES:
        raise ValueError(f"Unknown dice mode: {rules.dice_mode}")
    if rules.max_turns < 1:
        raise ValueError("max_turns must be at least 1")
    return rules


def validate_setup(
    territories: list[TerritoryDefinition],
    factions: dict[str, FactionDefinition],
) -> None:
    """
    Validate a starting map. Raises ValueError describing the first problem found.

    - MIN_TERRITORIES..MAX_TERRITORIES territories
    - unique territory ids
    - owners must be known factions
    - starting troops must be one of STARTING_TROOP_OPTIONS
    """
    if not MIN_TERRITORIES <= len(territories) <= MAX_TERRITORIES:
        raise ValueError(
            f"A map needs between {MIN_TERRITORIES} and {MAX_TERRITORIES} territories, "
            f"got {len(territories)}"
        )
    seen: set[str] = set()
    for t in territories:
        if not t.id:
            raise ValueError("Territory id must not be empty")
        if t.id in seen:
            raise ValueError(f"Duplicate territory: {t.id}")
        seen.add(t.id)
        if t.owner not in factions:
            raise ValueError(f"Unknown faction {t.owner} for territory {t.id}")
        if t.troops not in STARTING_TROOP_OPTIONS:
            raise ValueError(
                f"Starting troops for {t.id} must be one of {list(STARTING_TROOP_OPTIONS)}, got {t.troops}")


def parse_factions(data: dict) -> dict[str, FactionDefinition]:
    factions = {}
    for faction_id, entry in (data or {}).items():
        factions[faction_id] = FactionDefinition(
            id=entry.get("id", faction_id),
            display_name=entry.get("display_name", faction_id),
            color=entry.get("color", "#888888"),
        )
    return factions


def parse_territories(data: list) -> list[TerritoryDefinition]:
    territories = []
    for entry in data or []:
        tid = str(entry["id"])
        territories.append(TerritoryDefinition(
            id=tid,
            display_name=entry.get("display_name", tid),
            owner=str(entry["owner"]),
            troops=int(entry["troops"]),
        ))
    return territories


def list_setups() -> list[dict]:
    """Return [{ id, display_name, ruleset }, ...] for all setups (subdirs of data/setups/ with starting_setup.json)."""
    out = []
    if not SETUPS_DIR.exists():
        return out
    for d in sorted(SETUPS_DIR.iterdir()):
        if not d.is_dir() or not (d / "starting_setup.json").exists():
            continue
        manifest = _read_manifest(d)
        out.append({
            "id": manifest.get("id", d.name),
            "display_name": manifest.get("display_name", d.name),
            "ruleset": manifest.get("ruleset"),
        })
    return out


def _read_manifest(setup_dir: Path) -> dict:
    manifest_path = setup_dir / "manifest.json"
    if not manifest_path.exists():
        return {}
    try:
        with open(manifest_path, "r") as f:
            m = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return m if isinstance(m, dict) else {}


def load_setup(setup_id: str | None = None) -> dict:
    """
    Load setup by id (default: conquest.config.DEFAULT_SETUP_ID).

    Returns:
        { id, display_name, ruleset, rules, factions, territories, player_faction }
        where factions is id -> FactionDefinition and territories a validated
        list of TerritoryDefinition in map order.
    """
    if setup_id is None:
        setup_id = _default_setup_id()
    setup_dir = _setup_dir(setup_id)
    if not setup_dir.exists() or not setup_dir.is_dir():
        raise FileNotFoundError(f"Setup not found: {setup_id}")
    starting_path = setup_dir / "starting_setup.json"
    if not starting_path.exists():
        raise FileNotFoundError(f"starting_setup.json not found in setup: {setup_id}")
    factions_path = setup_dir / "factions.json"
    if not factions_path.exists():
        raise FileNotFoundError(f"factions.json not found in setup: {setup_id}")

    with open(starting_path, "r") as f:
        starting_setup = json.load(f)
    with open(factions_path, "r") as f:
        factions = parse_factions(json.load(f))

    territories = parse_territories(starting_setup.get("territories"))
    validate_setup(territories, factions)

    manifest = _read_manifest(setup_dir)
    rules = manifest.get("rules")
    return {
        "id": manifest.get("id", setup_id),
        "display_name": manifest.get("display_name", setup_id),
        "ruleset": manifest.get("ruleset"),
        "rules": rules if isinstance(rules, dict) else {},
        "factions": factions,
        "territories": territories,
        "player_faction": starting_setup.get("player_faction"),
    }
