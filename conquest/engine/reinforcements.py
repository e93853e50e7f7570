"""
Reinforcement allocation.
At the start of each round every faction receives max(minimum, territories owned)
troops, spread as evenly as possible over its territories in map order.
"""

from conquest.engine.state import Territory

MIN_REINFORCEMENT = 2


def group_by_faction(territories: list[Territory]) -> dict[str, list[Territory]]:
    """Partition territories by owner, preserving first-seen faction order."""
    groups: dict[str, list[Territory]] = {}
    for territory in territories:
        groups.setdefault(territory.owner, []).append(territory)
    return groups


def split_evenly(total: int, slots: int) -> list[int]:
    """
    Split total into slots shares; the first (total % slots) shares get one extra.

    Example: split_evenly(5, 3) -> [2, 2, 1]
    """
    if slots <= 0:
        return []
    base, remainder = divmod(total, slots)
    return [base + 1 if i < remainder else base for i in range(slots)]


def allocate_reinforcements(
    territories: list[Territory],
    min_reinforcement: int = MIN_REINFORCEMENT,
) -> dict[str, dict[str, int]]:
    """
    Add reinforcements to every faction's territories in place.

    Returns:
        faction_id -> {territory_id -> troops added}, in first-seen faction order
    """
    allocations: dict[str, dict[str, int]] = {}
    for faction_id, owned in group_by_faction(territories).items():
        reinforcement = max(min_reinforcement, len(owned))
        shares = split_evenly(reinforcement, len(owned))
        allocations[faction_id] = {}
        for territory, amount in zip(owned, shares):
            territory.troops += amount
            allocations[faction_id][territory.id] = amount
    return allocations
