"""
Territorial conquest engine: dice combat, reinforcements and missions.
Core engine without web framework or UI.
"""

DICE_SIDES = 6

# Attacker dice tiering.
# classic:  2 dice with 3+ troops, else 1
# extended: min(3, troops - 1) dice
DICE_MODE_CLASSIC = "classic"
DICE_MODE_EXTENDED = "extended"
DICE_MODES = (DICE_MODE_CLASSIC, DICE_MODE_EXTENDED)
