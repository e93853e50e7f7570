"""
Defaults used when a new game names neither a setup nor a ruleset.
"""
# Directory name under data/setups/ ("americas", "south_america").
DEFAULT_SETUP_ID = "americas"

# Ruleset preset used when neither the request nor the setup manifest names one.
DEFAULT_RULESET = "master"
