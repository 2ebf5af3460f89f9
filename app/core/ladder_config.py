"""
Configuration constants for the tennis ladder.
"""

# Rating defaults for new players
DEFAULT_ELO = 1200

# Achievements offered to every player; unlocked client side and posted back
DEFAULT_ACHIEVEMENTS = [
    ("First Serve", "Play your first ladder match"),
    ("First Win", "Win your first ladder match"),
    ("Hot Streak", "Win three matches in a row"),
    ("Club Champion", "Hold the highest rating in your club"),
    ("Veteran", "Play twenty-five ladder matches"),
]
