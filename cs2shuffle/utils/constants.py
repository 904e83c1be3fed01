"""
Constants for the shuffle tournament core.
"""

# Tournament lifecycle (forward-only)
TOURNAMENT_SETUP = "setup"
TOURNAMENT_IN_PROGRESS = "in_progress"
TOURNAMENT_COMPLETED = "completed"
TOURNAMENT_STATUSES = [TOURNAMENT_SETUP, TOURNAMENT_IN_PROGRESS, TOURNAMENT_COMPLETED]

# Match lifecycle
MATCH_PENDING = "pending"
MATCH_READY = "ready"
MATCH_LIVE = "live"
MATCH_COMPLETED = "completed"
MATCH_STATUSES = [MATCH_PENDING, MATCH_READY, MATCH_LIVE, MATCH_COMPLETED]

# Round limit policy
ROUND_LIMIT_FIRST_TO_13 = "first_to_13"
ROUND_LIMIT_MAX_ROUNDS = "max_rounds"
ROUND_LIMIT_TYPES = [ROUND_LIMIT_FIRST_TO_13, ROUND_LIMIT_MAX_ROUNDS]

OVERTIME_ENABLED = "enabled"
OVERTIME_DISABLED = "disabled"
OVERTIME_MODES = [OVERTIME_ENABLED, OVERTIME_DISABLED]

# Match sides
TEAM1 = "team1"
TEAM2 = "team2"
SIDE_TEAM1_CT = "team1_ct"
SIDE_TEAM2_CT = "team2_ct"

# Tournament defaults
DEFAULT_TEAM_SIZE = 5
DEFAULT_MAX_ROUNDS = 24
DEFAULT_OPTIMIZATION_PASSES = 10

# Skill score defaults (FaceIT-style admin "ELO")
DEFAULT_ELO = 3000

# First-to-13 server settings: 24 regulation rounds, MR3 overtime with 10k money
FIRST_TO_13_MAXROUNDS = 24
OVERTIME_MAXROUNDS = 3
OVERTIME_STARTMONEY = 10000

# Skill score <-> rating mapping: 3000 admin ELO == mu 25
ELO_OFFSET = 500
ELO_SCALE = 100
DEFAULT_SIGMA = 8.333
MIN_SIGMA = 2.0

# Per-player outcome of a bulk registration call
REGISTRATION_REGISTERED = "registered"
REGISTRATION_ALREADY_REGISTERED = "already_registered"
REGISTRATION_UNREGISTERED = "unregistered"
REGISTRATION_FAILED = "failed"

# Rating templates: per-stat weights added on top of the win/loss rating
DEFAULT_RATING_TEMPLATE_ID = "pure-win-loss"
TEMPLATE_STATS = ("kills", "deaths", "assists", "adr")
