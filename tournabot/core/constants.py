"""Global constants for the tournabot application."""

# Firestore collection names
TOURNAMENTS_COLLECTION = "tournaments"
PARTICIPANTS_COLLECTION = "participants"
TEAM_CATEGORIES_COLLECTION = "team_categories"
ADMINS_COLLECTION = "admins"
COUNTERS_COLLECTION = "counters"

# Counter documents
TOURNAMENT_ID_COUNTER = "tournament_id"

# Tournament size limits
MIN_PARTICIPANTS = 5
MAX_PARTICIPANTS = 6

# Playoff bracket size
PLAYOFF_TEAMS = 4

# Idle tournaments older than this are reaped
REAP_AFTER_HOURS = 24

# Group-stage points
POINTS_WIN = 3
POINTS_DRAW = 1
POINTS_LOSS = 0

# Season points per final placement
PLACE_FIRST = "first"
PLACE_SECOND = "second"
PLACE_THIRD = "third"
PLACE_GROUP = "group"

PLACEMENT_POINTS = {
    PLACE_FIRST: 8,
    PLACE_SECOND: 4,
    PLACE_THIRD: 2,
    PLACE_GROUP: 0,
}

# Bonus for a top-three finish in the group table
GROUP_TOP_THREE_BONUS = 2
GROUP_BONUS_PLACES = 3

# Participant names: letters and spaces only
PARTICIPANT_NAME_PATTERN = r"^[^\W\d_]+(?: [^\W\d_]+)*$"
