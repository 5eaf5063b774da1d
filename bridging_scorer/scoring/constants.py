"""Column names and fixed policy constants for the bridging scorer."""

# Rating frame columns
NOTE_ID_KEY = "noteId"
RATER_DID_KEY = "raterDid"
HELPFULNESS_KEY = "helpfulness"
NOTE_INDEX_KEY = "noteIndex"
RATING_COUNT_KEY = "ratingCount"

RATING_COLUMNS = [NOTE_ID_KEY, RATER_DID_KEY, HELPFULNESS_KEY]

# Eligibility
MIN_RATINGS_PER_NOTE = 5
MIN_RATINGS_PER_RATER = 10

# Matrix factorization
EPOCHS = 300
LEARNING_RATE = 0.01
REG_INTERCEPT = 0.15
REG_FACTOR = 0.03
GLOBAL_INTERCEPT_INIT = 0.5
FACTOR_INIT_SCALE = 0.05

# Adam
BETA1 = 0.9
BETA2 = 0.999
EPSILON = 1e-8

# Note status
CRH_INTERCEPT = 0.40
CRH_MAX_FACTOR = 0.50
CRNH_BASE = -0.05
CRNH_FACTOR_WEIGHT = 0.8

# Label planning
MAX_LABEL_OPS_PER_RUN = 50

# Non-finite parameter policies
NONFINITE_ZERO = "zero"
NONFINITE_RAISE = "raise"
