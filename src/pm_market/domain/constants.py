from datetime import timedelta

MIN_DURATION = timedelta(hours=1)
MAX_DURATION = timedelta(days=365)

# Window after open_until in which a resolver must report the outcome.
RESOLUTION_WINDOW = timedelta(days=7)

MAX_QUESTION_LENGTH = 500
