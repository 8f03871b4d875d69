"""Application constants."""

# Provider name stored on users created by password sign-up
EMAIL_PROVIDER = "email"

# Recent exercises ("today" view)
RECENT_EXERCISES_DAYS = 7
RECENT_EXERCISES_LIMIT = 20

# Listing limits
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
