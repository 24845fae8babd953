"""Workflow limits and shared defaults."""

DEFAULT_LIST_LIMIT = 500

# Batch extensions above this many sessions need a superadmin to approve.
EXTENSION_ADMIN_SESSION_LIMIT = 3
# Approximation used when pushing a batch end date: one session per week.
EXTENSION_DAYS_PER_SESSION = 7

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
