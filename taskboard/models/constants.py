"""Constants for taskboard.

This module centralizes the default values and wire sentinels used throughout the application.
"""

import os


# Wire sentinels for an absent assignment. Inside the application an absent
# assignment is always None; these strings only appear in JSON.
UNASSIGNED_USER_ID = ""
UNASSIGNED_USER_NAME = "unassigned"

# Default result limits for list endpoints (None = unlimited)
DEFAULT_USER_LIMIT = None
DEFAULT_TASK_LIMIT = int(os.getenv("TASK_DEFAULT_LIMIT", "100"))

# Wire name of the document identity field
ID_FIELD = "_id"
