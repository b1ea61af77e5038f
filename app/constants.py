"""Enumerated values shared by services."""

SCHOLAR_STATUSES = ("active", "inactive", "on_hold")

# Staff request queue: open work first, decided work last
REQUEST_STATUS_RANK = {"pending": 0, "reviewed": 1, "commented": 2, "approved": 3, "rejected": 4}
