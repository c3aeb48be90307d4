"""
Shared constants used across the application.

Growth phase parameters live here so the calculator, templates and CLI agree
on names and lengths.
"""

# Vegetative phase has a fixed length (5 weeks)
VEGETATIVE_DAYS = 35

PHASE_VEGETATIVE = "vegetative"
PHASE_FLOWERING = "flowering"

# Display names for the phase tags
PHASE_NAMES = {
    PHASE_VEGETATIVE: "Vegetative phase",
    PHASE_FLOWERING: "Flowering phase",
}

# Short label prefixes: VT = vegetative day, BT = bloom (flowering) day
PHASE_LABEL_PREFIXES = {
    PHASE_VEGETATIVE: "VT",
    PHASE_FLOWERING: "BT",
}

DEFAULT_FLOWERING_WEEKS = 8

# Field length bounds for plant forms
MAX_NAME_LEN = 80
MAX_STRAIN_LEN = 80
MAX_NOTES_LEN = 2000
MAX_WATERING_NOTE_LEN = 280

DEFAULT_WATERING_NOTE = "Watered"

# Most recent watering records shown on the plant detail page
WATERING_HISTORY_DISPLAY_LIMIT = 100
