"""Shared API constants."""

# Fallback pass fires when the primary pass yields at most this many tasks...
FALLBACK_MAX_PRIMARY_TASKS = 1
# ...and the input is at least this many lines or longer than this many characters.
FALLBACK_MIN_LINES = 8
FALLBACK_MIN_CHARS = 400

# Title preview for the synthesized no-loss task
CAPTURED_TITLE_MAX_CHARS = 80

# User-visible notices
AI_UNAVAILABLE_MESSAGE = "AI Service Unavailable - check connection."
AI_BUSY_MESSAGE = "AI service is busy, please try again in a moment."
SAVE_FAILED_MESSAGE = "Could not save the reviewed items - please try again."
