"""Exit codes of `python -m onboarding`."""

WIZARD_COMPLETED = 0  # Closed from final-confirmation
WIZARD_CLOSED = 1  # Closed early or cancelled (Ctrl+C)
WIZARD_NO_TOKEN = 2  # No session token available
