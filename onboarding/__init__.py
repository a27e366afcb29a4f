"""Guided creation of one agent or a principal-plus-specialists team."""

from onboarding.constants import WIZARD_CLOSED, WIZARD_COMPLETED, WIZARD_NO_TOKEN

__all__ = ["WIZARD_COMPLETED", "WIZARD_CLOSED", "WIZARD_NO_TOKEN"]
