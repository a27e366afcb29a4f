"""Entry point: python -m onboarding."""

import asyncio
import logging
import sys
from pathlib import Path

import questionary
from dotenv import load_dotenv

from core.api import ApiClient
from core.logging_config import setup_logging
from core.secrets import keyring_available, lookup_token, store_token
from core.settings import get_setting, load_settings
from onboarding.constants import WIZARD_CLOSED, WIZARD_COMPLETED, WIZARD_NO_TOKEN
from onboarding.screens import screen_for
from onboarding.ui import STYLE, print_error
from onboarding.wizard import WizardContext, run_wizard

logger = logging.getLogger(__name__)


def _resolve_token(secret_name: str) -> str | None:
    """Session token from keyring or env; otherwise ask and offer to store it."""
    token, source = lookup_token(secret_name)
    if token:
        logger.info("Using session token from %s", source)
        return token
    token = questionary.password("Token de sessão:", style=STYLE).ask()
    if not token or not token.strip():
        return None
    token = token.strip()
    if keyring_available():
        remember = questionary.confirm(
            "Salvar o token no chaveiro do sistema?", default=True, style=STYLE
        ).ask()
        if remember and not store_token(secret_name, token):
            print_error("Não foi possível salvar o token no chaveiro.")
    return token


async def _run(project_root: Path, settings: dict, token: str) -> bool:
    templates_dir = get_setting(settings, "templates.dir") or None
    async with ApiClient(
        get_setting(settings, "api.base_url"),
        token,
        timeout=float(get_setting(settings, "api.timeout", 30.0)),
    ) as client:
        ctx = WizardContext.from_client(
            client,
            settings,
            templates_dir=(project_root / templates_dir) if templates_dir else None,
        )
        result = await run_wizard(ctx, screen_for)
    return result.completed


def main() -> int:
    """Run the wizard. Returns the process exit code."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    settings = load_settings()
    setup_logging(project_root, settings)

    token = _resolve_token(get_setting(settings, "api.token_secret", "AGENT_API_TOKEN"))
    if not token:
        print("\nNo session token available.")
        return WIZARD_NO_TOKEN

    try:
        completed = asyncio.run(_run(project_root, settings, token))
    except KeyboardInterrupt:
        print("\n\nWizard cancelled.")
        return WIZARD_CLOSED

    if completed:
        print("\n✅ Agents configured.\n")
        return WIZARD_COMPLETED
    print("\nWizard closed.")
    return WIZARD_CLOSED


if __name__ == "__main__":
    sys.exit(main())
