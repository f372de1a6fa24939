#!/usr/bin/env python3
"""OVH Diagnostic Bot — Application Runner.

Checks that the bot can start (secrets, settings, message catalogs)
and then launches the scheduler.

Usage:
    python scripts/run.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

BANNER = r"""
╔══════════════════════════════════════════════════════════╗
║               OVH Diagnostic Bot v1.0                    ║
║      Service status & expiry alerts for OVH customers    ║
╚══════════════════════════════════════════════════════════╝
"""

REQUIRED_LOCALES = ("en_GB", "fr_FR")


def _check_env() -> bool:
    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        from dotenv import load_dotenv
        load_dotenv(env_path)
        print(f"✅ Environment loaded from {env_path.name}")
        return True
    if os.environ.get("OVH_APPLICATION_KEY"):
        print("⚠️  No .env file, using the process environment")
        return True
    print("❌ .env file not found! Copy .env.example to .env and fill in your keys.")
    return False


def _check_settings() -> bool:
    from src.config import load_config

    try:
        config = load_config()
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ config/settings.yaml: {e}")
        return False

    print(f"✅ OVH endpoint: {config.ovh.endpoint}")
    print(
        f"✅ Status scan at minute {config.scheduler.status_minute} of hours "
        f"'{config.scheduler.status_hours}', expiry scan at "
        f"{config.scheduler.expires_hour:02d}:{config.scheduler.expires_minute:02d}"
    )
    Path(config.database_path).parent.mkdir(parents=True, exist_ok=True)
    print(f"✅ User store: {config.database_path}")
    return True


def _check_locales() -> bool:
    from src.i18n import get_translator

    available = get_translator().supported_locales
    missing = [locale for locale in REQUIRED_LOCALES if locale not in available]
    if missing:
        print(f"❌ Missing message catalogs: {', '.join(missing)}")
        return False
    print(f"✅ Message catalogs: {', '.join(available)}")
    return True


def preflight_checks() -> bool:
    """Run every check, reporting all failures rather than the first one.

    Returns:
        True if the bot can start.
    """
    os.chdir(str(PROJECT_ROOT))
    (PROJECT_ROOT / "logs").mkdir(exist_ok=True)

    results = [_check_env(), _check_settings(), _check_locales()]
    return all(results)


def main() -> None:
    """Entry point: run checks then start the application."""
    print(BANNER)

    print("═══ Pre-flight Checks ═══\n")
    if not preflight_checks():
        print("\n❌ Pre-flight checks failed! Fix the issues above and try again.")
        sys.exit(1)

    print("\n✅ All checks passed!\n")
    print("═══ Starting OVH Diagnostic Bot ═══\n")

    from src.main import main as app_main
    app_main()


if __name__ == "__main__":
    main()
