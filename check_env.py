#!/usr/bin/env python3
"""Helper script to check and create the .env file for the calendar revenue API."""

from pathlib import Path
import os
import sys

SECRET_KEYS = ("PESTCRM_SUPABASE_KEY",)

TEMPLATE = """# Supabase Configuration (required)
# Get these from: https://supabase.com/dashboard -> Your Project -> Settings -> API
PESTCRM_SUPABASE_URL=https://your-project-id.supabase.co
PESTCRM_SUPABASE_KEY=your-service-role-key-here

# API Configuration
PESTCRM_API_PREFIX=/api
PESTCRM_LOG_LEVEL=INFO
# PESTCRM_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated list

# Calendar engine
PESTCRM_CALENDAR_TIMEZONE=Europe/Istanbul
# decimal | float
PESTCRM_MONEY_MODE=decimal
# overlapping | strict
PESTCRM_SCHEDULE_MATCH_MODE=overlapping
"""


def _mask(line: str) -> str:
    name, sep, value = line.partition("=")
    if sep and name.strip() in SECRET_KEYS and len(value.strip()) > 20:
        value = value.strip()
        return f"{name}={value[:20]}...{value[-10:]}"
    return line


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Calendar Revenue API Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f".env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"Created template .env file at: {env_file}")
        print("Please edit .env and add your Supabase credentials.")
        return

    print(f"Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    for name in ("PESTCRM_SUPABASE_URL", "PESTCRM_SUPABASE_KEY"):
        value = os.getenv(name)
        if value:
            print(f"{name} (from environment): {value[:20]}...")
        else:
            print(f"{name} not found in environment")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from pestcrm.config import settings
    except Exception as e:
        print(f"Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    print(f"Calendar timezone: {settings.calendar_timezone}")
    print(f"Money mode: {settings.money_mode}")
    print(f"Schedule match mode: {settings.schedule_match_mode}")
    print()
    if settings.supabase_url and settings.supabase_key:
        print("SUCCESS: Supabase is configured!")
    else:
        print("ERROR: Supabase is NOT configured")
        print("1. Make sure .env file exists in project root")
        print("2. Make sure variables start with the PESTCRM_ prefix")
        print("3. Restart the backend after editing .env")


if __name__ == "__main__":
    main()
