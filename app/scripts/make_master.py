"""Promote a user to master and create their profile.

Usage:
    python -m app.scripts.make_master --telegram-id=123456789 [--display-name="Anna"]

The user is registered as a client first if they have never logged in.
"""

import argparse
import asyncio
import sys

from app.core.database import async_session
from app.models.appointment import Appointment  # noqa: F401 ensure models are registered
from app.models.review import Review  # noqa: F401
from app.models.service import Service  # noqa: F401
from app.services.auth import become_master, login_or_register, get_user_by_telegram_id


async def make_master(telegram_id: str, display_name: str | None = None) -> None:
    async with async_session() as db:
        user = await get_user_by_telegram_id(db, telegram_id)
        if user is None:
            print(f"🆕 No user with telegram_id={telegram_id}, registering...")
            user = await login_or_register(db, telegram_id=telegram_id, first_name=display_name)

        if user.is_master:
            print(f"✅ User {user.id} is already a master.")
        user = await become_master(db, user, display_name=display_name)

        print(f"\n🎉 Master setup complete!")
        print(f"   User ID: {user.id}")
        print(f"   Telegram ID: {user.telegram_id}")
        print(f"   Display name: {user.master_profile.display_name or '-'}")


def main():
    """Parse CLI arguments and run the script."""
    parser = argparse.ArgumentParser(description="Promote a user to master")
    parser.add_argument("--telegram-id", required=True, help="Chat-bot user id")
    parser.add_argument("--display-name", default=None, help="Name shown to clients")
    args = parser.parse_args()

    if not args.telegram_id.isdigit():
        print("❌ Error: --telegram-id must be numeric.", file=sys.stderr)
        sys.exit(1)

    asyncio.run(make_master(args.telegram_id, args.display_name))


if __name__ == "__main__":
    main()
