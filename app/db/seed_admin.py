"""
Seed the default administrator account.

Run once after init, or let app startup call it. Credentials come from
DEFAULT_ADMIN_USERNAME / DEFAULT_ADMIN_PASSWORD (admin / admin123 when unset).
An existing account with that username is left as it is.
"""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.security import hash_password
from app.core.config import settings
from app.core.enums import Role
from app.core.logging import configure_logging
from app.db.schema import init_db
from app.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)


async def seed_default_admin(db: AsyncSession) -> bool:
    """Create the default admin if missing. Returns True when a user was created."""
    username = settings.default_admin_username
    result = await db.execute(select(User).where(User.username == username))
    if result.scalar_one_or_none() is not None:
        logger.info("Default admin %s already exists", username)
        return False

    db.add(
        User(
            username=username,
            password_hash=hash_password(settings.default_admin_password),
            role=Role.ADMIN.value,
        )
    )
    await db.commit()
    logger.info("Created default admin user: %s", username)
    return True


async def main() -> None:
    configure_logging()
    await init_db()
    async with AsyncSessionLocal() as db:
        try:
            await seed_default_admin(db)
        except Exception:
            await db.rollback()
            logger.exception("Admin seed failed")
            raise


if __name__ == "__main__":
    asyncio.run(main())
