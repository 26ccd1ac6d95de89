"""초기 데이터 시드 스크립트 — 테이블과 관리자 계정 생성.

Seed script — Creates the tables and an initial administrator.
Run this script once to bootstrap a development database.

Usage:
    python -m app.seed

Creates:
    - 1개 관리자 계정: admin@example.com / admin123 (1 admin user)
"""

import asyncio

from loguru import logger
from sqlalchemy import select

from app.database import Base, async_session, engine
from app.logging_config import setup_logging
from app.models import User
from app.utils.password import hash_password

ADMIN_EMAIL: str = "admin@example.com"
ADMIN_PASSWORD: str = "admin123"


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database. Creates tables if they don't exist, then the
    admin user. Idempotent: skips when a user already exists.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        result = await db.execute(select(User).limit(1))
        if result.scalar_one_or_none():
            logger.info("Already seeded. Skipping.")
            return

        admin: User = User(
            email=ADMIN_EMAIL,
            name="Admin",
            password_hash=hash_password(ADMIN_PASSWORD),
            is_admin=True,
            should_change_password=True,
        )
        db.add(admin)
        await db.commit()
        logger.info("Seed complete: admin user {} / {}", ADMIN_EMAIL, ADMIN_PASSWORD)


if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed())
