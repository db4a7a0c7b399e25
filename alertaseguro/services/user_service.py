import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.models.user import User


async def register_user(
    db: AsyncSession, email: str, display_name: str | None = None
) -> User:
    """Create an owner account. Credentials are handled upstream."""
    email = email.lower()
    if await get_user_by_email(db, email) is not None:
        raise ValueError("An account with this email already exists")

    user = User(email=email, display_name=display_name, push_token=None)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await db.get(User, user_id)


async def update_push_token(db: AsyncSession, user: User, token: str | None) -> User:
    # Overwrites the previous token; no history is kept
    user.push_token = token or None
    await db.flush()
    await db.refresh(user)
    return user
