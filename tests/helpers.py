"""Small factories and assertions shared by the Studio Hub tests."""

from __future__ import annotations

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from storage.models import Post, Service, Studio


def writes_to(recorded: List[str], table_name: str) -> List[str]:
    """Return the INSERT/DELETE statements that touched ``table_name``."""

    return [
        statement
        for statement in recorded
        if statement.startswith((f"INSERT INTO {table_name} ", f"DELETE FROM {table_name} "))
    ]


async def make_post(session: AsyncSession, user_id: str = "user-1", title: str = "Hello") -> Post:
    post = Post(user_id=user_id, title=title, content="body")
    session.add(post)
    await session.flush()
    return post


async def make_studio(
    session: AsyncSession,
    user_id: str = "user-1",
    name: str = "Pixel Forge",
    status: str = "approved",
) -> Studio:
    studio = Studio(user_id=user_id, name=name, status=status)
    session.add(studio)
    await session.flush()
    return studio


async def make_service(
    session: AsyncSession,
    studio_id: int,
    name: str = "Logo design",
    service_type: str = "design",
    price: float = 120.0,
) -> Service:
    service = Service(name=name, service_type=service_type, price=price, created_by=studio_id)
    session.add(service)
    await session.flush()
    return service
