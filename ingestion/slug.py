"""
Human-readable facility slugs
"""

import uuid
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from slugify import slugify
from models.facility import Facility


def generate_slug(name: str, jurisdiction_slug: Optional[str] = None) -> str:
    """
    "Oak Hill Pool", "austin-tx" -> "oak-hill-pool-austin-tx"
    """
    base = slugify(name or "", lowercase=True) or "facility"
    return f"{base}-{jurisdiction_slug}" if jurisdiction_slug else base


def random_suffix_slug(slug: str) -> str:
    return f"{slug}-{uuid.uuid4().hex[:6]}"


async def slug_exists(session: AsyncSession, slug: str) -> bool:
    result = await session.execute(select(Facility.id).where(Facility.slug == slug).limit(1))
    return result.first() is not None


async def generate_unique_slug(session: AsyncSession, name: str, jurisdiction_slug: Optional[str] = None) -> str:
    """
    Base slug, or the first free "<base>-<n>" for n = 1, 2, ...

    Only checks committed and flushed rows; a concurrent writer can still
    take the same slug, which the resolver handles on insert.
    """
    base_slug = generate_slug(name, jurisdiction_slug)
    candidate = base_slug
    counter = 0

    while await slug_exists(session, candidate):
        counter += 1
        candidate = f"{base_slug}-{counter}"

    return candidate
