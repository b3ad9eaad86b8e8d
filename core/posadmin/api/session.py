"""The ``/session`` document and initial brand selection."""

from __future__ import annotations

from loguru import logger

from ..models.session import SessionData
from ..storage.scope import ALL_BRANDS
from .client import SessionClient

SESSION_PATH = "/session"


async def fetch_session(client: SessionClient) -> SessionData:
    """Fetch the signed-in user's permissions and visible brands."""
    data = await client.get(SESSION_PATH)
    return SessionData.model_validate(data)


def choose_brand(session: SessionData, saved: str | None = None) -> str:
    """Pick the brand to scope requests to after sign-in.

    *saved* (the previously selected brand) wins when it is still
    visible.  Users allowed to see every brand fall back to
    :data:`ALL_BRANDS`; restricted users fall back to their first brand
    and are never given ``"ALL"``.
    """
    first = session.brands[0].id if session.brands else ALL_BRANDS
    allow_all = session.user.allow_all_brands
    fallback = ALL_BRANDS if allow_all else first

    choice = saved or fallback
    if choice == ALL_BRANDS and not allow_all:
        choice = first
    if choice != ALL_BRANDS and choice not in session.brand_ids:
        choice = fallback
    return choice


async def load_session(client: SessionClient) -> SessionData:
    """Fetch the session document and select the brand on *client*."""
    session = await fetch_session(client)
    brand = choose_brand(session, client.scope.value)
    client.scope.select(brand)
    logger.debug(f"Session loaded for {session.user.email or session.user.sub}; brand={brand}")
    return session
