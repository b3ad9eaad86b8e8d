"""Sign-in and sign-out against the back-office API.

Two login flavours exist:

* :func:`login` -- e-mail and password, used by the admin client.
* :func:`login_pin` -- a cashier PIN, optionally restricted to a branch.

Both return a :class:`~posadmin.models.user.LoginResult` and install the
issued token pair on the client.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from ..models.user import CredentialPair, LoginResult
from .client import SessionClient
from .errors import LoginError

LOGIN_PATH = "/auth/login"
PIN_LOGIN_PATH = "/auth/login-pin"


async def _login(client: SessionClient, path: str, payload: dict[str, Any]) -> LoginResult:
    resp = await client.raw_post(path, json=payload)
    if not resp.is_success:
        raise LoginError(_error_message(resp), resp.status_code)

    try:
        data = resp.json()
        pair = CredentialPair.model_validate(data)
        result = LoginResult.model_validate(data)
    except ValueError as exc:
        raise LoginError(f"Malformed login response: {exc}", resp.status_code) from exc

    client.set_credentials(pair)
    logger.info(f"Logged in as {result.email or result.id}")
    return result


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"Login failed (HTTP {resp.status_code})"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or f"HTTP {resp.status_code}")
    return f"Login failed (HTTP {resp.status_code})"


async def login(client: SessionClient, email: str, password: str) -> LoginResult:
    """Sign in with e-mail and password.

    Raises :class:`LoginError` when the server rejects the credentials.
    """
    return await _login(
        client,
        LOGIN_PATH,
        {
            "email": email,
            "password": password,
            "deviceId": client.settings["device_id"],
        },
    )


async def login_pin(
    client: SessionClient, pin: str, branch_id: str | None = None
) -> LoginResult:
    """Sign in with a cashier PIN."""
    payload: dict[str, Any] = {"pin": pin, "deviceId": client.settings["device_id"]}
    if branch_id:
        payload["branchId"] = branch_id
    return await _login(client, PIN_LOGIN_PATH, payload)


async def logout(client: SessionClient) -> None:
    """Sign out: tell the server and forget the local credentials."""
    await client.logout()
