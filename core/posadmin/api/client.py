"""Async HTTP client for the POS back-office API with session recovery."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Mapping

import httpx
from loguru import logger

from ..models.user import CredentialPair
from ..storage.config import DEFAULTS, AppSettings
from ..storage.scope import ALL_BRANDS, TenantScope
from ..storage.state import StateStore
from ..storage.tokens import TokenStore
from .errors import RefreshFailed, RequestFailed, SessionExpired
from .expiry import DEFAULT_MESSAGE, SessionExpiry


def apply_tenant_scope(url: str, brand_id: str | None, param: str = "brandId") -> str:
    """Return *url* with ``param=brand_id`` added to its query string.

    The URL is returned untouched when it already carries *param* or when
    *brand_id* is empty or :data:`ALL_BRANDS`, so applying the function
    repeatedly never duplicates the parameter.
    """
    if not brand_id or brand_id == ALL_BRANDS:
        return url
    parsed = httpx.URL(url)
    if param in parsed.params:
        return url
    return str(parsed.copy_add_param(param, brand_id))


def decode_body(response: httpx.Response) -> Any:
    """Decode a successful response body.

    JSON content types are parsed, anything else is returned as text and
    an empty or ``204`` body becomes ``None``.  A body that claims to be
    JSON but does not parse is returned as text.
    """
    if response.status_code == 204 or not response.content:
        return None
    content_type = response.headers.get("content-type", "").lower()
    if "application/json" in content_type or "+json" in content_type:
        try:
            return response.json()
        except ValueError:
            logger.warning(f"Malformed JSON body ({content_type}); returning text")
    return response.text


def auth_failure_reason(response: httpx.Response) -> str | None:
    """Extract the machine-readable reason code from a 401 body."""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    reason = data.get("code") or data.get("error")
    return str(reason) if reason else None


def _failure_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return DEFAULT_MESSAGE
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return DEFAULT_MESSAGE


def _log_refresh_outcome(task: asyncio.Task) -> None:
    # Also marks the exception as retrieved when every waiter gave up.
    if task.cancelled():
        logger.warning("Token refresh was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Token refresh failed: {exc}")
    else:
        logger.debug("Access token refreshed successfully")


class SessionClient:
    """HTTP client that owns the session credentials and brand scope.

    Every request gets the current bearer token.  ``GET`` requests against
    the API also get the selected brand as a query parameter.  A 401 whose
    reason is an expired access token triggers one shared refresh followed
    by a single retry.  Every other 401, a failed refresh or a second 401
    ends the session: credentials are cleared, the server is told about
    the logout in the background, :attr:`expiry` is raised and
    :class:`SessionExpired` propagates.

    Example::

        async with SessionClient() as client:
            orders = await client.get("/orders")
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        state: StateStore | None = None,
        tokens: TokenStore | None = None,
        scope: TenantScope | None = None,
        expiry: SessionExpiry | None = None,
        settings: Mapping[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings: dict[str, Any] = (
            AppSettings.load() if settings is None else {**DEFAULTS, **settings}
        )
        self.base_url = (base_url or self.settings["api_url"]).rstrip("/")

        if state is None and (tokens is None or scope is None):
            state = StateStore()
        self.tokens = tokens if tokens is not None else TokenStore(state)
        self.scope = scope if scope is not None else TenantScope(state)
        self.expiry = expiry if expiry is not None else SessionExpiry()

        self._refreshable = frozenset(self.settings["refreshable_reasons"])
        self._http = httpx.AsyncClient(
            timeout=self.settings["timeout"],
            follow_redirects=True,
            transport=transport,
        )
        self._refresh_task: asyncio.Task[CredentialPair] | None = None
        # Bumped whenever the session is replaced or torn down; a refresh
        # started under an older generation must not store its result.
        self._generation = 0
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    @property
    def credentials(self) -> CredentialPair | None:
        return self.tokens.credentials

    @property
    def access_token(self) -> str | None:
        pair = self.tokens.credentials
        return pair.access_token if pair else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def set_credentials(self, pair: CredentialPair) -> None:
        """Install a freshly issued pair (e.g. after login)."""
        self._generation += 1
        self.tokens.save(pair)
        self.expiry.reset()

    def clear_credentials(self) -> None:
        self._generation += 1
        self.tokens.clear()

    # ------------------------------------------------------------------
    # Request decoration
    # ------------------------------------------------------------------

    def url_for(self, path: str) -> str:
        """Resolve *path* against :attr:`base_url` unless it is absolute."""
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def _targets_api(self, url: str) -> bool:
        return url == self.base_url or url.startswith(
            (self.base_url + "/", self.base_url + "?")
        )

    def build_url(self, method: str, path: str) -> str:
        """Return the final URL for a request, brand scope included."""
        url = self.url_for(path)
        if method.upper() == "GET" and self._targets_api(url):
            url = apply_tenant_scope(url, self.scope.value, self.settings["tenant_param"])
        return url

    def _headers(self, extra: Any = None, token: str | None = None) -> httpx.Headers:
        # Caller headers (Content-Type included) are kept; only
        # Authorization is replaced.
        headers = httpx.Headers(extra)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(
        self, method: str, url: str, headers: Any, kwargs: dict[str, Any]
    ) -> tuple[httpx.Response, str | None]:
        token = self.access_token
        response = await self._http.request(
            method, url, headers=self._headers(headers, token), **kwargs
        )
        logger.debug(f"{method} {url} -> {response.status_code}")
        return response, token

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(self, method: str, path: str, *, headers: Any = None, **kwargs) -> Any:
        """Send an authenticated request and return the decoded body.

        Extra keyword arguments (``json``, ``data``, ``files``, ``params``,
        ``content``...) are passed through to :mod:`httpx`.

        Raises :class:`RequestFailed` for non-2xx responses and
        :class:`SessionExpired` when authentication cannot be recovered.
        Transport errors from :mod:`httpx` propagate unchanged.
        """
        method = method.upper()
        url = self.build_url(method, path)
        response, token = await self._send(method, url, headers, kwargs)
        if response.status_code == 401:
            response = await self._recover(method, url, headers, kwargs, response, token)
        if not response.is_success:
            raise RequestFailed(response.status_code, response.text)
        return decode_body(response)

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def raw_post(self, path: str, **kwargs) -> httpx.Response:
        """POST without credentials or recovery (login endpoints)."""
        return await self._http.post(self.url_for(path), **kwargs)

    # ------------------------------------------------------------------
    # Authentication recovery
    # ------------------------------------------------------------------

    async def _recover(
        self,
        method: str,
        url: str,
        headers: Any,
        kwargs: dict[str, Any],
        response: httpx.Response,
        sent_token: str | None,
    ) -> httpx.Response:
        reason = auth_failure_reason(response)
        if reason not in self._refreshable:
            logger.info(f"{method} {url} rejected ({reason or 'no reason'}); not refreshable")
            raise self._end_session(_failure_message(response))

        current = self.access_token
        if current and current != sent_token:
            # The pair was replaced while this request was in flight.
            logger.debug(f"Retrying {method} {url} with the already refreshed token")
        else:
            try:
                await self.refresh()
            except RefreshFailed as exc:
                raise self._end_session(_failure_message(response)) from exc

        retry, _ = await self._send(method, url, headers, kwargs)
        if retry.status_code == 401:
            logger.warning(f"{method} {url} still unauthorized after refresh")
            raise self._end_session(_failure_message(retry))
        return retry

    async def refresh(self) -> CredentialPair:
        """Refresh the access token, joining any refresh already running.

        Raises :class:`RefreshFailed` if the refresh call fails, in which
        case the stored credentials are left as they were.
        """
        task = self._refresh_task
        if task is None:
            task = asyncio.ensure_future(self._run_refresh())
            task.add_done_callback(_log_refresh_outcome)
            self._refresh_task = task
        # shield: a caller giving up must not cancel the shared refresh.
        return await asyncio.shield(task)

    async def _run_refresh(self) -> CredentialPair:
        try:
            return await self._exchange_refresh_token()
        finally:
            self._refresh_task = None

    async def _exchange_refresh_token(self) -> CredentialPair:
        generation = self._generation
        current = self.tokens.credentials
        if current is None or not current.refresh_token:
            raise RefreshFailed("No refresh token available")

        try:
            resp = await self._http.post(
                self.url_for(self.settings["refresh_path"]),
                json={
                    "refreshToken": current.refresh_token,
                    "deviceId": self.settings["device_id"],
                },
            )
        except httpx.HTTPError as exc:
            raise RefreshFailed(f"Refresh request failed: {exc}") from exc

        if not resp.is_success:
            raise RefreshFailed(f"Refresh rejected with HTTP {resp.status_code}", resp.status_code)

        try:
            fresh = CredentialPair.model_validate(resp.json())
        except ValueError as exc:
            raise RefreshFailed(f"Malformed refresh response: {exc}") from exc
        if not fresh.access_token:
            raise RefreshFailed("Refresh response carried no access token")

        if not fresh.refresh_token:
            fresh = fresh.model_copy(update={"refresh_token": current.refresh_token})
        if (
            generation != self._generation
            or self.expiry.expired
            or self.tokens.credentials != current
        ):
            logger.info("Session changed during refresh; discarding the new tokens")
            raise RefreshFailed("Session ended while the refresh was in flight")
        self.tokens.save(fresh)
        return fresh

    def _end_session(self, message: str) -> SessionExpired:
        """Tear the session down once and return the error to raise."""
        if not self.expiry.expired:
            token = self.access_token
            self.clear_credentials()
            self._spawn(self._notify_logout(token))
            self.expiry.expire(message)
        return SessionExpired(message)

    # ------------------------------------------------------------------
    # Logout
    # ------------------------------------------------------------------

    async def _notify_logout(self, token: str | None) -> None:
        try:
            await self._http.post(
                self.url_for(self.settings["logout_path"]),
                json={},
                headers=self._headers(token=token),
            )
        except httpx.HTTPError as exc:
            logger.debug(f"Logout notification failed: {exc}")

    async def logout(self) -> None:
        """End the session at the user's request."""
        token = self.access_token
        self.clear_credentials()
        await self._notify_logout(token)
        logger.info("Logged out")

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Wait for background notifications, then close the transport."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self._http.aclose()

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def __aenter__(self) -> SessionClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
