"""
Authentication
--------------
The store supports two configuration modes:

1. When get_store(interactive = True)
    User is prompted for the values below at runtime if any are missing from the environment.
2. When get_store(interactive = False) - Default
        SUPABASE_URL              https://myproject.supabase.co
        SUPABASE_ANON_KEY         <anon key from the project API settings>
        IDEA_BOARD_POLL_INTERVAL  seconds between change-feed polls (optional, default 2.0)

Users then sign in through authenticate() and every request carries their access token.

Dependencies:
    uv add requests

"""
#to avoid having to consider forward declarations, the below line must be first line in the file
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from getpass import getpass
from typing import Any

import requests

from idea_board_interface.records import ChangeEvent, Table
from idea_board_interface.store import (
    AuthError,
    RecordNotFoundError,
    RemoteStore,
    Session,
    StoreError,
)
from supabase_store_impl.supabase_watcher import PollingSubscription

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


class SupabaseError(StoreError):
    """Raised when the Supabase API returns an unexpected response or cannot be reached."""


def _eq_params(filters: dict | None) -> dict[str, str]:
    """Translate equality predicates into PostgREST query parameters."""
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            #PostgREST expects lowercase booleans
            params[column] = f"eq.{str(value).lower()}"
        else:
            params[column] = f"eq.{value}"
    return params


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        for key in ("msg", "message", "error_description", "error"):
            if payload.get(key):
                return str(payload[key])
    return str(payload)


def _build_session(payload: dict) -> Session:
    """Build a Session from a GoTrue token response."""
    user = payload.get("user") or {}
    return Session(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token", ""),
        user_id=str(user.get("id", "")),
        email=user.get("email") or "",
    )


# ---------------------------------------------------------------------------
# Store implementation
# ---------------------------------------------------------------------------

class SupabaseStore(RemoteStore):
    """
    Args:
        base_url:      Supabase project URL (e.g. 'https://myproject.supabase.co')
        anon_key:      Public anon key of the project
        poll_interval: Seconds between two polls of the change feed
    """

    _REST_PREFIX = "/rest/v1"
    _AUTH_PREFIX = "/auth/v1"

    def __init__(self, base_url: str, anon_key: str, *, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._poll_interval = poll_interval
        self._session: Session | None = None
        self._http = requests.Session()
        self._http.headers.update({
            "apikey": anon_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    # ------------------------------------------------------------------
    # Internal HTTP helpers
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _rest(self, table: Table | str) -> str:
        return f"{self._REST_PREFIX}/{Table(table).value}"

    def _auth(self, path: str) -> str:
        return f"{self._AUTH_PREFIX}{path}"

    def _headers(self, *, token: str | None = None, prefer: str | None = None) -> dict[str, str]:
        #signed out requests authenticate with the anon key itself
        bearer = token or (self._session.access_token if self._session else self._anon_key)
        headers = {"Authorization": f"Bearer {bearer}"}
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(self, method: str, path: str, *, token: str | None = None, prefer: str | None = None, **kwargs: Any) -> Any:
        try:
            response = self._http.request(
                method, self._url(path), headers=self._headers(token=token, prefer=prefer), **kwargs
            )
        except requests.RequestException as exc:
            raise SupabaseError(f"Request to {path} failed: {exc}") from exc
        self._raise_for_status(response)
        # PostgREST and GoTrue answer 204 No Content on several writes
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def _get(self, path: str, params: dict | None = None, *, token: str | None = None) -> Any:
        return self._request("GET", path, params=params, token=token)

    def _post(self, path: str, body: dict, params: dict | None = None, *, prefer: str | None = None) -> Any:
        return self._request("POST", path, json=body, params=params, prefer=prefer)

    def _patch(self, path: str, body: dict, params: dict | None = None, *, prefer: str | None = None) -> Any:
        return self._request("PATCH", path, json=body, params=params, prefer=prefer)

    def _put(self, path: str, body: dict) -> Any:
        return self._request("PUT", path, json=body)

    def _delete(self, path: str, params: dict | None = None) -> Any:
        return self._request("DELETE", path, params=params)

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        if response.ok:
            return
        if response.status_code in (401, 403):
            raise AuthError(f"Not authorized: {_error_detail(response)}")
        if response.status_code == 404:
            raise RecordNotFoundError(f"Resource not found: {response.url}")
        #GoTrue reports bad credentials and expired tokens as 400/422
        if "/auth/v1/" in str(response.url) and response.status_code in (400, 422):
            raise AuthError(_error_detail(response))
        raise SupabaseError(f"Supabase API error {response.status_code}: {_error_detail(response)}")

    # ------------------------------------------------------------------
    # RemoteStore contract: records
    # ------------------------------------------------------------------

    def select(
        self,
        table: Table,
        *,
        filters: dict | None = None,
        order: str | None = None,
        columns: str = "*",
        ) -> list[dict]:
        """Read rows through PostgREST."""
        params: dict[str, str] = {"select": columns, **_eq_params(filters)}
        if order:
            params["order"] = order
        data = self._get(self._rest(table), params=params)
        if not isinstance(data, list):
            return []
        return data

    def insert(self, table: Table, record: dict) -> dict:
        data = self._post(self._rest(table), record, prefer="return=representation")
        if isinstance(data, list):
            if not data:
                raise SupabaseError(f"Insert into {Table(table).value} returned no row")
            return data[0]
        return data

    def update(self, table: Table, partial: dict, filters: dict) -> list[dict]:
        """
        Notes on usage:
            PostgREST updates every row matching the filters, so an empty filter is refused
            rather than rewriting the whole table.
        """
        if not filters:
            raise ValueError("update requires at least one filter")
        data = self._patch(self._rest(table), partial, params=_eq_params(filters), prefer="return=representation")
        return data if isinstance(data, list) else []

    def delete(self, table: Table, filters: dict) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")
        self._delete(self._rest(table), params=_eq_params(filters))

    def subscribe(self, tables: Iterable[Table], callback: Callable[[ChangeEvent], None]) -> PollingSubscription:
        """Start a polling change feed over the given tables."""
        subscription = PollingSubscription(self, tables, callback, interval=self._poll_interval)
        subscription.start()
        return subscription

    # ------------------------------------------------------------------
    # RemoteStore contract: authentication
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    def authenticate(self, email: str, password: str) -> Session:
        data = self._post(
            self._auth("/token"),
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        self._session = _build_session(data)
        logger.info("signed in as %s", self._session.email or self._session.user_id)
        return self._session

    def sign_up(self, email: str, password: str, *, name: str) -> Session | None:
        """
        Notes on usage:
            The user's display name travels as user metadata; the backend creates the matching
            profiles row. When email confirmation is enabled GoTrue returns only the user, in
            which case no session is started and None is returned.
        """
        data = self._post(
            self._auth("/signup"),
            {"email": email, "password": password, "data": {"name": name}},
        )
        if not data.get("access_token"):
            logger.info("sign up for %s awaits email confirmation", email)
            return None
        self._session = _build_session(data)
        return self._session

    def sign_out(self) -> None:
        if self._session is None:
            return
        try:
            self._post(self._auth("/logout"), {})
        finally:
            #the local session is dropped even when the backend already forgot it
            self._session = None

    def send_password_reset(self, email: str) -> None:
        self._post(self._auth("/recover"), {"email": email})

    def set_session(self, access_token: str, refresh_token: str) -> Session:
        """
        Validates the access token against the user endpoint; an expired access token is
        exchanged through the refresh token grant.
        """
        try:
            user = self._get(self._auth("/user"), token=access_token)
        except AuthError:
            logger.info("access token rejected, refreshing session")
            data = self._post(
                self._auth("/token"),
                {"refresh_token": refresh_token},
                params={"grant_type": "refresh_token"},
            )
            self._session = _build_session(data)
            return self._session
        self._session = Session(
            access_token=access_token,
            refresh_token=refresh_token,
            user_id=str(user.get("id", "")),
            email=user.get("email") or "",
        )
        return self._session

    def verify_recovery_token(self, token: str) -> Session:
        data = self._post(self._auth("/verify"), {"type": "recovery", "token_hash": token})
        self._session = _build_session(data)
        return self._session

    def update_current_user(self, *, password: str) -> None:
        if self._session is None:
            raise AuthError("No active session to update")
        self._put(self._auth("/user"), {"password": password})


# ---------------------------------------------------------------------------
# Get store
# ---------------------------------------------------------------------------

def get_store(*, interactive: bool = False) -> SupabaseStore:
    """Return a configured SupabaseStore.

    Reads settings from environment variables. If "interactive = True" and
    any required variable is missing, the user will be prompted.

    Environment variables:
        SUPABASE_URL:              Project URL.
        SUPABASE_ANON_KEY:         Public anon key.
        IDEA_BOARD_POLL_INTERVAL:  Seconds between change-feed polls (optional).
    """
    base_url = os.environ.get("SUPABASE_URL", "")
    anon_key = os.environ.get("SUPABASE_ANON_KEY", "")
    raw_interval = os.environ.get("IDEA_BOARD_POLL_INTERVAL", "")

    if interactive:
        if not base_url:
            base_url = input("Supabase URL (e.g. https://myproject.supabase.co): ").strip()
        if not anon_key:
            anon_key = getpass("Supabase anon key: ")
    else:
        #collects the missing fields and raises an error alerting to the missing values
        missing = [name for name, val in [
            ("SUPABASE_URL", base_url),
            ("SUPABASE_ANON_KEY", anon_key),
        ] if not val]
        if missing:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Set them or call get_store(interactive=True)."
            )

    try:
        poll_interval = float(raw_interval) if raw_interval else DEFAULT_POLL_INTERVAL
    except ValueError as exc:
        raise EnvironmentError(f"IDEA_BOARD_POLL_INTERVAL must be a number of seconds, got {raw_interval!r}") from exc
    if poll_interval <= 0:
        raise EnvironmentError("IDEA_BOARD_POLL_INTERVAL must be positive")

    return SupabaseStore(base_url, anon_key, poll_interval=poll_interval)
