"""
Remote store client

The hosted backend (auth + Postgres tables behind a REST gateway) is an
external collaborator. This module exposes the narrow surface the booking
core uses:

- auth: sign up, sign in, current session
- tables: insert, select (equality filters, ordering, range), update

RestRemoteStore talks to a PostgREST/GoTrue style API with requests.
InMemoryRemoteStore emulates it when REMOTE_STORE_URL is not configured.
"""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)

TABLES = (
    "properties",
    "bookings",
    "payment_methods",
    "wallet_transactions",
    "profiles",
    "conversations",
    "messages",
    "reviews",
    "destinations",
    "experiences",
)

DUPLICATE_USER_CODES = {"user_already_exists", "email_exists"}


class RemoteStoreError(Exception):
    """Error reported by the remote store (HTTP failure or rejected request)."""

    def __init__(self, message: str, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    @property
    def is_duplicate_user(self) -> bool:
        if self.code in DUPLICATE_USER_CODES:
            return True
        return "already registered" in self.message.lower()


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str


@dataclass(frozen=True)
class Session:
    user: AuthUser
    access_token: str = ""


class AuthGateway(ABC):
    @abstractmethod
    async def sign_up(self, email: str, password: str, first_name: str = "", last_name: str = "") -> AuthUser:
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Session:
        ...

    @abstractmethod
    async def get_session(self) -> Optional[Session]:
        ...


class TableGateway(ABC):
    @abstractmethod
    async def insert(self, values: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def select(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def update(self, values: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        ...


class RemoteStore(ABC):
    auth: AuthGateway

    @abstractmethod
    def table(self, name: str) -> TableGateway:
        ...


def _check_table(name: str) -> None:
    if name not in TABLES:
        raise ValueError(f"Unknown table: {name}")


# ---------------------------------------------------------------------------
# REST implementation
# ---------------------------------------------------------------------------


class _RestClient:
    def __init__(self, base_url: str, api_key: str, timeout: int = 30):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http = requests.Session()
        self.session: Optional[Session] = None

    def headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        token = self.session.access_token if self.session else self.api_key
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def request_json(self, kind, method: str, path: str, **kwargs):
        """request() for endpoints that answer with a JSON object (dict) or rows (list)"""
        body = self.request(method, path, **kwargs)
        if body is None:
            return kind()
        if not isinstance(body, kind):
            logger.error("Remote store returned %s for %s %s", type(body).__name__, method, path)
            raise RemoteStoreError("Unexpected response from the booking service")
        return body

    def request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Remote store request failed: %s %s: %s", method, path, e)
            raise RemoteStoreError(str(e)) from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = (
                body.get("msg")
                or body.get("message")
                or body.get("error_description")
                or response.text
                or f"HTTP {response.status_code}"
            )
            code = body.get("error_code") or body.get("code")
            logger.warning("Remote store rejected %s %s: %s", method, path, message)
            raise RemoteStoreError(message, status=response.status_code, code=code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error("Remote store returned a non-JSON body for %s %s", method, path)
            raise RemoteStoreError(
                "Unexpected response from the booking service",
                status=response.status_code,
            ) from e


class _RestAuth(AuthGateway):
    def __init__(self, client: _RestClient):
        self.client = client

    def _sign_up(self, email, password, first_name, last_name) -> AuthUser:
        body = self.client.request_json(
            dict,
            "POST",
            "/auth/v1/signup",
            headers=self.client.headers(),
            json={
                "email": email,
                "password": password,
                "data": {"first_name": first_name, "last_name": last_name},
            },
        )
        user = body.get("user") or body
        if not isinstance(user, dict) or not user.get("id"):
            raise RemoteStoreError("Failed to create account")
        auth_user = AuthUser(id=user["id"], email=user.get("email", email))
        if body.get("access_token"):
            self.client.session = Session(user=auth_user, access_token=body["access_token"])
        return auth_user

    def _sign_in(self, email, password) -> Session:
        body = self.client.request_json(
            dict,
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            headers=self.client.headers(),
            json={"email": email, "password": password},
        )
        user = body.get("user") or {}
        if not isinstance(user, dict) or not user.get("id") or not body.get("access_token"):
            raise RemoteStoreError("Invalid login credentials")
        self.client.session = Session(
            user=AuthUser(id=user["id"], email=user.get("email", email)),
            access_token=body["access_token"],
        )
        return self.client.session

    async def sign_up(self, email, password, first_name="", last_name=""):
        return await sync_to_async(self._sign_up)(email, password, first_name, last_name)

    async def sign_in(self, email, password):
        return await sync_to_async(self._sign_in)(email, password)

    async def get_session(self):
        return self.client.session


class _RestTable(TableGateway):
    def __init__(self, client: _RestClient, name: str):
        self.client = client
        self.path = f"/rest/v1/{name}"

    @staticmethod
    def _filter_params(filters):
        return {column: f"eq.{value}" for column, value in (filters or {}).items()}

    def _insert(self, values):
        rows = self.client.request_json(
            list,
            "POST",
            self.path,
            headers=self.client.headers({"Prefer": "return=representation"}),
            data=json.dumps(values, cls=DjangoJSONEncoder),
        )
        return dict(rows[0]) if rows and isinstance(rows[0], dict) else dict(values)

    def _select(self, filters, order_by, descending, limit, offset):
        params = self._filter_params(filters)
        params["select"] = "*"
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = limit
        if offset:
            params["offset"] = offset
        return self.client.request_json(list, "GET", self.path, params=params, headers=self.client.headers())

    def _update(self, values, filters):
        return self.client.request_json(
            list,
            "PATCH",
            self.path,
            params=self._filter_params(filters),
            headers=self.client.headers({"Prefer": "return=representation"}),
            data=json.dumps(values, cls=DjangoJSONEncoder),
        )

    async def insert(self, values):
        return await sync_to_async(self._insert)(values)

    async def select(self, filters=None, order_by=None, descending=False, limit=None, offset=0):
        return await sync_to_async(self._select)(filters, order_by, descending, limit, offset)

    async def update(self, values, filters):
        return await sync_to_async(self._update)(values, filters)


class RestRemoteStore(RemoteStore):
    def __init__(self, base_url: str, api_key: str, timeout: int = 30):
        self._client = _RestClient(base_url, api_key, timeout)
        self.auth = _RestAuth(self._client)

    def table(self, name: str) -> TableGateway:
        _check_table(name)
        return _RestTable(self._client, name)


# ---------------------------------------------------------------------------
# In-memory emulation
# ---------------------------------------------------------------------------


class _MemoryAuth(AuthGateway):
    def __init__(self):
        self.users: Dict[str, Dict[str, str]] = {}
        self.session: Optional[Session] = None

    async def sign_up(self, email, password, first_name="", last_name=""):
        if email in self.users:
            raise RemoteStoreError("User already registered", status=422, code="user_already_exists")
        user_id = str(uuid.uuid4())
        self.users[email] = {
            "id": user_id,
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
        }
        user = AuthUser(id=user_id, email=email)
        self.session = Session(user=user, access_token=uuid.uuid4().hex)
        return user

    async def sign_in(self, email, password):
        record = self.users.get(email)
        if not record or record["password"] != password:
            raise RemoteStoreError("Invalid login credentials", status=400, code="invalid_credentials")
        self.session = Session(user=AuthUser(id=record["id"], email=email), access_token=uuid.uuid4().hex)
        return self.session

    async def get_session(self):
        return self.session


class _MemoryTable(TableGateway):
    def __init__(self, rows: List[Dict[str, Any]]):
        self.rows = rows

    @staticmethod
    def _matches(row, filters):
        return all(row.get(column) == value for column, value in (filters or {}).items())

    async def insert(self, values):
        row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat()}
        row.update(values)
        self.rows.append(row)
        return dict(row)

    async def select(self, filters=None, order_by=None, descending=False, limit=None, offset=0):
        rows = [dict(row) for row in self.rows if self._matches(row, filters)]
        if order_by:
            rows.sort(
                key=lambda row: (row.get(order_by) is None, row.get(order_by) if row.get(order_by) is not None else 0),
                reverse=descending,
            )
        end = None if limit is None else offset + limit
        return rows[offset:end]

    async def update(self, values, filters):
        updated = []
        for row in self.rows:
            if self._matches(row, filters):
                row.update(values)
                updated.append(dict(row))
        return updated


class InMemoryRemoteStore(RemoteStore):
    """Process-local emulation of the remote store."""

    def __init__(self):
        self.auth = _MemoryAuth()
        self.tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in TABLES}

    def table(self, name: str) -> TableGateway:
        _check_table(name)
        return _MemoryTable(self.tables[name])


def build_remote_store() -> RemoteStore:
    """Create the remote store configured in settings."""
    base_url = getattr(settings, "REMOTE_STORE_URL", "")
    if not base_url:
        logger.warning("REMOTE_STORE_URL is not configured, using in-memory remote store")
        return InMemoryRemoteStore()

    return RestRemoteStore(
        base_url,
        getattr(settings, "REMOTE_STORE_API_KEY", ""),
        timeout=getattr(settings, "REMOTE_STORE_TIMEOUT", 30),
    )
