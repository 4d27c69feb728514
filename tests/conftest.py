"""Pytest configuration and in-memory Supabase fakes."""

import asyncio
import itertools
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from postgrest.exceptions import APIError
from supabase import AuthApiError

from app.modules.identity.repository import IdentityRepository
from app.modules.identity.resolver import IdentityResolver


UNIQUE_KEYS = {
    "profiles": ("user_id",),
    "user_roles": ("user_id",),
    "supplier_profiles": ("user_id",),
    "vendor_profiles": ("user_id",),
    "favorites": ("vendor_id", "supplier_id"),
}

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeDatabase:
    def __init__(self):
        self.tables = defaultdict(list)
        self.failures = {}
        self.calls = []
        self._clock = itertools.count()

    def fail(self, table, op, exc=None):
        self.failures[(table, op)] = exc or APIError({
            "message": f"{op} on {table} unavailable",
            "code": "08006",
            "hint": None,
            "details": None,
        })

    def heal(self):
        self.failures.clear()

    def rows(self, table):
        return list(self.tables[table])

    def add(self, table, **row):
        row.setdefault("id", str(uuid4()))
        row.setdefault("created_at", self._now())
        self.tables[table].append(row)
        return row

    def _now(self):
        return (_EPOCH + timedelta(seconds=next(self._clock))).isoformat()


class FakeQuery:
    def __init__(self, db, table):
        self._db = db
        self._table = table
        self._op = None
        self._columns = "*"
        self._payload = None
        self._filters = []
        self._order = None
        self._range = None
        self._limit = None

    def select(self, columns="*"):
        self._op = "select"
        self._columns = columns
        return self

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, size):
        self._limit = size
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self._filters)

    def _project(self, row):
        if self._columns == "*":
            return dict(row)
        return {c.strip(): row.get(c.strip()) for c in self._columns.split(",")}

    async def execute(self):
        # Every round trip is a suspension point.
        await asyncio.sleep(0)
        self._db.calls.append((self._table, self._op))
        failure = self._db.failures.get((self._table, self._op))
        if failure is not None:
            raise failure

        rows = self._db.tables[self._table]
        if self._op == "select":
            data = [r for r in rows if self._matches(r)]
            if self._order:
                column, desc = self._order
                data.sort(key=lambda r: r.get(column) or "", reverse=desc)
            if self._range:
                data = data[self._range[0]:self._range[1] + 1]
            if self._limit is not None:
                data = data[:self._limit]
            return SimpleNamespace(data=[self._project(r) for r in data])

        if self._op == "insert":
            keys = UNIQUE_KEYS.get(self._table, ())
            for existing in rows:
                if keys and all(existing.get(k) == self._payload.get(k) for k in keys):
                    raise APIError({
                        "message": f'duplicate key value violates unique constraint "{self._table}_key"',
                        "code": "23505",
                        "hint": None,
                        "details": None,
                    })
            row = self._db.add(self._table, **dict(self._payload))
            return SimpleNamespace(data=[dict(row)])

        if self._op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self._db.tables[self._table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed)

        raise AssertionError(f"unsupported operation {self._op}")


class FakeSubscription:
    def __init__(self, auth, callback):
        self._auth = auth
        self._callback = callback

    def unsubscribe(self):
        if self._callback in self._auth.subscribers:
            self._auth.subscribers.remove(self._callback)


class FakeAuth:
    """Mimics the async Supabase auth client, including synchronous event fan-out."""

    def __init__(self):
        self.users = {}
        self.session = None
        self.subscribers = []
        self.session_gate = None
        self.sign_up_calls = []
        self.closed = False

    def on_auth_state_change(self, callback):
        self.subscribers.append(callback)
        return FakeSubscription(self, callback)

    def emit(self, event, session):
        for callback in list(self.subscribers):
            callback(event, session)

    async def get_session(self):
        snapshot = self.session
        if self.session_gate is not None:
            await self.session_gate.wait()
        return snapshot

    def make_session(self, user):
        return SimpleNamespace(
            access_token=f"token-{user.id}",
            expires_at=2000000000,
            user=user,
        )

    async def sign_up(self, credentials):
        self.sign_up_calls.append(credentials)
        email = credentials["email"]
        if email in self.users:
            raise AuthApiError("User already registered", 422, "user_already_exists")
        user = SimpleNamespace(id=str(uuid4()), email=email, user_metadata={}, app_metadata={})
        self.users[email] = (user, credentials["password"])
        self.session = self.make_session(user)
        self.emit("SIGNED_IN", self.session)
        return SimpleNamespace(user=user, session=self.session)

    async def sign_in_with_password(self, credentials):
        entry = self.users.get(credentials["email"])
        if entry is None or entry[1] != credentials["password"]:
            raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        self.session = self.make_session(entry[0])
        self.emit("SIGNED_IN", self.session)
        return SimpleNamespace(user=entry[0], session=self.session)

    async def sign_out(self):
        self.session = None
        self.emit("SIGNED_OUT", None)

    async def get_user(self, jwt=None):
        for user, _ in self.users.values():
            if jwt == f"token-{user.id}":
                return SimpleNamespace(user=user)
        raise AuthApiError("invalid JWT: unable to parse or verify signature", 401, "bad_jwt")

    async def close(self):
        self.closed = True


class FakePostgrest:
    def __init__(self):
        self.token = None
        self.closed = False

    def auth(self, token):
        self.token = token

    async def aclose(self):
        self.closed = True


class FakeSupabase:
    def __init__(self, db=None, auth=None):
        self.db = db or FakeDatabase()
        self.auth = auth or FakeAuth()
        self.postgrest = FakePostgrest()

    def table(self, name):
        return FakeQuery(self.db, name)


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def supabase(db, auth):
    return FakeSupabase(db, auth)


@pytest.fixture
def repository(supabase):
    return IdentityRepository(supabase)


@pytest.fixture
def resolver(repository):
    return IdentityResolver(repository)


@pytest.fixture
def seed_user(db):
    """Insert a user's profile chain directly; pass role=None / role_profile=False to stop early."""
    def _seed(role="vendor", role_profile=True, user_id=None):
        user_id = user_id or str(uuid4())
        db.add("profiles", user_id=user_id, email=f"{user_id}@x.com", full_name="Test", city="rabat")
        if role is None:
            return user_id
        db.add("user_roles", user_id=user_id, role=role)
        if role_profile and role == "supplier":
            db.add("supplier_profiles", user_id=user_id, company_name="Atlas Wholesale", category="food",
                   rating_average=4.5, rating_count=2, is_verified=True)
        elif role_profile and role == "vendor":
            db.add("vendor_profiles", user_id=user_id, store_name="Corner Shop")
        return user_id
    return _seed
