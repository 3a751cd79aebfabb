"""Shared fixtures: an in-memory RemoteStore standing in for the hosted backend."""

import itertools

import pytest

from idea_board_interface.records import ChangeEvent, ChangeKind, Table
from idea_board_interface.store import AuthError, RemoteStore, Session, StoreError, Subscription


class FakeSubscription(Subscription):
    def __init__(self, tables, callback):
        self.tables = set(tables)
        self.callback = callback
        self._active = True

    @property
    def active(self):
        return self._active

    def unsubscribe(self):
        self._active = False


class InMemoryStore(RemoteStore):
    """Keeps rows in dicts and delivers change events synchronously (or on demand when deferred)."""

    def __init__(self):
        self.tables = {table: [] for table in Table}
        self.mutations = []
        self.fail_on = set()
        self.defer_events = False
        self.pending_events = []
        self.subscriptions = []
        self.users = {}
        self.reset_requests = []
        self._session = None
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # ---- helpers used by the tests ----
    def _stamp(self):
        return f"2024-01-01T00:00:00.{next(self._clock):06d}"

    def seed(self, table, **row):
        row.setdefault("id", f"{table.value}-{next(self._ids)}")
        row.setdefault("created_at", self._stamp())
        row.setdefault("updated_at", row["created_at"])
        self.tables[table].append(row)
        return row

    def sign_in_as(self, user_id, email=""):
        self._session = Session("access", "refresh", user_id, email)

    def deliver_pending(self, order=None):
        events, self.pending_events = self.pending_events, []
        if order is not None:
            events = [events[i] for i in order]
        for event in events:
            self._deliver(event)

    def _check(self, op):
        if op in self.fail_on:
            raise StoreError(f"{op} failed")

    def _emit(self, table, kind, record_id):
        event = ChangeEvent(table, kind, record_id)
        if self.defer_events:
            self.pending_events.append(event)
        else:
            self._deliver(event)

    def _deliver(self, event):
        for subscription in list(self.subscriptions):
            if subscription.active and event.table in subscription.tables:
                subscription.callback(event)

    @staticmethod
    def _matches(row, filters):
        return all(row.get(key) == value for key, value in (filters or {}).items())

    # ---- RemoteStore contract ----
    def select(self, table, *, filters=None, order=None, columns="*"):
        self._check("select")
        rows = [dict(r) for r in self.tables[Table(table)] if self._matches(r, filters)]
        if order:
            key, _, direction = order.partition(".")
            rows.sort(key=lambda r: r.get(key), reverse=direction == "desc")
        return rows

    def insert(self, table, record):
        self._check("insert")
        table = Table(table)
        row = self.seed(table, **record)
        self.mutations.append(("insert", table, dict(record)))
        self._emit(table, ChangeKind.INSERT, row["id"])
        return dict(row)

    def update(self, table, partial, filters):
        self._check("update")
        table = Table(table)
        self.mutations.append(("update", table, dict(partial), dict(filters)))
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(partial)
                row["updated_at"] = self._stamp()
                updated.append(dict(row))
        for row in updated:
            self._emit(table, ChangeKind.UPDATE, row["id"])
        return updated

    def delete(self, table, filters):
        self._check("delete")
        table = Table(table)
        self.mutations.append(("delete", table, dict(filters)))
        removed = [r for r in self.tables[table] if self._matches(r, filters)]
        self.tables[table] = [r for r in self.tables[table] if not self._matches(r, filters)]
        for row in removed:
            self._emit(table, ChangeKind.DELETE, row["id"])

    def subscribe(self, tables, callback):
        subscription = FakeSubscription(tables, callback)
        self.subscriptions.append(subscription)
        return subscription

    @property
    def session(self):
        return self._session

    def authenticate(self, email, password):
        user = self.users.get(email)
        if user is None or user["password"] != password:
            raise AuthError("Invalid login credentials")
        self._session = Session("access", "refresh", user["id"], email)
        return self._session

    def sign_up(self, email, password, *, name):
        user_id = f"user-{next(self._ids)}"
        self.users[email] = {"id": user_id, "password": password}
        self.seed(Table.PROFILES, id=user_id, name=name)
        self._session = Session("access", "refresh", user_id, email)
        return self._session

    def sign_out(self):
        self._session = None

    def send_password_reset(self, email):
        self.reset_requests.append(email)

    def set_session(self, access_token, refresh_token):
        if not access_token.startswith("valid"):
            raise AuthError("Invalid token")
        self._session = Session(access_token, refresh_token, "recovering-user")
        return self._session

    def verify_recovery_token(self, token):
        if token != "good-token":
            raise AuthError("Token has expired or is invalid")
        self._session = Session("access", "refresh", "recovering-user")
        return self._session

    def update_current_user(self, *, password):
        if self._session is None:
            raise AuthError("No active session to update")
        self.mutations.append(("update_user", self._session.user_id, password))


@pytest.fixture
def store():
    """An empty store with user u1 signed in."""
    fake = InMemoryStore()
    fake.seed(Table.PROFILES, id="u1", name="Ana")
    fake.seed(Table.PROFILES, id="u2", name="Bruno")
    fake.sign_in_as("u1", "ana@example.com")
    return fake


@pytest.fixture
def board_store(store):
    """Columns Backlog / Doing / Done; Backlog holds two ideas, Done holds one."""
    store.seed(Table.COLUMNS, id="backlog", name="Backlog", position=0, color="#888")
    store.seed(Table.COLUMNS, id="doing", name="Doing", position=1, color="#08f")
    store.seed(Table.COLUMNS, id="done", name="Done", position=2, color="#0a0")
    store.seed(Table.IDEAS, id="i1", title="Add login", description="Email and password",
               creator_id="u1", column_id="backlog", position_in_column=0)
    store.seed(Table.IDEAS, id="i2", title="Dark mode", description=None,
               creator_id="u2", column_id="backlog", position_in_column=1)
    store.seed(Table.IDEAS, id="i3", title="Export CSV", description="Download the board as LOGIN report",
               creator_id="u2", column_id="done", position_in_column=0)
    return store
