from __future__ import annotations

from types import SimpleNamespace

import pytest

from backend.identity_access.supabase_gateway import GatewayError, SupabaseGateway


class _Query:
    """Records a PostgREST builder chain and returns a canned response."""

    def __init__(self, log: list, response=None, error: Exception | None = None):
        self.log = log
        self.response = response
        self.error = error

    def __getattr__(self, name):
        def _step(*args, **kwargs):
            self.log.append((name, args, kwargs))
            return self

        return _step

    def execute(self):
        self.log.append(("execute", (), {}))
        if self.error is not None:
            raise self.error
        return self.response


class _AuthApiError(Exception):
    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.message = message
        self.status = status


class _FakeClient:
    def __init__(self, *, response=None, error: Exception | None = None, auth=None):
        self.log: list = []
        self.tables: list[str] = []
        self._response = response
        self._error = error
        self.auth = auth

    def table(self, name: str):
        self.tables.append(name)
        return _Query(self.log, self._response, self._error)


def test_find_one_builds_maybe_single_query():
    client = _FakeClient(response=SimpleNamespace(data={"id": "u1", "role": "global_admin"}))
    gw = SupabaseGateway(client)

    row = gw.find_one("admins", column="id", value="u1", columns="role")

    assert row == {"id": "u1", "role": "global_admin"}
    assert client.tables == ["admins"]
    assert [step[0] for step in client.log] == ["select", "eq", "maybe_single", "execute"]
    assert client.log[0][1] == ("role",)
    assert client.log[1][1] == ("id", "u1")


@pytest.mark.parametrize("response", [None, SimpleNamespace(data=None), {"data": []}])
def test_find_one_absent_row_is_none(response):
    assert SupabaseGateway(_FakeClient(response=response)).find_one("admins", column="id", value="x") is None


def test_select_rows_orders_descending():
    rows = [{"id": 2, "created_at": "2024-02-01"}, {"id": 1, "created_at": "2024-01-01"}]
    client = _FakeClient(response=SimpleNamespace(data=rows))

    out = SupabaseGateway(client).select_rows("commissions", column="user_id", value="u1", order_by="created_at")

    assert out == rows
    assert ("order", ("created_at",), {"desc": True}) in client.log


def test_upsert_and_delete_chains():
    client = _FakeClient(response=SimpleNamespace(data=[]))
    gw = SupabaseGateway(client)

    gw.upsert("user_profiles", {"id": "u1", "email": "a@example.com", "name": None})
    gw.delete("admins", column="id", value="u1")

    assert ("upsert", ({"id": "u1", "email": "a@example.com", "name": None},), {"on_conflict": "id"}) in client.log
    assert ("delete", (), {}) in client.log
    assert ("eq", ("id", "u1"), {}) in client.log
    assert client.tables == ["user_profiles", "admins"]


def test_query_errors_are_wrapped():
    client = _FakeClient(error=RuntimeError("permission denied for table admins"))
    with pytest.raises(GatewayError) as ei:
        SupabaseGateway(client).upsert("admins", {"id": "u1"})
    assert "permission denied" in ei.value.message
    assert ei.value.status is None


def test_from_underscore_client_shape():
    class _LegacyClient:
        def __init__(self):
            self.log: list = []

        def from_(self, name: str):
            return _Query(self.log, SimpleNamespace(data={"id": "u1"}))

    assert SupabaseGateway(_LegacyClient()).find_one("admins", column="id", value="u1") == {"id": "u1"}


def test_get_user_accepts_user_response_and_dict():
    user = SimpleNamespace(id="u1", email="a@example.com")
    auth = SimpleNamespace(get_user=lambda token: SimpleNamespace(user=user))
    ident = SupabaseGateway(_FakeClient(auth=auth)).get_user("tok")
    assert ident is not None and ident.id == "u1" and ident.email == "a@example.com"

    auth_dict = SimpleNamespace(get_user=lambda token: {"user": {"id": "u2", "email": None}})
    ident2 = SupabaseGateway(_FakeClient(auth=auth_dict)).get_user("tok")
    assert ident2 is not None and ident2.id == "u2" and ident2.email is None

    auth_none = SimpleNamespace(get_user=lambda token: None)
    assert SupabaseGateway(_FakeClient(auth=auth_none)).get_user("tok") is None


def test_get_user_error_keeps_status():
    def _raise(token):
        raise _AuthApiError("invalid JWT", 401)

    gw = SupabaseGateway(_FakeClient(auth=SimpleNamespace(get_user=_raise)))
    with pytest.raises(GatewayError) as ei:
        gw.get_user("tok")
    assert ei.value.message == "invalid JWT"
    assert ei.value.status == 401


def test_invite_and_list_users():
    invited = SimpleNamespace(user=SimpleNamespace(id="new", email="n@example.com"))
    calls = []

    def _list_users(page, per_page):
        calls.append((page, per_page))
        return [SimpleNamespace(id="u1", email="a@example.com"), SimpleNamespace(id=None, email="broken")]

    admin = SimpleNamespace(invite_user_by_email=lambda email: invited, list_users=_list_users)
    gw = SupabaseGateway(_FakeClient(auth=SimpleNamespace(admin=admin)))

    assert gw.invite_user_by_email("n@example.com").id == "new"
    users = gw.list_users(page=2, per_page=100)
    assert [u.id for u in users] == ["u1"]
    assert calls == [(2, 100)]


def test_invite_error_carries_message_and_status():
    def _invite(email):
        raise _AuthApiError("A user with this email address has already been registered", 422)

    gw = SupabaseGateway(_FakeClient(auth=SimpleNamespace(admin=SimpleNamespace(invite_user_by_email=_invite))))
    with pytest.raises(GatewayError) as ei:
        gw.invite_user_by_email("a@example.com")
    assert "already been registered" in ei.value.message
    assert ei.value.status == 422
