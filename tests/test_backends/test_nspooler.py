"""Tests for the nspooler backend."""

import json

import pytest

from floaty.backends.nspooler import NspoolerBackend
from floaty.errors import (
    AuthError,
    ModifyError,
    PoolMaximumExceededError,
    UnsupportedModificationError,
    UnsupportedOperationError,
)
from floaty.models.config import ServiceConfig
from floaty.models.modify import ModifyPatch


URL = "https://nspooler.example.com"


def make_backend(pooler):
    return NspoolerBackend(URL, transport=pooler.transport)


def test_list_returns_sorted_platforms(fake_pooler):
    pooler = fake_pooler({
        ("GET", "/status"): (200, {
            "ok": True,
            "solaris-11-sparc": {"available_hosts": 1, "total_hosts": 5},
            "aix-7.1-power": {"available_hosts": 0, "total_hosts": 2},
        }),
    })
    backend = make_backend(pooler)

    assert backend.list() == ["aix-7.1-power", "solaris-11-sparc"]
    assert backend.list("solaris") == ["solaris-11-sparc"]


def test_list_active_reads_reserved_hosts(fake_pooler):
    pooler = fake_pooler({
        ("GET", "/token/abc"): (200, {"ok": True, "reserved_hosts": ["sol11-7.example.com"]}),
    })

    assert make_backend(pooler).list_active("abc", "jdoe") == ["sol11-7.example.com"]


def test_retrieve_posts_counted_os_list(fake_pooler):
    body = {"ok": True, "solaris-11-sparc": {"hostname": ["sol11-4.example.com"]}}
    pooler = fake_pooler({("POST", "/host/solaris-11-sparc=1&aix-7.1-power=2"): (200, body)})

    result = make_backend(pooler).retrieve(
        {"solaris-11-sparc": 1, "aix-7.1-power": 2}, "abc", "jdoe", ServiceConfig(type="nspooler")
    )

    assert result == body


def test_retrieve_over_pool_maximum(fake_pooler):
    pooler = fake_pooler({("POST", "/host/aix-7.1-power=9"): (403, {"ok": False})})

    with pytest.raises(PoolMaximumExceededError):
        make_backend(pooler).retrieve({"aix-7.1-power": 9}, "abc", "jdoe", ServiceConfig(type="nspooler"))


def test_modify_sends_reservation_reason(fake_pooler):
    pooler = fake_pooler({("PUT", "/host/sol11-7.example.com"): (200, {"ok": True})})

    result = make_backend(pooler).modify("sol11-7.example.com", "abc", ModifyPatch(reason="Testing"))

    assert result == {"ok": True}
    assert json.loads(pooler.requests[0].content) == {"reserved_for_reason": "Testing"}


def test_modify_rejects_lifetime(fake_pooler):
    pooler = fake_pooler({})

    with pytest.raises(UnsupportedModificationError) as exc_info:
        make_backend(pooler).modify("sol11-7.example.com", "abc", ModifyPatch(lifetime=12))
    assert str(exc_info.value) == "Configured service type does not support modification of lifetime."
    assert pooler.requests == []


def test_modify_failure(fake_pooler):
    pooler = fake_pooler({("PUT", "/host/sol11-7.example.com"): (400, {"ok": False})})

    with pytest.raises(ModifyError):
        make_backend(pooler).modify("sol11-7.example.com", "abc", ModifyPatch(reason="Testing"))


def test_delete_unauthorized(fake_pooler):
    pooler = fake_pooler({("DELETE", "/host/sol11-7.example.com"): (401, {"ok": False})})

    with pytest.raises(AuthError):
        make_backend(pooler).delete(["sol11-7.example.com"], "abc", "jdoe")


def test_delete_keeps_going_after_unreadable_response(fake_pooler):
    pooler = fake_pooler({
        ("DELETE", "/host/sol11-7.example.com"): (502, "<html>Bad Gateway</html>"),
        ("DELETE", "/host/sol11-8.example.com"): (200, {"ok": True}),
    })

    result = make_backend(pooler).delete(["sol11-7.example.com", "sol11-8.example.com"], "abc", "jdoe")

    assert result["sol11-7.example.com"]["ok"] is False
    assert "HTTP 502" in result["sol11-7.example.com"]["message"]
    assert result["sol11-8.example.com"] == {"ok": True}


def test_query(fake_pooler):
    host = {"ok": True, "sol11-7.example.com": {"fqdn": "sol11-7.example.com"}}
    pooler = fake_pooler({("GET", "/host/sol11-7.example.com"): (200, host)})

    assert make_backend(pooler).query("sol11-7.example.com") == host


@pytest.mark.parametrize("operation, args", [
    ("snapshot", ("sol11-7", "abc")),
    ("revert", ("sol11-7", "abc", "sha")),
    ("disk", ("sol11-7", "abc", 10)),
    ("list_active_job_ids", ("jdoe",)),
])
def test_unsupported_operations(fake_pooler, operation, args):
    pooler = fake_pooler({})

    with pytest.raises(UnsupportedOperationError) as exc_info:
        getattr(make_backend(pooler), operation)(*args)
    assert "NonstandardPooler" in str(exc_info.value)
    assert pooler.requests == []
