"""Test helpers for dabridge.

Provides a minimal asyncio runner so tests marked with
``@pytest.mark.asyncio`` execute without external plugins, plus a few shared
fixtures built on the in-memory doubles in ``dabridge.tests.fakes``.
"""
from __future__ import annotations

import asyncio
import inspect

import pytest
from eth_account import Account

from dabridge.types import Namespace

from .fakes import TEST_KEY, FakeChain, FakeDA, presence_row


@pytest.hookimpl(tryfirst=True)
def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover - plugin hook
    config.addinivalue_line("markers", "asyncio: mark test as requiring asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:  # pragma: no cover - plugin hook
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_func):
        argnames = getattr(pyfuncitem, "_fixtureinfo", None)
        wanted = set(getattr(argnames, "argnames", []) or [])
        kwargs = {k: v for k, v in pyfuncitem.funcargs.items() if k in wanted}
        asyncio.run(test_func(**kwargs))
        return True
    return None


@pytest.fixture
def namespace() -> Namespace:
    return Namespace.v0(bytes.fromhex("deadbeef"))


@pytest.fixture
def da(namespace) -> FakeDA:
    return FakeDA(
        namespace,
        height=100,
        rows=[presence_row(5, 3), presence_row(10, 2)],
    )


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def signer():
    return Account.from_key(TEST_KEY)
