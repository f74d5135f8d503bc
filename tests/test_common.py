import asyncio

import pytest

from libs.common import config, fallback
from libs.common.exceptions import (
    NOT_FOUND_MESSAGE, ExhaustedProvidersError, InvalidInputError, LocatorException,
    OutOfRangeCoordinateError, ProviderError,
)


def test_config_defaults():
    assert isinstance(config.CFG.PROXY_ORDER, list) and config.CFG.PROXY_ORDER
    assert len(config.CFG.DEFAULT_CENTER) == 2
    assert config.CFG.PROXY_TIMEOUT_SEC > 0


def test_config_env_helpers(monkeypatch):
    monkeypatch.setenv("LOCATOR_TEST_FLOAT", "2.5")
    assert config.get_env_float("LOCATOR_TEST_FLOAT", 1.0) == 2.5
    # Edge: blank falls back, junk raises
    monkeypatch.setenv("LOCATOR_TEST_FLOAT", "  ")
    assert config.get_env_float("LOCATOR_TEST_FLOAT", 1.0) == 1.0
    monkeypatch.setenv("LOCATOR_TEST_FLOAT", "fast")
    with pytest.raises(EnvironmentError):
        config.get_env_float("LOCATOR_TEST_FLOAT", 1.0)

    monkeypatch.setenv("LOCATOR_TEST_LIST", " direct , allorigins,,")
    assert config.get_env_list("LOCATOR_TEST_LIST", "") == ["direct", "allorigins"]

    monkeypatch.setenv("LOCATOR_TEST_CENTER", "28.6,77.2")
    assert config.get_env_center("LOCATOR_TEST_CENTER", (0.0, 0.0)) == (28.6, 77.2)
    monkeypatch.setenv("LOCATOR_TEST_CENTER", "28.6")
    with pytest.raises(EnvironmentError):
        config.get_env_center("LOCATOR_TEST_CENTER", (0.0, 0.0))
    monkeypatch.delenv("LOCATOR_TEST_CENTER")
    assert config.get_env_center("LOCATOR_TEST_CENTER", (1.0, 2.0)) == (1.0, 2.0)


def test_run_with_fallbacks_all_fail():
    # Edge: all fallbacks fail
    async def fail(): raise Exception('fail')
    async def empty(): return None
    result = asyncio.run(fallback.run_with_fallbacks([('fail1', fail), ('empty', empty), ('fail2', fail)]))
    assert result['data'] is None
    assert result['source'] == ''
    assert result['errors'] == ['fail1: fail', 'empty: no result', 'fail2: fail']


def test_run_with_fallbacks_sequential_first_success():
    order = []

    def step(name, value):
        async def fn():
            order.append(name)
            return value
        return fn

    result = asyncio.run(fallback.run_with_fallbacks([('a', step('a', None)), ('b', step('b', 2)), ('c', step('c', 3))]))
    assert result['source'] == 'b'
    assert result['data'] == 2
    assert order == ['a', 'b']


def test_run_with_fallbacks_does_not_swallow_cancellation():
    async def main():
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(fallback.run_with_fallbacks([('slow', slow)]))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(main())


def test_exception_hierarchy():
    exc = OutOfRangeCoordinateError(95.0, 200.0)
    assert isinstance(exc, InvalidInputError)
    assert isinstance(exc, LocatorException)
    assert exc.details == {"lat": 95.0, "lng": 200.0}

    val = InvalidInputError("bad", field="location")
    assert val.details["field"] == "location"

    prov = ProviderError("corsproxy", "HTTP 503", reason="status")
    assert prov.provider == "corsproxy"
    assert "corsproxy error" in prov.message

    ex = ExhaustedProvidersError("search", ["a", "b"])
    assert ex.message == NOT_FOUND_MESSAGE
    assert ex.details["kind"] == "search"
