from typing import List

import pytest

import app.main as main_module
from errors import ConfigurationError, StoreError


@pytest.fixture
def uvicorn_calls(monkeypatch) -> List[tuple]:
    calls: List[tuple] = []

    def fake_run(*args, **kwargs) -> None:
        calls.append((args, kwargs))

    monkeypatch.setattr("app.main.uvicorn.run", fake_run)
    return calls


@pytest.mark.parametrize(
    "error",
    [ConfigurationError("Missing Firebase configuration: FIREBASE_PRIVATE_KEY"), StoreError("offline")],
)
def test_run_exits_before_serving_when_store_init_fails(
    monkeypatch, uvicorn_calls, error
) -> None:
    def failing_builder():
        raise error

    monkeypatch.setattr("app.main.build_default_service", failing_builder)

    with pytest.raises(SystemExit) as excinfo:
        main_module.run()

    assert excinfo.value.code == 1
    assert uvicorn_calls == []


def test_run_serves_after_store_is_ready(monkeypatch, uvicorn_calls) -> None:
    built: List[bool] = []
    monkeypatch.setattr("app.main.build_default_service", lambda: built.append(True))

    main_module.run()

    assert built == [True]
    assert len(uvicorn_calls) == 1
    args, kwargs = uvicorn_calls[0]
    assert args == (main_module.app,)
    assert kwargs["port"] == main_module.get_settings().port
