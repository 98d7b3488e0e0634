import sys

import pytest

from ragalgo_mcp import server


@pytest.fixture(autouse=True)
def keep_excepthook(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)


def test_stdio_flag_selects_stdio(monkeypatch):
    seen = []

    async def fake_run_stdio(server_factory):
        seen.append(server_factory().name)

    monkeypatch.setattr(server, "run_stdio", fake_run_stdio)
    monkeypatch.setattr(server, "run_http", lambda registry: pytest.fail("HTTP mode started"))

    server.main(["--stdio"])

    assert seen == ["RagAlgo"]


def test_default_is_http(monkeypatch):
    seen = []
    monkeypatch.setattr(server, "run_http", lambda registry: seen.append(len(registry)))

    server.main([])

    assert seen == [12]


def test_startup_failure_exits_with_status_1(monkeypatch):
    def broken_registry():
        raise RuntimeError("bad tool table")

    monkeypatch.setattr(server, "build_registry", broken_registry)

    with pytest.raises(SystemExit) as exc_info:
        server.main([])

    assert exc_info.value.code == 1


def test_interrupt_is_a_clean_shutdown(monkeypatch):
    def interrupted(registry):
        raise KeyboardInterrupt

    monkeypatch.setattr(server, "run_http", interrupted)

    server.main([])
