"""Unit tests for the process-boundary fail-fast hooks."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading

import pytest

from runtime import failfast


@pytest.fixture()
def exits(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    codes: list[int] = []
    monkeypatch.setattr(failfast, "_exit", codes.append)
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    return codes


class TestFailFast:
    def test_excepthook_logs_and_exits(self, exits: list[int], caplog: pytest.LogCaptureFixture) -> None:
        try:
            raise RuntimeError("escaped")
        except RuntimeError as exc:
            with caplog.at_level(logging.CRITICAL, logger="runtime.failfast"):
                failfast._excepthook(type(exc), exc, exc.__traceback__)
        assert exits == [failfast.EXIT_CODE]
        assert any("Uncaught exception" in r.getMessage() for r in caplog.records)

    def test_thread_exception_exits(self, exits: list[int]) -> None:
        failfast.install_fail_fast()

        def boom() -> None:
            raise ValueError("in thread")

        t = threading.Thread(target=boom)
        t.start()
        t.join()
        assert exits == [1]

    def test_loop_handler_exits_on_unretrieved_task_error(self, exits: list[int]) -> None:
        loop = asyncio.new_event_loop()
        try:
            failfast.install_fail_fast(loop)
            assert loop.get_exception_handler() is failfast.loop_exception_handler
            loop.call_exception_handler({"message": "Task exception was never retrieved", "exception": ValueError("x")})
        finally:
            loop.close()
        assert exits == [1]

    def test_keyboard_interrupt_is_not_fatal(self, exits: list[int], monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[type] = []
        monkeypatch.setattr(sys, "__excepthook__", lambda t, e, tb: seen.append(t))
        failfast._excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)
        assert exits == []
        assert seen == [KeyboardInterrupt]
