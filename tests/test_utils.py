import asyncio
import logging

import pytest

from stickerbot.utils import crash_policy
from stickerbot.utils.masking import mask_jid, mask_url


class TestMaskJid:
    def test_person_jid(self) -> None:
        assert mask_jid("6281234567890@s.whatsapp.net") == "6281******890@s.whatsapp.net"

    def test_short_user_fully_masked(self) -> None:
        assert mask_jid("12345@lid") == "*****@lid"

    def test_empty(self) -> None:
        assert mask_jid(None) == "[jid_kosong]"
        assert mask_jid("") == "[jid_kosong]"


class TestMaskUrl:
    def test_keeps_scheme_host_port(self) -> None:
        assert mask_url("http://user:pw@gateway.local:8080/path?x=1") == (
            "http://gateway.local:8080"
        )

    def test_invalid(self) -> None:
        assert mask_url("not a url") == "[url_masked]"
        assert mask_url(None) == "[url_masked]"  # type: ignore[arg-type]


def test_uncaught_sync_exception_terminates(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    exits: list[int] = []
    monkeypatch.setattr(crash_policy.os, "_exit", exits.append)

    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        with caplog.at_level(logging.CRITICAL):
            crash_policy.handle_uncaught_exception(type(exc), exc, exc.__traceback__)

    assert exits == [crash_policy.EXIT_STATUS_UNCAUGHT]
    assert "Uncaught Exception" in caplog.text


def test_unhandled_async_failure_only_logs(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    exits: list[int] = []
    monkeypatch.setattr(crash_policy.os, "_exit", exits.append)

    async def _failing() -> None:
        raise RuntimeError("async boom")

    async def _scenario() -> None:
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(crash_policy.handle_async_exception)
        task = loop.create_task(_failing())
        await asyncio.sleep(0)
        loop.call_exception_handler(
            {"message": "Task exception was never retrieved", "exception": task.exception()}
        )

    with caplog.at_level(logging.ERROR):
        asyncio.run(_scenario())

    assert exits == []
    assert "Unhandled Rejection" in caplog.text
    assert "async boom" in caplog.text
