import asyncio
import logging

from stickerbot.constants import RECONNECT_DELAY_SECONDS
from stickerbot.core.ports import SessionControl

logger = logging.getLogger(__name__)

STATE_OPEN = "open"
STATE_CLOSE = "close"
STATUS_REASON_LOGGED_OUT = 401

READY_USAGE_LINES = (
    "Gunakan:",
    '- ".s" untuk sticker dengan nama default',
    '- ".s [nama]" untuk custom nama sticker',
    '- "Reply sticker .wm <nama>" untuk ganti nama sticker',
    '- ".tagall" untuk tag semua member group',
    '- ".help" untuk bantuan',
)


class SessionLifecycleManager:
    """
    Pemilik siklus hidup koneksi sesi WhatsApp.

    Setiap kali koneksi tertutup, sambung ulang dijadwalkan setelah jeda tetap
    dan diulang tanpa batas selama gagal.
    """

    def __init__(
        self,
        session: SessionControl,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
    ) -> None:
        self._session = session
        self._reconnect_delay = reconnect_delay
        self._reconnect_task: asyncio.Task[None] | None = None

    @property
    def reconnecting(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    async def start(self) -> None:
        try:
            state = await self._session.connection_state()
        except Exception:  # noqa: BLE001
            logger.exception("Gagal membaca status koneksi, mencoba menyambungkan ulang")
            self._schedule_reconnect()
            return

        if state == STATE_OPEN:
            _log_ready()
            return

        logger.info("Sesi belum terhubung (state=%s), meminta koneksi ke gateway", state)
        try:
            await self._session.connect()
        except Exception:  # noqa: BLE001
            logger.exception("Gagal meminta koneksi ke gateway")
            self._schedule_reconnect()

    async def on_connection_update(self, state: str, status_reason: int | None = None) -> None:
        if state == STATE_OPEN:
            _log_ready()
            return

        if state == STATE_CLOSE:
            if status_reason == STATUS_REASON_LOGGED_OUT:
                logger.error(
                    "❌ Gagal autentikasi. Sesi sudah logout, lakukan pairing ulang di gateway."
                )
            logger.warning("🔌 Bot terputus: %s", status_reason)
            self._schedule_reconnect()
            return

        logger.info("🔄 State changed: %s", state)

    async def shutdown(self) -> None:
        logger.info("🛑 Shutting down bot...")
        task = self._reconnect_task
        self._reconnect_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _schedule_reconnect(self) -> None:
        if self.reconnecting:
            return
        self._reconnect_task = asyncio.create_task(self._reconnect_loop())

    async def _reconnect_loop(self) -> None:
        attempt = 0
        while True:
            attempt += 1
            logger.info(
                "🔄 Menghubungkan ulang dalam %g detik... (percobaan %s)",
                self._reconnect_delay,
                attempt,
            )
            await asyncio.sleep(self._reconnect_delay)
            try:
                await self._session.connect()
                return
            except Exception:  # noqa: BLE001
                logger.exception("Gagal menghubungkan ulang")


def _log_ready() -> None:
    logger.info("Bot siap!")
    for line in READY_USAGE_LINES:
        logger.info(line)
