import asyncio
import contextlib
import logging

from stickerbot.adapters.evolution_transport import EvolutionTransport
from stickerbot.adapters.evolution_webhook import EvolutionWebhookReceiver
from stickerbot.config import Settings
from stickerbot.core.models import InboundMessage
from stickerbot.services.dispatcher import Dispatcher
from stickerbot.services.lifecycle import SessionLifecycleManager
from stickerbot.services.media_converter import FfmpegStickerNormalizer
from stickerbot.utils.crash_policy import install_crash_policy
from stickerbot.utils.logging import setup_logging
from stickerbot.utils.masking import mask_url


async def async_main() -> None:
    settings = Settings()
    setup_logging(settings.log_level)
    install_crash_policy(asyncio.get_running_loop())

    logger = logging.getLogger(__name__)

    transport = EvolutionTransport(
        base_url=settings.get_evolution_base_url(),
        instance=settings.evolution_instance,
        api_key=settings.evolution_api_key,
    )
    dispatcher = Dispatcher(
        transport=transport,
        normalizer=FfmpegStickerNormalizer(),
    )
    lifecycle = SessionLifecycleManager(session=transport)

    queue: asyncio.Queue[InboundMessage] = asyncio.Queue()
    receiver = EvolutionWebhookReceiver(
        host=settings.webhook_host,
        port=settings.webhook_port,
        queue=queue,
        on_connection_update=lifecycle.on_connection_update,
        token=settings.webhook_token,
    )

    logger.info(
        "StickerBot WA mulai: gateway=%s instance=%s",
        mask_url(settings.get_evolution_base_url()),
        settings.evolution_instance,
    )
    await lifecycle.start()

    consumer = asyncio.create_task(dispatcher.serve(queue))
    try:
        await receiver.run()
    finally:
        consumer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await consumer
        await dispatcher.drain()
        await lifecycle.shutdown()


def main() -> None:
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Menerima sinyal interupsi, StickerBot WA berhenti")


if __name__ == "__main__":
    main()
