"""Main entry point for NoteBridge."""

import asyncio

from notebridge.ai.chain import build_provider_chain
from notebridge.config import get_settings
from notebridge.discord.bot import NoteBridgeBot
from notebridge.logging import get_logger, setup_logging
from notebridge.pipeline.orchestrator import NotePipeline
from notebridge.sources import build_content_fetchers, close_content_fetchers
from notebridge.vault.writer import NotePersister, ObsidianVaultWriter


async def main() -> None:
    """Main application entry point."""
    setup_logging()
    log = get_logger("notebridge.main")

    settings = get_settings()
    log.info(
        "starting_notebridge",
        environment=settings.environment,
        providers=settings.ai_providers,
        vault_path=str(settings.vault_path),
    )

    # Provider chain and fetchers are built once and shared by all runs
    chain = build_provider_chain(settings)
    fetchers = build_content_fetchers(settings)

    pipeline = NotePipeline.from_settings(settings, chain=chain, fetchers=fetchers)
    bot = NoteBridgeBot(pipeline, reply_with_note_path=settings.reply_with_note_path)

    writer = ObsidianVaultWriter(settings.vault_path, settings.vault_folder)
    pipeline.subscribe(NotePersister(writer, on_created=bot.notify_note_created))
    log.info("pipeline_created", workers=settings.pipeline_workers, vault=str(writer.directory))

    await pipeline.start()
    try:
        if settings.discord_token is None:
            log.error("discord_token_missing")
            return
        await bot.start(settings.discord_token.get_secret_value())
    except KeyboardInterrupt:
        log.info("shutdown_requested")
    finally:
        await bot.close()
        await pipeline.stop()
        await chain.close()
        await close_content_fetchers(fetchers)
        log.info("notebridge_stopped")


def run() -> None:
    """Run the application."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
