import asyncio
import signal
import sys

from config.logger import logger, setup_logging
from config.settings import Settings
from core.exceptions import ConfigError
from core.orchestrator import PriceAdjustmentOrchestrator
from core.poll_loop import PollLoop
from core.scanner import DealScanner
from core.stepper import VariantPriceStepper
from core.tracker import DealTracker
from services.shopify_client import ShopifyAdminClient


def build_poll_loop(settings: Settings, gateway=None) -> PollLoop:
    """Wires gateway, tracker, scanner and loop from the settings."""
    if gateway is None:
        gateway = ShopifyAdminClient(
            settings.store_domain,
            settings.access_token,
            api_version=settings.api_version,
            deal_type=settings.deal_type,
            timeout=settings.request_timeout,
        )
    tracker = DealTracker()
    stepper = VariantPriceStepper(gateway, settings.price_increment)
    orchestrator = PriceAdjustmentOrchestrator(gateway, stepper)
    scanner = DealScanner(
        gateway,
        tracker,
        orchestrator,
        field_keys=settings.field_keys,
        persist_start_marker=settings.persist_start_marker,
    )
    return PollLoop(
        scanner.run_cycle,
        settings.poll_interval,
        tracker=tracker,
        report_frequency=settings.report_frequency,
    )


async def run_recovery(settings: Settings):
    logger.info(f"🔥 Starting price recovery for {settings.store_domain} "
                f"(increment {settings.price_increment}, every {settings.poll_interval}s, "
                f"start marker {'remote' if settings.persist_start_marker else 'local'})")

    poll_loop = build_poll_loop(settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, poll_loop.stop)
        except NotImplementedError:
            # Windows: KeyboardInterrupt handles Ctrl+C
            pass

    await poll_loop.run()


def main():
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        setup_logging()
        logger.error(f"❌ {e}")
        sys.exit(1)

    setup_logging(settings.log_dir)
    try:
        asyncio.run(run_recovery(settings))
    except KeyboardInterrupt:
        logger.info("Price recovery stopped by user.")


if __name__ == "__main__":
    main()
