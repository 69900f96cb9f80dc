"""
GEX Calculation Scheduler

Runs GEX calculations periodically during market hours so the intraday IV
history fills without client requests.
"""

import asyncio
import os
import sys

from src.gex.gex_service import GEXService, build_service
from src.utils import get_logger, load_settings
from src.utils.market_clock import et_time_label, is_market_hours

logger = get_logger(__name__)

CLOSED_MARKET_WAIT = 300
MAX_BACKOFF = 300


class GEXScheduler:
    """Schedule and run GEX calculations for one symbol"""

    def __init__(self, service: GEXService, interval_seconds: int = 60,
                 market_open=is_market_hours):
        """
        Args:
            service: GEX service used for each calculation
            interval_seconds: How often to calculate GEX (default 60s)
            market_open: Callable telling whether the market is open
        """
        logger.info(f"Initializing GEX Scheduler (interval: {interval_seconds}s)")

        self.service = service
        self.interval = interval_seconds
        self.market_open = market_open

        self.calculations = 0
        self.errors = 0

    def run_once(self, symbol: str) -> bool:
        """One calculation cycle, returns True on success"""
        try:
            profile = self.service.calculate_gex(symbol)
        except Exception as e:
            self.errors += 1
            logger.error(f"Error in GEX calculation for {symbol}: {e}", exc_info=True)

            if self.errors > 20:
                logger.critical(f"Too many errors ({self.errors}), may indicate serious issue")
            return False

        self.calculations += 1
        logger.info(f"✅ GEX Calculation #{self.calculations} at {et_time_label()}")
        logger.info(f"   Spot: ${profile.spot_price:.2f}")
        logger.info(f"   Net GEX: ${profile.net_gex/1e6:.1f}M")
        if profile.gamma_flip is not None:
            logger.info(f"   Flip Point: ${profile.gamma_flip:.2f}")
        logger.debug(f"   Call Wall: {profile.call_wall}, Put Wall: {profile.put_wall}, ATM IV: {profile.atm_iv}")

        if self.calculations % 10 == 0:
            logger.info(f"📊 Stats - Calculations: {self.calculations}, Errors: {self.errors}")
        return True

    async def run(self, symbol: str = 'SPY', max_cycles: int = None):
        """Main scheduler loop"""
        logger.info("=" * 60)
        logger.info(f"Starting GEX Scheduler for {symbol}")
        logger.info("=" * 60)

        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            cycles += 1

            if not self.market_open():
                logger.info("Market closed, waiting 5 minutes...")
                await asyncio.sleep(CLOSED_MARKET_WAIT)
                continue

            ok = await asyncio.to_thread(self.run_once, symbol)

            wait_time = self.interval if ok else min(self.interval * 2, MAX_BACKOFF)
            logger.debug(f"Sleeping for {wait_time} seconds...")
            await asyncio.sleep(wait_time)

        logger.info(f"Final stats - Calculations: {self.calculations}, Errors: {self.errors}")


async def main():
    settings = load_settings()
    symbol = (sys.argv[1] if len(sys.argv) > 1 else os.getenv('GEX_SYMBOL', 'SPY')).upper()

    scheduler = GEXScheduler(build_service(settings), interval_seconds=settings.poll_interval)
    await scheduler.run(symbol)


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
