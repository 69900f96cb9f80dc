"""
GEX Service

Ties the market data provider, the calculator and the IV history recorder
together for one symbol per call.
"""

import math
from datetime import date
from typing import List, Optional, Sequence

from src.gex.errors import EmptyChainError, MissingInputError, UnsupportedSymbolError
from src.gex.gex_calculator import GEXCalculator, PutGammaPolicy
from src.gex.gex_features import net_gex_extremes
from src.gex.gex_metrics import GEXProfile, IVHistoryRecord, ZeroDTEReport
from src.gex.iv_history import ZERO_DTE_SUFFIX, IVHistoryRecorder
from src.marketdata import SchwabAuth, SchwabClient, default_chain_window
from src.storage import build_kv_store
from src.utils import Settings, get_logger

logger = get_logger(__name__)

FUTURES_HINT = "Futures options are not supported. Use the matching ETF: /ES→SPY, /GC→GLD, /NQ→QQQ"


def normalize_symbol(symbol: Optional[str]) -> str:
    """Upper-case and validate a symbol"""
    symbol = (symbol or '').strip().upper()
    if not symbol:
        raise MissingInputError("symbol required")
    if symbol.startswith('/'):
        raise UnsupportedSymbolError(FUTURES_HINT)
    return symbol


class GEXService:
    """Compute GEX profiles and maintain their IV history"""

    def __init__(self, provider, recorder: IVHistoryRecorder,
                 calculator: Optional[GEXCalculator] = None):
        """
        Args:
            provider: Object with get_quote, get_option_chain and get_expiration_dates
            recorder: IV history recorder
            calculator: GEX calculator (default policy if omitted)
        """
        self.provider = provider
        self.recorder = recorder
        self.calculator = calculator or GEXCalculator()

    def _spot_price(self, symbol: str) -> float:
        spot = self.provider.get_quote(symbol)
        if not spot or not math.isfinite(spot) or spot <= 0:
            raise MissingInputError(f"Unable to get spot price for {symbol}")
        return spot

    def _build(self, symbol: str, chain, spot: float) -> GEXProfile:
        profile = self.calculator.calculate_profile(chain, spot, symbol=symbol)
        if profile is None:
            raise EmptyChainError(f"GEX calculation failed for {symbol}: option chain is empty")
        return profile

    def calculate_gex(self, symbol: str, dates: Optional[Sequence[str]] = None) -> GEXProfile:
        """
        Calculate the GEX profile across the requested expirations

        Args:
            symbol: Underlying symbol
            dates: Expiration dates (YYYY-MM-DD); the chain spans min..max.
                   Defaults to today through the end of next month.
        """
        symbol = normalize_symbol(symbol)
        spot = self._spot_price(symbol)

        if dates:
            ordered = sorted(dates)
            from_date, to_date = ordered[0], ordered[-1]
        else:
            from_date, to_date = default_chain_window()

        logger.info(f"Calculating GEX for {symbol} @ ${spot:.2f} ({from_date} → {to_date})")

        chain = self.provider.get_option_chain(symbol, from_date, to_date)
        profile = self._build(symbol, chain, spot)

        self.recorder.record(symbol, profile.atm_iv, profile.call_wall_iv, profile.put_wall_iv)
        return profile

    def calculate_zero_dte(self, symbol: str) -> ZeroDTEReport:
        """Profile for the nearest expiration only"""
        symbol = normalize_symbol(symbol)
        spot = self._spot_price(symbol)

        expirations = self.provider.get_expiration_dates(symbol)
        if not expirations:
            raise EmptyChainError(f"No expiration dates for {symbol}")

        nearest = expirations[0]
        logger.info(f"Calculating 0DTE GEX for {symbol} @ ${spot:.2f} (expiration {nearest})")

        chain = self.provider.get_option_chain(symbol, nearest, nearest)
        profile = self._build(symbol, chain, spot)
        max_gex, min_gex = net_gex_extremes(profile.strikes, spot, self.calculator.wall_band)

        self.recorder.record(symbol + ZERO_DTE_SUFFIX, profile.atm_iv,
                             profile.call_wall_iv, profile.put_wall_iv)

        return ZeroDTEReport(
            profile=profile,
            expiration_date=date.fromisoformat(nearest),
            max_gex=max_gex,
            min_gex=min_gex,
        )

    def get_expirations(self, symbol: str) -> List[str]:
        return self.provider.get_expiration_dates(normalize_symbol(symbol))

    def get_iv_history(self, symbol: str, zero_dte: bool = False) -> List[IVHistoryRecord]:
        symbol = (symbol or '').strip().upper()
        if not symbol:
            raise MissingInputError("symbol required")
        return self.recorder.get(symbol + ZERO_DTE_SUFFIX if zero_dte else symbol)


def build_service(settings: Settings) -> GEXService:
    """Create a service backed by Schwab and the configured store"""
    if not settings.has_schwab_credentials:
        logger.critical("Missing Schwab credentials")
        raise ValueError("SCHWAB_APP_KEY, SCHWAB_SECRET and SCHWAB_REFRESH_TOKEN are required")

    auth = SchwabAuth(settings.schwab_app_key, settings.schwab_secret, settings.schwab_refresh_token)
    recorder = IVHistoryRecorder(build_kv_store(settings), cap=settings.iv_history_cap,
                                 ttl_seconds=settings.iv_history_ttl)
    calculator = GEXCalculator(
        put_gamma_policy=PutGammaPolicy(settings.put_gamma_policy),
        wall_band=settings.wall_band,
        atm_strike_count=settings.atm_strike_count,
    )

    logger.info(f"GEX service ready (put gamma policy: {calculator.put_gamma_policy.value}, "
                f"store: {settings.kv_backend})")
    return GEXService(SchwabClient(auth), recorder, calculator)
