"""
Schwab Market Data Client

Fetches quotes and option chains. Any non-successful call raises
UpstreamError; retrying is left to the caller.
"""

import calendar
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

import requests

from src.gex.chain_normalizer import CALL_MAP_KEY, PUT_MAP_KEY, expiration_date_from_key
from src.gex.errors import UpstreamError
from src.marketdata.schwab_auth import SchwabAuth
from src.utils import get_logger
from src.utils.market_clock import trading_day

logger = get_logger(__name__)

BASE_URL = "https://api.schwabapi.com/marketdata/v1"


def default_chain_window(today: Optional[date] = None) -> Tuple[date, date]:
    """From today through the last calendar day of next month"""
    today = today or trading_day()
    next_month = (today.replace(day=1) + timedelta(days=32)).replace(day=1)
    last_day = calendar.monthrange(next_month.year, next_month.month)[1]
    return today, next_month.replace(day=last_day)


class SchwabClient:
    """Client for the Schwab market data REST API"""

    def __init__(self, auth: SchwabAuth, base_url: str = BASE_URL,
                 session: requests.Session = None, timeout: int = 15):
        self.auth = auth
        self.base_url = base_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, path: str, params: Dict, what: str) -> Dict:
        url = f"{self.base_url}/{path}"
        logger.debug(f"GET {url} {params}")

        try:
            response = self.session.get(url, params=params, headers=self.auth.get_headers(),
                                        timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"{what} request failed: {e}")
            raise UpstreamError(f"{what} fetch failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"{what} request failed with status {response.status_code}")
            raise UpstreamError(f"{what} fetch failed: {response.status_code} - {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"{what} response is not JSON") from e

    def get_quote(self, symbol: str) -> float:
        """
        Get the current price for symbol

        Returns:
            Last price, else mark, else close (0 when none is set)
        """
        data = self._get('quotes', {'symbols': symbol, 'fields': 'quote'}, 'Quote')

        quote = (data.get(symbol) or {}).get('quote')
        if not quote:
            raise UpstreamError(f"No quote for {symbol}")

        price = quote.get('lastPrice') or quote.get('mark') or quote.get('closePrice') or 0
        logger.info(f"✅ {symbol}: ${float(price):.2f}")
        return float(price)

    def get_option_chain(self, symbol: str, from_date: Optional[date] = None,
                         to_date: Optional[date] = None) -> Dict:
        """
        Get the option chain for symbol between two expiration dates

        Returns:
            Raw chain payload with callExpDateMap / putExpDateMap
        """
        params = {
            'symbol': symbol,
            'contractType': 'ALL',
            'includeUnderlyingQuote': 'true',
            'strategy': 'SINGLE',
            'optionType': 'ALL',
        }
        if from_date:
            params['fromDate'] = str(from_date)
        if to_date:
            params['toDate'] = str(to_date)

        data = self._get('chains', params, 'Chain')

        if data.get('status') == 'FAILED':
            raise UpstreamError(f"No option chain for {symbol}")

        logger.info(f"Chain for {symbol}: {len(data.get(CALL_MAP_KEY) or {})} call / "
                    f"{len(data.get(PUT_MAP_KEY) or {})} put expirations")
        return data

    def get_expiration_dates(self, symbol: str) -> List[str]:
        """Sorted expiration dates within the default window"""
        from_date, to_date = default_chain_window()
        chain = self.get_option_chain(symbol, from_date, to_date)

        dates = set()
        for map_key in (CALL_MAP_KEY, PUT_MAP_KEY):
            for exp_key in (chain.get(map_key) or {}):
                dates.add(expiration_date_from_key(exp_key))

        logger.info(f"✅ Found {len(dates)} expirations for {symbol}")
        return sorted(dates)
