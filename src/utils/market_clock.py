"""
Market clock helpers.

All exchange-calendar logic is expressed in America/New_York time.
"""

from datetime import datetime, date, time as dt_time
from typing import Optional
import pytz

EASTERN = pytz.timezone('America/New_York')

MARKET_OPEN = dt_time(9, 30)
MARKET_CLOSE = dt_time(16, 0)


def now_et() -> datetime:
    """Current time in US/Eastern"""
    return datetime.now(EASTERN)


def to_et(moment: datetime) -> datetime:
    """Convert an aware datetime (naive values are taken as UTC) to ET"""
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(EASTERN)


def trading_day(moment: Optional[datetime] = None) -> date:
    """Exchange-calendar day for a moment"""
    return to_et(moment or now_et()).date()


def et_time_label(moment: Optional[datetime] = None) -> str:
    """Wall-clock label such as '2026-02-20 14:35:00 ET'"""
    return to_et(moment or now_et()).strftime('%Y-%m-%d %H:%M:%S') + ' ET'


def is_market_hours(moment: Optional[datetime] = None) -> bool:
    """True on weekdays between the regular session open and close"""
    et = to_et(moment or now_et())

    if et.weekday() >= 5:
        return False

    return MARKET_OPEN <= et.time() <= MARKET_CLOSE
