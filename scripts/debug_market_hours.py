"""Print the market clock as the scheduler and IV history see it."""

from datetime import datetime, timezone

from src.gex.iv_history import history_key
from src.utils.market_clock import (
    MARKET_CLOSE,
    MARKET_OPEN,
    et_time_label,
    is_market_hours,
    now_et,
    trading_day,
)

now_utc = datetime.now(timezone.utc)
current = now_et()

print("="*60)
print("MARKET HOURS DEBUG")
print("="*60)
print(f"Server time (UTC): {now_utc.strftime('%Y-%m-%d %H:%M:%S %Z')}")
print(f"Current ET time: {et_time_label(current)}")
print(f"Day of week: {current.weekday()} (0=Mon, 4=Fri, 5=Sat, 6=Sun)")
print()
print(f"Market opens: {MARKET_OPEN}")
print(f"Market closes: {MARKET_CLOSE}")
print(f"Market is OPEN: {is_market_hours(current)}")
print()
print(f"Exchange day: {trading_day(current)}")
print(f"IV history key (SPY): {history_key('SPY', trading_day(current))}")
print("="*60)
