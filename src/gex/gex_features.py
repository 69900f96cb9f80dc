"""
GEX Feature Extraction

Derives key levels from a per-strike gamma profile: gamma flip, call wall,
put wall, ATM implied volatility and the net GEX extremes around spot.
"""

from typing import List, Optional, Tuple

from src.gex.gex_metrics import StrikeGammaProfile, GexExtreme

DEFAULT_WALL_BAND = 0.40
DEFAULT_ATM_STRIKES = 5


def find_gamma_crossings(strikes: List[float], cumulative: List[float]) -> List[float]:
    """
    Interpolated prices where the cumulative GEX curve changes sign

    A crossing is any adjacent pair with one value below zero and the other
    at or above zero.
    """
    crossings = []

    for i in range(1, len(strikes)):
        prev_value = cumulative[i - 1]
        value = cumulative[i]

        if (prev_value < 0 <= value) or (value < 0 <= prev_value):
            ratio = abs(prev_value) / (abs(prev_value) + abs(value))
            crossings.append(strikes[i - 1] + ratio * (strikes[i] - strikes[i - 1]))

    return crossings


def find_gamma_flip(strikes: List[float], cumulative: List[float],
                    spot_price: Optional[float] = None) -> Optional[float]:
    """
    Find the price where cumulative dealer gamma flips sign

    Prefers the crossing nearest to spot. Without any crossing, falls back to
    the strike whose cumulative GEX is closest to zero.

    Returns:
        Flip price rounded to cents, or None for an empty curve
    """
    if not strikes:
        return None

    crossings = find_gamma_crossings(strikes, cumulative)

    if crossings:
        if spot_price:
            flip = min(crossings, key=lambda price: abs(price - spot_price))
        else:
            flip = crossings[0]
    else:
        closest = min(range(len(strikes)), key=lambda i: abs(cumulative[i]))
        flip = strikes[closest]

    return round(flip, 2)


def strikes_in_band(profiles: List[StrikeGammaProfile], spot_price: float,
                    band: Optional[float] = DEFAULT_WALL_BAND) -> List[StrikeGammaProfile]:
    """Strikes within spot * (1 +/- band); all strikes when band is None"""
    if band is None:
        return list(profiles)

    low = spot_price * (1 - band)
    high = spot_price * (1 + band)
    return [p for p in profiles if low <= p.strike <= high]


def net_gex_extremes(profiles: List[StrikeGammaProfile], spot_price: float,
                     band: Optional[float] = DEFAULT_WALL_BAND) -> Tuple[GexExtreme, GexExtreme]:
    """(max, min) net GEX strikes inside the band; empty extremes when none qualify"""
    candidates = strikes_in_band(profiles, spot_price, band)

    if not candidates:
        return GexExtreme(None, None), GexExtreme(None, None)

    highest = max(candidates, key=lambda p: p.net_gex)
    lowest = min(candidates, key=lambda p: p.net_gex)

    return GexExtreme(highest.strike, highest.net_gex), GexExtreme(lowest.strike, lowest.net_gex)


def find_call_wall(profiles: List[StrikeGammaProfile], spot_price: float,
                   band: Optional[float] = DEFAULT_WALL_BAND) -> Optional[float]:
    """Strike with the largest net GEX near spot"""
    return net_gex_extremes(profiles, spot_price, band)[0].strike


def find_put_wall(profiles: List[StrikeGammaProfile], spot_price: float,
                  band: Optional[float] = DEFAULT_WALL_BAND) -> Optional[float]:
    """Strike with the most negative net GEX near spot"""
    return net_gex_extremes(profiles, spot_price, band)[1].strike


def calculate_atm_iv(profiles: List[StrikeGammaProfile], spot_price: float,
                     strike_count: int = DEFAULT_ATM_STRIKES) -> Optional[float]:
    """
    Average call and put IV of the strikes nearest to spot

    Profiles are expected in ascending strike order, which breaks distance
    ties toward the lower strike.
    """
    nearest = sorted(profiles, key=lambda p: abs(p.strike - spot_price))[:strike_count]

    readings = []
    for profile in nearest:
        if profile.call_iv is not None:
            readings.append(profile.call_iv)
        if profile.put_iv is not None:
            readings.append(profile.put_iv)

    if not readings:
        return None

    return sum(readings) / len(readings)


def wall_iv(profile: Optional[StrikeGammaProfile], prefer_call: bool) -> Optional[float]:
    """IV at a wall strike, preferring the side the wall belongs to"""
    if profile is None:
        return None

    first, second = (profile.call_iv, profile.put_iv) if prefer_call else (profile.put_iv, profile.call_iv)
    return first if first is not None else second
