"""
Gamma Exposure (GEX) Calculator

Builds a per-strike dealer gamma exposure profile and its cumulative curve
from an option chain snapshot.
"""

import math
from enum import Enum
from typing import Dict, List, Optional

from src.gex.chain_normalizer import normalize_chain
from src.gex.errors import MissingInputError
from src.gex.gex_features import (
    DEFAULT_ATM_STRIKES,
    DEFAULT_WALL_BAND,
    calculate_atm_iv,
    find_gamma_flip,
    net_gex_extremes,
    wall_iv,
)
from src.gex.gex_metrics import ContractLeg, GEXProfile, StrikeAggregate, StrikeGammaProfile
from src.utils import get_logger

logger = get_logger(__name__)

# Contract multiplier (100 shares per contract)
CONTRACT_MULTIPLIER = 100

# Exposure per 1% move in the underlying
PERCENT_MOVE = 0.01


class PutGammaPolicy(Enum):
    """How the sign of put-side exposure is obtained"""

    # Provider already reports put gamma as negative
    NATIVE_SIGN = 'native'

    # Provider reports unsigned gamma, negate put exposure
    FORCE_NEGATIVE = 'negate'


def leg_exposure(leg: ContractLeg, spot_price: float) -> float:
    """Dollar gamma per 1% move: gamma x OI x 100 x spot^2 x 0.01"""
    if leg.gamma is None:
        return 0.0
    return leg.gamma * leg.open_interest * CONTRACT_MULTIPLIER * spot_price * spot_price * PERCENT_MOVE


def cumulative_curve(net_values: List[float]) -> List[float]:
    """Running sum from the lowest strike upward"""
    running = 0.0
    curve = []
    for value in net_values:
        running += value
        curve.append(running)
    return curve


class GEXCalculator:
    """Calculate gamma exposure profiles from option chain data"""

    def __init__(self, put_gamma_policy: PutGammaPolicy = PutGammaPolicy.NATIVE_SIGN,
                 wall_band: Optional[float] = DEFAULT_WALL_BAND,
                 atm_strike_count: int = DEFAULT_ATM_STRIKES):
        """
        Args:
            put_gamma_policy: Sign convention for put gamma
            wall_band: Fraction of spot around which walls are searched (None = all strikes)
            atm_strike_count: Strikes nearest to spot averaged for ATM IV
        """
        self.put_gamma_policy = PutGammaPolicy(put_gamma_policy)
        self.wall_band = wall_band
        self.atm_strike_count = atm_strike_count

        logger.debug(f"GEX calculator: put policy={self.put_gamma_policy.value}, "
                     f"wall band={wall_band}, ATM strikes={atm_strike_count}")

    def _strike_profile(self, aggregate: StrikeAggregate, spot_price: float) -> StrikeGammaProfile:
        call_gex = sum(leg_exposure(leg, spot_price) for leg in aggregate.call_legs)
        put_gex = sum(leg_exposure(leg, spot_price) for leg in aggregate.put_legs)

        if self.put_gamma_policy is PutGammaPolicy.FORCE_NEGATIVE:
            put_gex = -put_gex

        return StrikeGammaProfile(
            strike=aggregate.strike,
            call_gex=call_gex,
            put_gex=put_gex,
            net_gex=call_gex + put_gex,
            call_oi=aggregate.call_oi,
            put_oi=aggregate.put_oi,
            call_volume=aggregate.call_volume,
            put_volume=aggregate.put_volume,
            call_iv=aggregate.call_iv,
            put_iv=aggregate.put_iv,
        )

    def build_strike_profiles(self, aggregates: Dict[float, StrikeAggregate],
                              spot_price: float) -> List[StrikeGammaProfile]:
        """Per-strike exposure in ascending strike order"""
        return [self._strike_profile(aggregates[strike], spot_price)
                for strike in sorted(aggregates)]

    def calculate_profile(self, chain: Dict, spot_price: float,
                          symbol: str = '') -> Optional[GEXProfile]:
        """
        Calculate the GEX profile for a chain snapshot

        Args:
            chain: Provider chain payload (callExpDateMap / putExpDateMap)
            spot_price: Underlying price
            symbol: Underlying symbol, carried into the profile

        Returns:
            GEXProfile, or None when the chain has no strikes

        Raises:
            MissingInputError: spot price missing or not positive
        """
        if spot_price is None or not math.isfinite(spot_price) or spot_price <= 0:
            raise MissingInputError(f"Spot price unavailable for {symbol or 'symbol'}: {spot_price}")

        aggregates, expirations = normalize_chain(chain)

        if not aggregates:
            logger.warning(f"No strikes in option chain for {symbol}")
            return None

        profiles = self.build_strike_profiles(aggregates, spot_price)
        strikes = [p.strike for p in profiles]
        cumulative = cumulative_curve([p.net_gex for p in profiles])

        max_gex, min_gex = net_gex_extremes(profiles, spot_price, self.wall_band)
        by_strike = {p.strike: p for p in profiles}

        profile = GEXProfile(
            symbol=symbol,
            spot_price=spot_price,
            strikes=profiles,
            cumulative_gex=cumulative,
            gamma_flip=find_gamma_flip(strikes, cumulative, spot_price),
            call_wall=max_gex.strike,
            put_wall=min_gex.strike,
            atm_iv=calculate_atm_iv(profiles, spot_price, self.atm_strike_count),
            call_wall_iv=wall_iv(by_strike.get(max_gex.strike), prefer_call=True),
            put_wall_iv=wall_iv(by_strike.get(min_gex.strike), prefer_call=False),
            expiration_dates=expirations,
            put_gamma_policy=self.put_gamma_policy.value,
        )

        logger.info(f"✅ GEX calculated for {symbol}: {len(profiles)} strikes, "
                    f"Net=${profile.net_gex / 1e6:.1f}M, Flip={profile.gamma_flip}, "
                    f"CallWall={profile.call_wall}, PutWall={profile.put_wall}")

        return profile
