"""
GEX Data Structures

Defines data classes for per-strike gamma exposure, the full GEX profile and
the intraday IV history records.
"""

from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Optional, List, Dict


@dataclass
class ContractLeg:
    """One side (call or put) of a single contract as delivered by the provider"""
    gamma: Optional[float]
    open_interest: int = 0
    volume: int = 0
    implied_vol: Optional[float] = None   # Percent, None when outside (0, 500)


@dataclass
class StrikeAggregate:
    """Call and put legs collected for one strike across expirations"""
    strike: float
    call_legs: List[ContractLeg] = field(default_factory=list)
    put_legs: List[ContractLeg] = field(default_factory=list)
    call_iv: Optional[float] = None
    put_iv: Optional[float] = None

    def add_leg(self, leg: ContractLeg, is_call: bool):
        """Attach a leg; a valid IV replaces the side's representative IV"""
        if is_call:
            self.call_legs.append(leg)
            if leg.implied_vol is not None:
                self.call_iv = leg.implied_vol
        else:
            self.put_legs.append(leg)
            if leg.implied_vol is not None:
                self.put_iv = leg.implied_vol

    @property
    def call_oi(self) -> int:
        return sum(leg.open_interest for leg in self.call_legs)

    @property
    def put_oi(self) -> int:
        return sum(leg.open_interest for leg in self.put_legs)

    @property
    def call_volume(self) -> int:
        return sum(leg.volume for leg in self.call_legs)

    @property
    def put_volume(self) -> int:
        return sum(leg.volume for leg in self.put_legs)


@dataclass
class StrikeGammaProfile:
    """Gamma profile for a specific strike"""
    strike: float
    call_gex: float
    put_gex: float
    net_gex: float
    call_oi: int
    put_oi: int
    call_volume: int
    put_volume: int
    call_iv: Optional[float] = None
    put_iv: Optional[float] = None

    @property
    def total_oi(self) -> int:
        return self.call_oi + self.put_oi

    @property
    def total_volume(self) -> int:
        return self.call_volume + self.put_volume

    @property
    def vol_oi_ratio(self) -> float:
        """Volume / OI, capped at 10"""
        if self.total_oi <= 0:
            return 0
        return min(self.total_volume / self.total_oi, 10)

    @property
    def net_exposure_millions(self) -> float:
        """Net gamma exposure in millions"""
        return self.net_gex / 1e6

    def to_dict(self) -> dict:
        return {
            'strike': self.strike,
            'callGex': self.call_gex,
            'putGex': self.put_gex,
            'netGex': self.net_gex,
            'callOI': self.call_oi,
            'putOI': self.put_oi,
            'totalOI': self.total_oi,
            'callVol': self.call_volume,
            'putVol': self.put_volume,
            'totalVol': self.total_volume,
            'volOIRatio': self.vol_oi_ratio,
            'callIV': self.call_iv,
            'putIV': self.put_iv,
        }


@dataclass
class GEXProfile:
    """Container for a full GEX calculation"""

    # Identification
    symbol: str
    spot_price: float

    # Curve
    strikes: List[StrikeGammaProfile]
    cumulative_gex: List[float]

    # Key levels
    gamma_flip: Optional[float] = None
    call_wall: Optional[float] = None
    put_wall: Optional[float] = None

    # Volatility
    atm_iv: Optional[float] = None
    call_wall_iv: Optional[float] = None
    put_wall_iv: Optional[float] = None

    expiration_dates: List[str] = field(default_factory=list)
    put_gamma_policy: str = 'native'

    def __post_init__(self):
        """Validate curve shape after initialization"""
        if self.spot_price <= 0:
            raise ValueError(f"Invalid spot price: {self.spot_price}")

        if len(self.cumulative_gex) != len(self.strikes):
            raise ValueError(f"Cumulative curve has {len(self.cumulative_gex)} points "
                             f"for {len(self.strikes)} strikes")

    @property
    def strike_prices(self) -> List[float]:
        return [s.strike for s in self.strikes]

    @property
    def net_gex(self) -> float:
        """Total net gamma exposure (last point of the cumulative curve)"""
        return self.cumulative_gex[-1] if self.cumulative_gex else 0.0

    @property
    def is_positive_gamma_regime(self) -> bool:
        """True if dealers are net long gamma"""
        return self.net_gex > 0

    @property
    def gamma_regime(self) -> str:
        """Return human-readable gamma regime"""
        if self.is_positive_gamma_regime:
            return "Positive (Stabilizing)"
        else:
            return "Negative (Destabilizing)"

    def to_dict(self) -> dict:
        """Convert profile to the API payload"""
        return {
            'symbol': self.symbol,
            'spotPrice': self.spot_price,
            'gammaFlip': self.gamma_flip,
            'callWall': self.call_wall,
            'putWall': self.put_wall,
            'atmIV': self.atm_iv,
            'callWallIV': self.call_wall_iv,
            'putWallIV': self.put_wall_iv,
            'strikes': [s.to_dict() for s in self.strikes],
            'aggregateGex': list(self.cumulative_gex),
            'expirationDates': list(self.expiration_dates),
            'putGammaPolicy': self.put_gamma_policy,
        }

    def summary(self) -> str:
        """Return human-readable summary of the profile"""
        def level(value):
            return f"${value:.2f}" if value is not None else "n/a"

        def iv(value):
            return f"{value:.2f}%" if value is not None else "n/a"

        lines = [
            f"GEX Profile for {self.symbol}",
            f"  Spot Price: ${self.spot_price:.2f}",
            f"  Strikes: {len(self.strikes)}",
            f"  Expirations: {', '.join(self.expiration_dates) or 'n/a'}",
            f"  ",
            f"  Net GEX: ${self.net_gex / 1e6:.1f}M",
            f"  Gamma Regime: {self.gamma_regime}",
            f"  Gamma Flip: {level(self.gamma_flip)}",
            f"  Call Wall: {level(self.call_wall)} (IV {iv(self.call_wall_iv)})",
            f"  Put Wall: {level(self.put_wall)} (IV {iv(self.put_wall_iv)})",
            f"  ATM IV: {iv(self.atm_iv)}",
        ]
        return "\n".join(lines)


@dataclass
class GexExtreme:
    """A strike and its net GEX"""
    strike: Optional[float]
    value: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ZeroDTEReport:
    """Profile restricted to the nearest expiration"""
    profile: GEXProfile
    expiration_date: date
    max_gex: GexExtreme
    min_gex: GexExtreme

    def to_dict(self) -> dict:
        payload = self.profile.to_dict()
        payload['expirationDate'] = self.expiration_date.isoformat()
        payload['maxGex'] = self.max_gex.to_dict()
        payload['minGex'] = self.min_gex.to_dict()
        return payload


@dataclass
class IVHistoryRecord:
    """One intraday IV snapshot"""
    time: str
    timestamp: int                  # Epoch milliseconds
    atm_iv: Optional[float] = None
    call_wall_iv: Optional[float] = None
    put_wall_iv: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            'time': self.time,
            'timestamp': self.timestamp,
            'atmIV': self.atm_iv,
            'callWallIV': self.call_wall_iv,
            'putWallIV': self.put_wall_iv,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'IVHistoryRecord':
        return cls(
            time=data.get('time', ''),
            timestamp=int(data.get('timestamp', 0)),
            atm_iv=data.get('atmIV'),
            call_wall_iv=data.get('callWallIV'),
            put_wall_iv=data.get('putWallIV'),
        )
