"""
Option Chain Normalizer

Adapts the provider's chain payload into StrikeAggregate objects.

The payload carries two maps, callExpDateMap and putExpDateMap, keyed by
"YYYY-MM-DD:<days to expiry>" and then by strike string. Each strike holds a
contract or a list of contracts. Only the first contract per strike is used.
"""

import math
from typing import Dict, List, Optional, Tuple, Any

from src.gex.gex_metrics import ContractLeg, StrikeAggregate
from src.utils import get_logger

logger = get_logger(__name__)

CALL_MAP_KEY = 'callExpDateMap'
PUT_MAP_KEY = 'putExpDateMap'

IV_MIN = 0.0
IV_MAX = 500.0


def _to_float(value: Any) -> Optional[float]:
    """Numeric value or None for missing, non-numeric and NaN input"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _to_count(value: Any) -> int:
    """Non-negative integer count, 0 when unusable"""
    number = _to_float(value)
    if number is None or number < 0:
        return 0
    return int(number)


def clean_iv(value: Any) -> Optional[float]:
    """Volatility in percent, None outside the open interval (0, 500)"""
    number = _to_float(value)
    if number is None or not IV_MIN < number < IV_MAX:
        return None
    return number


def expiration_date_from_key(exp_key: str) -> str:
    """'2026-02-20:3' -> '2026-02-20'"""
    return str(exp_key).split(':')[0]


def parse_contract(contract: Dict) -> ContractLeg:
    """Build a ContractLeg, defaulting anything missing or malformed"""
    return ContractLeg(
        gamma=_to_float(contract.get('gamma')),
        open_interest=_to_count(contract.get('openInterest')),
        volume=_to_count(contract.get('totalVolume')),
        implied_vol=clean_iv(contract.get('volatility')),
    )


def _first_contract(contracts: Any) -> Optional[Dict]:
    if isinstance(contracts, list):
        contracts = contracts[0] if contracts else None
    return contracts if isinstance(contracts, dict) else None


def normalize_chain(chain: Dict) -> Tuple[Dict[float, StrikeAggregate], List[str]]:
    """
    Flatten a provider chain into per-strike aggregates

    Args:
        chain: Provider chain payload

    Returns:
        (strike -> StrikeAggregate, sorted distinct expiration dates)
    """
    aggregates: Dict[float, StrikeAggregate] = {}
    expirations = set()
    skipped = 0

    for map_key, is_call in ((CALL_MAP_KEY, True), (PUT_MAP_KEY, False)):
        option_map = (chain or {}).get(map_key) or {}

        for exp_key, strikes in option_map.items():
            expirations.add(expiration_date_from_key(exp_key))

            for strike_str, contracts in (strikes or {}).items():
                strike = _to_float(strike_str)
                contract = _first_contract(contracts)

                if strike is None or contract is None:
                    skipped += 1
                    logger.debug(f"Skipping malformed {map_key} entry {exp_key} / {strike_str!r}")
                    continue

                if strike not in aggregates:
                    aggregates[strike] = StrikeAggregate(strike=strike)
                aggregates[strike].add_leg(parse_contract(contract), is_call)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed chain entries")

    logger.debug(f"Normalized chain into {len(aggregates)} strikes, {len(expirations)} expirations")

    return aggregates, sorted(expirations)
