"""
GEX (Gamma Exposure) Module

Gamma exposure calculations for option chain snapshots.

Components:
    - chain_normalizer: Provider chain payload → per-strike aggregates
    - gex_calculator: Per-strike exposure and cumulative curve
    - gex_features: Gamma flip, walls and ATM IV
    - gex_metrics: Data structures for GEX profiles
    - iv_history: Day-scoped intraday IV history
    - gex_service / gex_scheduler / gex_cli: Wiring, polling and CLI
"""

from .errors import GEXError, MissingInputError, UnsupportedSymbolError, UpstreamError, EmptyChainError
from .gex_calculator import GEXCalculator, PutGammaPolicy
from .gex_metrics import GEXProfile, StrikeGammaProfile, IVHistoryRecord, ZeroDTEReport
from .iv_history import IVHistoryRecorder, history_key

__all__ = [
    'GEXError',
    'MissingInputError',
    'UnsupportedSymbolError',
    'UpstreamError',
    'EmptyChainError',
    'GEXCalculator',
    'PutGammaPolicy',
    'GEXProfile',
    'StrikeGammaProfile',
    'IVHistoryRecord',
    'ZeroDTEReport',
    'IVHistoryRecorder',
    'history_key'
]

__version__ = '0.1.0'
