"""
Market Data Module

Schwab Market Data API access for quotes and option chains.

Components:
    - schwab_auth: OAuth2 refresh-token management
    - schwab_client: REST client for quotes, chains and expirations

Usage:
    from src.marketdata import SchwabAuth, SchwabClient
    client = SchwabClient(SchwabAuth(app_key, secret, refresh_token))
    spot = client.get_quote('SPY')
    chain = client.get_option_chain('SPY', '2026-02-20', '2026-03-31')
"""

from .schwab_auth import SchwabAuth
from .schwab_client import SchwabClient, default_chain_window

__all__ = [
    'SchwabAuth',
    'SchwabClient',
    'default_chain_window'
]
