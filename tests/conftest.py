"""Shared fixtures for the GEX test suite."""

from datetime import datetime

import pytest

from src.gex.iv_history import IVHistoryRecorder
from src.storage import MemoryKVStore
from src.utils.market_clock import EASTERN

EXPIRATION_KEY = '2026-02-20:3'


def contract(gamma=None, oi=None, volume=None, iv=None):
    """Schwab-shaped contract dict, omitting unset fields"""
    data = {}
    if gamma is not None:
        data['gamma'] = gamma
    if oi is not None:
        data['openInterest'] = oi
    if volume is not None:
        data['totalVolume'] = volume
    if iv is not None:
        data['volatility'] = iv
    return data


def build_chain(calls=None, puts=None, expiration=EXPIRATION_KEY):
    """Chain with one expiration; calls/puts map strike -> contract dict"""
    chain = {}
    if calls is not None:
        chain['callExpDateMap'] = {expiration: {str(k): [v] for k, v in calls.items()}}
    if puts is not None:
        chain['putExpDateMap'] = {expiration: {str(k): [v] for k, v in puts.items()}}
    return chain


class FakeProvider:
    """In-memory market data provider"""

    def __init__(self, quote=100.0, chain=None, expirations=None):
        self.quote = quote
        self.chain = chain if chain is not None else {}
        self.expirations = expirations if expirations is not None else ['2026-02-20']
        self.chain_requests = []

    def get_quote(self, symbol):
        return self.quote

    def get_option_chain(self, symbol, from_date=None, to_date=None):
        self.chain_requests.append((symbol, from_date, to_date))
        return self.chain

    def get_expiration_dates(self, symbol):
        return self.expirations


class MutableClock:
    """Clock returning a settable ET datetime"""

    def __init__(self, moment):
        self.moment = moment

    def __call__(self):
        return self.moment


@pytest.fixture
def make_contract():
    return contract


@pytest.fixture
def make_chain():
    return build_chain


@pytest.fixture
def worked_chain():
    """Two strikes, one expiration; puts carry negative gamma"""
    return build_chain(
        calls={
            100: contract(gamma=0.05, oi=1000, volume=300, iv=30.0),
            105: contract(gamma=0.03, oi=500, volume=200, iv=28.0),
        },
        puts={
            100: contract(gamma=-0.04, oi=800, volume=400, iv=32.0),
            105: contract(gamma=-0.02, oi=900, volume=100, iv=31.0),
        },
    )


@pytest.fixture
def clock():
    return MutableClock(EASTERN.localize(datetime(2026, 2, 20, 14, 30, 0)))


@pytest.fixture
def memory_store():
    return MemoryKVStore()


@pytest.fixture
def recorder(memory_store, clock):
    return IVHistoryRecorder(memory_store, cap=96, clock=clock)


@pytest.fixture
def provider(worked_chain):
    return FakeProvider(quote=102.0, chain=worked_chain)
