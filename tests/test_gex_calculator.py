"""
Tests for the GEX calculator.

Tests cover:
- Per-leg exposure formula and the worked two-strike example
- Put gamma sign policies
- Cumulative curve invariants
- Missing gamma handling
- Empty chains and invalid spot
"""

import pytest

from src.gex.errors import MissingInputError
from src.gex.gex_calculator import (
    GEXCalculator,
    PutGammaPolicy,
    cumulative_curve,
    leg_exposure,
)
from src.gex.gex_metrics import ContractLeg

# 100 x 102^2 x 0.01
UNIT_EXPOSURE_AT_102 = 10404.0


class TestLegExposure:
    """Tests for the per-leg dollar gamma formula."""

    def test_formula(self):
        leg = ContractLeg(gamma=0.05, open_interest=1000)
        assert leg_exposure(leg, 102.0) == pytest.approx(0.05 * 1000 * UNIT_EXPOSURE_AT_102)

    def test_missing_gamma_is_zero(self):
        assert leg_exposure(ContractLeg(gamma=None, open_interest=1000), 102.0) == 0.0


class TestWorkedExample:
    """Two strikes, spot 102, provider-signed put gamma."""

    @pytest.fixture
    def profile(self, worked_chain):
        return GEXCalculator().calculate_profile(worked_chain, 102.0, symbol='TEST')

    def test_strike_exposures(self, profile):
        low, high = profile.strikes

        assert low.strike == 100.0
        assert low.call_gex == pytest.approx(520200.0)
        assert low.put_gex == pytest.approx(-332928.0)
        assert low.net_gex == pytest.approx(187272.0)

        assert high.strike == 105.0
        assert high.call_gex == pytest.approx(156060.0)
        assert high.put_gex == pytest.approx(-187272.0)
        assert high.net_gex == pytest.approx(-31212.0)

    def test_cumulative_curve(self, profile):
        assert profile.cumulative_gex == pytest.approx([187272.0, 156060.0])

    def test_key_levels(self, profile):
        # No sign change: flip falls back to the strike with the smallest |cumulative|
        assert profile.gamma_flip == 105.0
        assert profile.call_wall == 100.0
        assert profile.put_wall == 105.0

    def test_ivs(self, profile):
        assert profile.atm_iv == pytest.approx((30.0 + 32.0 + 28.0 + 31.0) / 4)
        assert profile.call_wall_iv == 30.0
        assert profile.put_wall_iv == 31.0

    def test_totals_and_ratio(self, profile):
        low = profile.strikes[0]
        assert low.total_oi == 1800
        assert low.total_volume == 700
        assert low.vol_oi_ratio == pytest.approx(700 / 1800)

    def test_metadata(self, profile):
        assert profile.symbol == 'TEST'
        assert profile.spot_price == 102.0
        assert profile.expiration_dates == ['2026-02-20']
        assert profile.put_gamma_policy == 'native'

    def test_payload(self, profile):
        payload = profile.to_dict()

        assert payload['callWall'] == 100.0
        assert payload['aggregateGex'] == profile.cumulative_gex
        assert set(payload['strikes'][0]) == {
            'strike', 'callGex', 'putGex', 'netGex', 'callOI', 'putOI', 'totalOI',
            'callVol', 'putVol', 'totalVol', 'volOIRatio', 'callIV', 'putIV',
        }


class TestPutGammaPolicy:
    """Tests for the put sign conventions."""

    def test_force_negative_with_unsigned_gamma(self, make_chain, make_contract):
        chain = make_chain(calls={100: make_contract(gamma=0.05, oi=1000)},
                           puts={100: make_contract(gamma=0.04, oi=800)})

        native = GEXCalculator(PutGammaPolicy.NATIVE_SIGN).calculate_profile(chain, 102.0)
        forced = GEXCalculator(PutGammaPolicy.FORCE_NEGATIVE).calculate_profile(chain, 102.0)

        assert native.strikes[0].put_gex == pytest.approx(332928.0)
        assert forced.strikes[0].put_gex == pytest.approx(-332928.0)
        assert forced.strikes[0].net_gex == pytest.approx(187272.0)
        assert forced.put_gamma_policy == 'negate'

    def test_policy_from_name(self):
        assert GEXCalculator('negate').put_gamma_policy is PutGammaPolicy.FORCE_NEGATIVE

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            GEXCalculator('hybrid')


class TestCurveInvariants:
    """Tests for strike ordering and the cumulative curve."""

    @pytest.fixture
    def chain(self, make_chain, make_contract):
        calls = {k: make_contract(gamma=0.01 * (i + 1), oi=100 * (i + 1), iv=20 + i)
                 for i, k in enumerate([110, 90, 100, 95, 105])}
        puts = {k: make_contract(gamma=-0.02 * (i + 1), oi=150, iv=25 + i)
                for i, k in enumerate([95, 110, 90, 100, 105, 85])}
        return make_chain(calls=calls, puts=puts)

    def test_strikes_ascending_unique(self, chain):
        profile = GEXCalculator().calculate_profile(chain, 100.0)
        strikes = profile.strike_prices
        assert strikes == sorted(set(strikes))
        assert strikes[0] == 85.0

    def test_cumulative_matches_running_sum(self, chain):
        profile = GEXCalculator().calculate_profile(chain, 100.0)
        nets = [s.net_gex for s in profile.strikes]

        assert len(profile.cumulative_gex) == len(profile.strikes)
        assert profile.cumulative_gex[-1] == sum(nets)
        for i in range(1, len(nets)):
            assert profile.cumulative_gex[i] == profile.cumulative_gex[i - 1] + nets[i]

    def test_identical_inputs_identical_output(self, chain):
        first = GEXCalculator().calculate_profile(chain, 100.0, symbol='X').to_dict()
        second = GEXCalculator().calculate_profile(chain, 100.0, symbol='X').to_dict()
        assert first == second

    def test_cumulative_curve_helper(self):
        assert cumulative_curve([]) == []
        assert cumulative_curve([1.0, -3.0, 2.5]) == [1.0, -2.0, 0.5]


class TestMalformedData:
    """Tests for partial data handling."""

    def test_missing_gamma_keeps_oi_and_volume(self, make_chain, make_contract):
        chain = make_chain(calls={100: make_contract(oi=500, volume=50)},
                           puts={100: make_contract(gamma=-0.01, oi=100, volume=10)})
        profile = GEXCalculator().calculate_profile(chain, 100.0)
        strike = profile.strikes[0]

        assert strike.call_gex == 0.0
        assert strike.call_oi == 500
        assert strike.call_volume == 50
        assert strike.total_oi == 600
        assert strike.net_gex == pytest.approx(strike.put_gex)

    def test_zero_open_interest_ratio(self, make_chain, make_contract):
        chain = make_chain(calls={100: make_contract(gamma=0.01, volume=50)})
        profile = GEXCalculator().calculate_profile(chain, 100.0)
        assert profile.strikes[0].vol_oi_ratio == 0

    def test_vol_oi_ratio_capped(self, make_chain, make_contract):
        chain = make_chain(calls={100: make_contract(gamma=0.01, oi=1, volume=500)})
        profile = GEXCalculator().calculate_profile(chain, 100.0)
        assert profile.strikes[0].vol_oi_ratio == 10


class TestPreconditions:
    """Tests for empty chains and invalid spot."""

    def test_empty_chain_returns_none(self):
        assert GEXCalculator().calculate_profile({}, 100.0) is None

    @pytest.mark.parametrize("spot", [None, 0, -1.5, float('nan'), float('inf')])
    def test_invalid_spot(self, worked_chain, spot):
        with pytest.raises(MissingInputError):
            GEXCalculator().calculate_profile(worked_chain, spot)
