"""Tests for process descriptions and path generators."""

import dataclasses
from datetime import date

import numpy as np
import pytest

from jdpricer import Actual365Fixed, BlackScholesProcess, FlatForward, Merton76Process
from jdpricer.processes import flat_parameters, gbm_paths, merton_jump_paths, simulate_paths

REF = date(2023, 1, 2)
DC = Actual365Fixed()


class TestProcessDescriptions:
    def test_negative_jump_vol_rejected(self, market):
        with pytest.raises(ValueError):
            Merton76Process(*market(), jump_intensity=0.1, log_jump_mean=0.0,
                            log_jump_volatility=-0.1)

    def test_negative_intensity_rejected(self, market):
        with pytest.raises(ValueError):
            Merton76Process(*market(), jump_intensity=-1.0, log_jump_mean=0.0,
                            log_jump_volatility=0.1)

    def test_diffusion_part_shares_market_data(self, merton_process):
        jd = merton_process()
        bs = jd.diffusion_process()
        assert isinstance(bs, BlackScholesProcess)
        assert not isinstance(bs, Merton76Process)
        assert bs.state_variable is jd.state_variable
        assert bs.dividend_ts is jd.dividend_ts
        assert bs.risk_free_ts is jd.risk_free_ts
        assert bs.black_vol_ts is jd.black_vol_ts

    def test_with_curves_returns_new_process(self, bs_process):
        p = bs_process()
        new_rf = FlatForward(REF, 0.01, DC)
        q = p.with_curves(risk_free_ts=new_rf)
        assert q.risk_free_ts is new_rf
        assert q.black_vol_ts is p.black_vol_ts
        assert p.risk_free_ts is not new_rf

    def test_with_curves_keeps_falsy_curve(self, bs_process):
        class _SizedCurve(FlatForward):
            def __len__(self):
                return 0

        p = bs_process()
        curve = _SizedCurve(REF, 0.01, DC)
        assert not curve
        assert p.with_curves(risk_free_ts=curve).risk_free_ts is curve
        assert p.with_curves(black_vol_ts=None).black_vol_ts is p.black_vol_ts

    def test_frozen(self, bs_process):
        p = bs_process()
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.risk_free_ts = FlatForward(REF, 0.01, DC)

    def test_spot_quote_is_shared(self, merton_process):
        jd = merton_process()
        bs = jd.diffusion_process()
        jd.state_variable.set_value(120.0)
        assert bs.x0 == 120.0

    def test_flat_parameters(self, bs_process):
        S0, r, q, sigma = flat_parameters(bs_process(r=0.03, q=0.01, sigma=0.25), 2.0)
        assert (S0, r, q, sigma) == pytest.approx((100.0, 0.03, 0.01, 0.25))


class TestPaths:
    def test_gbm_shape_and_antithetic(self, bs_process):
        S = gbm_paths(bs_process(), 1.0, 50, 1000, seed=1)
        assert S.shape == (51, 2000)
        assert np.all(S[0] == 100.0)

    def test_gbm_martingale(self, bs_process):
        S = gbm_paths(bs_process(), 1.0, 1, 100_000, seed=3)
        disc_mean = np.exp(-0.05) * S[-1].mean()
        assert abs(disc_mean - 100.0) / 100.0 < 0.005

    def test_merton_martingale(self, merton_process):
        """Compensated drift: e^{-(r-q)T} E[S_T] = S0 with jumps too."""
        S = merton_jump_paths(merton_process(lam=1.0, mu_j=-0.2, sigma_j=0.3),
                              1.0, 10, 100_000, seed=5)
        disc_mean = np.exp(-0.05) * S[-1].mean()
        assert abs(disc_mean - 100.0) / 100.0 < 0.01

    def test_zero_intensity_matches_gbm(self, merton_process, bs_process):
        jd = merton_process(lam=0.0)
        S_jd = merton_jump_paths(jd, 1.0, 20, 500, seed=11)
        S_bs = gbm_paths(jd.diffusion_process(), 1.0, 20, 500, seed=11)
        np.testing.assert_allclose(S_jd, S_bs)

    def test_dispatch(self, merton_process, bs_process):
        assert simulate_paths(merton_process(), 1.0, 5, 10, seed=0).shape == (6, 20)
        assert simulate_paths(bs_process(), 1.0, 5, 10, antithetic=False,
                              seed=0).shape == (6, 10)
        with pytest.raises(TypeError):
            simulate_paths(object(), 1.0, 5, 10)

    def test_invalid_sizes(self, bs_process):
        with pytest.raises(ValueError):
            gbm_paths(bs_process(), 1.0, 0, 10)
