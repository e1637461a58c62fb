from datetime import date, timedelta

import pytest

from jdpricer import (
    Actual365Fixed, BlackConstantVol, BlackScholesProcess, FlatForward,
    Merton76Process, SimpleQuote,
)

REF = date(2023, 1, 2)
EXPIRY = REF + timedelta(days=365)   # exactly one year on Actual/365
DC = Actual365Fixed()


@pytest.fixture
def market():
    """Factory for flat (spot, dividend, risk-free, vol) market data."""
    def _build(S0=100.0, r=0.05, q=0.0, sigma=0.20, dc=DC):
        return (
            SimpleQuote(S0),
            FlatForward(REF, q, dc),
            FlatForward(REF, r, dc),
            BlackConstantVol(REF, sigma, dc),
        )
    return _build


@pytest.fixture
def bs_process(market):
    def _build(**kw):
        return BlackScholesProcess(*market(**kw))
    return _build


@pytest.fixture
def merton_process(market):
    def _build(lam=0.1, mu_j=-0.1, sigma_j=0.15, **kw):
        return Merton76Process(*market(**kw), jump_intensity=lam,
                               log_jump_mean=mu_j, log_jump_volatility=sigma_j)
    return _build
