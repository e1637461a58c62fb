import numpy as np
import pytest

from jdpricer import CALL, PUT
from jdpricer.black_scholes import bs_price_vec, bs_greeks_vec

ARGS = dict(S=100.0, K=100.0, T=1.0, r=0.05, q=0.0, sigma=0.2)


def test_bs_known_values():
    assert abs(float(bs_price_vec(**ARGS, kind=CALL)) - 10.4506) < 1e-3
    assert abs(float(bs_price_vec(**ARGS, kind=PUT)) - 5.5735) < 1e-3


def test_put_call_parity_with_dividends():
    S, K, T, r, q = 100.0, 95.0, 0.75, 0.03, 0.02
    c = float(bs_price_vec(S, K, T, r, q, 0.3, CALL))
    p = float(bs_price_vec(S, K, T, r, q, 0.3, PUT))
    assert abs((c - p) - (S * np.exp(-q * T) - K * np.exp(-r * T))) < 1e-10


def test_greeks_value_matches_price():
    g = bs_greeks_vec(**ARGS, kind=CALL)
    assert float(g["value"]) == pytest.approx(float(bs_price_vec(**ARGS, kind=CALL)))


@pytest.mark.parametrize("kind", [CALL, PUT])
@pytest.mark.parametrize("name, bump", [
    ("delta", "S"), ("vega", "sigma"), ("rho", "r"), ("dividend_rho", "q"),
])
def test_greeks_vs_finite_differences(kind, name, bump):
    args = dict(ARGS, q=0.01)
    g = bs_greeks_vec(**args, kind=kind)
    h = 1e-4 * max(abs(args[bump]), 1.0)
    up = float(bs_price_vec(**dict(args, **{bump: args[bump] + h}), kind=kind))
    dn = float(bs_price_vec(**dict(args, **{bump: args[bump] - h}), kind=kind))
    assert float(g[name]) == pytest.approx((up - dn) / (2 * h), rel=1e-5, abs=1e-8)


@pytest.mark.parametrize("kind", [CALL, PUT])
def test_theta_is_minus_maturity_sensitivity(kind):
    args = dict(ARGS, q=0.01)
    g = bs_greeks_vec(**args, kind=kind)
    h = 1e-5
    up = float(bs_price_vec(**dict(args, T=args["T"] + h), kind=kind))
    dn = float(bs_price_vec(**dict(args, T=args["T"] - h), kind=kind))
    assert float(g["theta"]) == pytest.approx(-(up - dn) / (2 * h), rel=1e-5)


def test_vectorised_shapes():
    S = np.array([90.0, 100.0, 110.0])
    px = bs_price_vec(S, 100.0, 1.0, 0.05, 0.0, 0.2, CALL)
    assert px.shape == (3,)
    assert np.all(np.diff(px) > 0)
    kinds = np.array([CALL, PUT, CALL])
    g = bs_greeks_vec(S, 100.0, 1.0, 0.05, 0.0, 0.2, kinds)
    assert g["delta"][1] < 0 < g["delta"][0]


def test_zero_volatility_is_discounted_intrinsic():
    # forward 100*e^{0.05} > K: call worth S - K e^{-rT}
    px = float(bs_price_vec(100.0, 100.0, 1.0, 0.05, 0.0, 0.0, CALL))
    assert px == pytest.approx(100.0 - 100.0 * np.exp(-0.05), abs=1e-12)
    g = bs_greeks_vec(100.0, 100.0, 1.0, 0.05, 0.0, 0.0, CALL)
    assert np.isfinite(float(g["gamma"]))
