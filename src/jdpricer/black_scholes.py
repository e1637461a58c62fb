# black_scholes.py
# Vectorised Black-Scholes pricing and Greeks.
# All public functions accept scalars *or* NumPy arrays and broadcast.

from __future__ import annotations
import numpy as np
from scipy.stats import norm

__all__ = ["bs_price_vec", "bs_greeks_vec"]

_N = norm.cdf   # vectorised standard-normal CDF
_n = norm.pdf   # vectorised standard-normal PDF

# floor on sigma*sqrt(T); keeps zero-variance inputs finite
_MIN_STDDEV = 1e-16


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _d1_d2(S, K, T, r, q, sigma):
    """Compute d1, d2 arrays.  All inputs broadcast."""
    S, K, T, r, q, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, q, sigma))
    sig_sqrt_T = np.maximum(sigma * np.sqrt(T), _MIN_STDDEV)
    d1 = (np.log(S / K) + (r - q) * T) / sig_sqrt_T + 0.5 * sig_sqrt_T
    d2 = d1 - sig_sqrt_T
    return d1, d2, sig_sqrt_T


def _is_call(kind) -> np.ndarray:
    """Return boolean mask: True where kind == 'call'."""
    kind = np.asarray(kind)
    if kind.ndim == 0:
        return np.bool_(str(kind) == "call")
    return np.array([str(k) == "call" for k in kind.flat], dtype=bool).reshape(kind.shape)


# ---------------------------------------------------------------------------
# Vectorised price
# ---------------------------------------------------------------------------
def bs_price_vec(S, K, T, r, q, sigma, kind) -> np.ndarray:
    """Vectorised Black-Scholes price.

    Parameters accept scalars or arrays; NumPy broadcasting rules apply.

    Returns
    -------
    np.ndarray
        Option prices (same shape as broadcasted inputs).
    """
    S, K, T, r, q, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, q, sigma))
    d1, d2, _ = _d1_d2(S, K, T, r, q, sigma)
    disc_r = np.exp(-r * T)
    disc_q = np.exp(-q * T)

    call_px = disc_q * S * _N(d1) - disc_r * K * _N(d2)
    put_px  = disc_r * K * _N(-d2) - disc_q * S * _N(-d1)

    return np.where(_is_call(kind), call_px, put_px)


# ---------------------------------------------------------------------------
# Vectorised Greeks
# ---------------------------------------------------------------------------
def bs_greeks_vec(S, K, T, r, q, sigma, kind) -> dict[str, np.ndarray]:
    """Vectorised Black-Scholes price and Greeks.

    Returns dict with keys: value, delta, gamma, vega, theta, rho, dividend_rho.
    Vega is dPrice/dSigma (absolute), theta is dPrice/dt (per year, i.e.
    minus the sensitivity to time-to-expiry), dividend_rho is dPrice/dq.
    """
    S, K, T, r, q, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, q, sigma))
    d1, d2, sig_sqrt_T = _d1_d2(S, K, T, r, q, sigma)
    disc_r = np.exp(-r * T)
    disc_q = np.exp(-q * T)
    sqrt_T = np.sqrt(T)
    n_d1 = _n(d1)
    is_call = _is_call(kind)

    # Common
    gamma = disc_q * n_d1 / (S * sig_sqrt_T)
    vega  = S * disc_q * n_d1 * sqrt_T
    decay = -S * disc_q * n_d1 * sig_sqrt_T / (2 * T)

    # Call-specific
    value_c = disc_q * S * _N(d1) - disc_r * K * _N(d2)
    delta_c = disc_q * _N(d1)
    theta_c = decay - r * K * disc_r * _N(d2) + q * S * disc_q * _N(d1)
    rho_c   = K * T * disc_r * _N(d2)
    drho_c  = -S * T * disc_q * _N(d1)

    # Put-specific
    value_p = disc_r * K * _N(-d2) - disc_q * S * _N(-d1)
    delta_p = disc_q * (_N(d1) - 1.0)
    theta_p = decay + r * K * disc_r * _N(-d2) - q * S * disc_q * _N(-d1)
    rho_p   = -K * T * disc_r * _N(-d2)
    drho_p  = S * T * disc_q * _N(-d1)

    return {
        "value": np.where(is_call, value_c, value_p),
        "delta": np.where(is_call, delta_c, delta_p),
        "gamma": gamma,
        "vega": vega,
        "theta": np.where(is_call, theta_c, theta_p),
        "rho": np.where(is_call, rho_c, rho_p),
        "dividend_rho": np.where(is_call, drho_c, drho_p),
    }
