# processes.py
# Stochastic process descriptions consumed by the pricing engines, plus
# exact path generators for each of them.
#
# The two process kinds are distinct types rather than a class hierarchy:
# an engine that needs jumps checks for ``Merton76Process`` and a
# diffusion-only engine checks for ``BlackScholesProcess``.
#
# Path generators return an array of shape (n_steps+1, n_paths_eff) that
# includes the t=0 row with S0. If antithetic=True, the number of returned
# paths is doubled (n_paths_eff = 2 * n_paths).

from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import ClassVar, Optional, Union

import numpy as np

from .core import SimpleQuote
from .termstructures import BlackVolTermStructure, YieldTermStructure


__all__ = [
    "BlackScholesProcess",
    "Merton76Process",
    "StochasticProcess",
    "flat_parameters",
    "gbm_paths",
    "merton_jump_paths",
    "simulate_paths",
]


# ---------------------------------------------------------------------------
# Process descriptions
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class BlackScholesProcess:
    """Diffusion-only process dS/S = (r - q) dt + sigma dW.

    Market data is shared, not owned: several processes may point at the
    same quote and curves.
    """
    state_variable: SimpleQuote
    dividend_ts: YieldTermStructure
    risk_free_ts: YieldTermStructure
    black_vol_ts: BlackVolTermStructure

    kind: ClassVar[str] = "black_scholes"

    @property
    def x0(self) -> float:
        return self.state_variable.value

    def with_curves(
        self,
        *,
        risk_free_ts: Optional[YieldTermStructure] = None,
        black_vol_ts: Optional[BlackVolTermStructure] = None,
    ) -> BlackScholesProcess:
        """Copy of this process with some curves swapped out."""
        changes = {}
        if risk_free_ts is not None:
            changes["risk_free_ts"] = risk_free_ts
        if black_vol_ts is not None:
            changes["black_vol_ts"] = black_vol_ts
        return replace(self, **changes)


@dataclass(frozen=True)
class Merton76Process:
    """Merton (1976) jump diffusion under Q:

        dS/S = (r - q - lambda*k) dt + sigma dW + (e^Y - 1) dN,

    with N Poisson of intensity ``jump_intensity``,
    Y ~ N(log_jump_mean, log_jump_volatility^2) and k = E[e^Y - 1].
    """
    state_variable: SimpleQuote
    dividend_ts: YieldTermStructure
    risk_free_ts: YieldTermStructure
    black_vol_ts: BlackVolTermStructure
    jump_intensity: float
    log_jump_mean: float
    log_jump_volatility: float

    kind: ClassVar[str] = "merton76"

    def __post_init__(self):
        if self.jump_intensity < 0:
            raise ValueError(
                f"jump_intensity must be non-negative, got {self.jump_intensity}"
            )
        if self.log_jump_volatility < 0:
            raise ValueError(
                f"log_jump_volatility must be non-negative, got {self.log_jump_volatility}"
            )

    @property
    def x0(self) -> float:
        return self.state_variable.value

    def diffusion_process(self) -> BlackScholesProcess:
        """The diffusion part alone, sharing this process's market data."""
        return BlackScholesProcess(
            self.state_variable, self.dividend_ts,
            self.risk_free_ts, self.black_vol_ts,
        )


StochasticProcess = Union[BlackScholesProcess, Merton76Process]


def flat_parameters(process: StochasticProcess, T: float) -> tuple[float, float, float, float]:
    """Collapse the curves of ``process`` to constants over [0, T].

    Returns ``(S0, r, q, sigma)`` with continuously-compounded zero rates to
    T and the at-the-money-spot Black vol to T.
    """
    if T <= 0:
        raise ValueError(f"T must be positive, got {T}")
    S0 = process.x0
    r = -math.log(process.risk_free_ts.discount(T)) / T
    q = -math.log(process.dividend_ts.discount(T)) / T
    sigma = math.sqrt(process.black_vol_ts.black_variance(T, S0) / T)
    return S0, r, q, sigma


def _rng(seed):
    return np.random.default_rng(seed)


# -----------------------------
# 1) Geometric Brownian Motion
# -----------------------------
def gbm_paths(
    process: BlackScholesProcess,
    T: float, n_steps: int, n_paths: int,
    *, antithetic: bool = True, seed=None,
) -> np.ndarray:
    """
    Exact-discretization GBM under Q:
        S_{t+dt} = S_t * exp((r - q - 0.5*sigma^2) dt + sigma * sqrt(dt) * Z)
    """
    if n_steps <= 0 or n_paths <= 0:
        raise ValueError("n_steps and n_paths must be positive.")
    S0, r, q, sigma = flat_parameters(process, T)

    rng = _rng(seed)
    dt = T / n_steps
    drift = (r - q - 0.5 * sigma * sigma) * dt
    vol = sigma * np.sqrt(dt)

    Z = rng.standard_normal((n_steps, n_paths))
    if antithetic:
        Z = np.concatenate([Z, -Z], axis=1)

    log_paths = np.cumsum(drift + vol * Z, axis=0)
    S = S0 * np.exp(log_paths)
    return np.vstack([np.full((1, S.shape[1]), S0, dtype=S.dtype), S])


# ------------------------------------
# 2) Merton Jump-Diffusion (lognormal)
# ------------------------------------
def merton_jump_paths(
    process: Merton76Process,
    T: float, n_steps: int, n_paths: int,
    *, antithetic: bool = True, seed=None,
) -> np.ndarray:
    """
    Exact GBM step plus compound Poisson jump in log space. The jump count
    per step is Poisson(lambda*dt) and the sum of K log-jumps is drawn as
    Normal(K*mu, sqrt(K)*sigma_J), so one step over [0, T] is already exact
    for terminal-value pricing.
    """
    if n_steps <= 0 or n_paths <= 0:
        raise ValueError("n_steps and n_paths must be positive.")
    S0, r, q, sigma = flat_parameters(process, T)
    lam = process.jump_intensity
    mJ = process.log_jump_mean
    sJ = process.log_jump_volatility

    rng = _rng(seed)
    dt = T / n_steps
    kappa = np.exp(mJ + 0.5 * sJ * sJ) - 1.0
    drift = (r - q - 0.5 * sigma * sigma - lam * kappa) * dt
    vol = sigma * np.sqrt(dt)

    Z = rng.standard_normal((n_steps, n_paths))

    # Jump draws before antithetic doubling so they pair correctly
    K_base = rng.poisson(lam * dt, size=(n_steps, n_paths))
    ZJ_base = rng.standard_normal(size=(n_steps, n_paths))

    if antithetic:
        Z = np.concatenate([Z, -Z], axis=1)
        K = np.concatenate([K_base, K_base], axis=1)
        ZJ = np.concatenate([ZJ_base, -ZJ_base], axis=1)
    else:
        K = K_base
        ZJ = ZJ_base

    Y_sum = mJ * K + sJ * np.sqrt(K) * ZJ  # 0 where K=0

    log_paths = np.cumsum(drift + vol * Z + Y_sum, axis=0)
    S = S0 * np.exp(log_paths)
    return np.vstack([np.full((1, S.shape[1]), S0, dtype=S.dtype), S])


def simulate_paths(
    process: StochasticProcess,
    T: float, n_steps: int, n_paths: int,
    *, antithetic: bool = True, seed=None,
) -> np.ndarray:
    """Dispatch to the path generator matching the process kind."""
    if isinstance(process, Merton76Process):
        return merton_jump_paths(process, T, n_steps, n_paths,
                                 antithetic=antithetic, seed=seed)
    if isinstance(process, BlackScholesProcess):
        return gbm_paths(process, T, n_steps, n_paths,
                         antithetic=antithetic, seed=seed)
    raise TypeError(f"unsupported process type {type(process).__name__}")
