"""Diffusion-only pricing engines.

An engine is a stateful calculator: callers fill ``engine.arguments``,
call ``validate()`` and ``calculate()``, then read ``engine.results``.
The same engine instance can be re-bound and recalculated any number of
times, which is what the jump-diffusion engine relies on.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from math import exp, sqrt
from typing import Optional

import numpy as np

from .black_scholes import bs_greeks_vec
from .core import CALL, AmericanExercise, EuropeanExercise, PlainVanillaPayoff
from .errors import InvalidArguments, InvalidConfiguration, TypeMismatch
from .processes import BlackScholesProcess

__all__ = [
    "VanillaArguments",
    "VanillaResults",
    "PricingEngine",
    "AnalyticEuropeanEngine",
    "BinomialVanillaEngine",
]


# ---------------------------------------------------------------------------
# Arguments / results
# ---------------------------------------------------------------------------

class VanillaArguments:
    """Mutable bundle of what an engine prices: process, payoff, exercise.

    Parameters
    ----------
    exercise_types : tuple of type
        Exercise styles the owning engine can handle.
    process_types : tuple of type
        Process kinds the owning engine can handle.
    """

    def __init__(
        self,
        exercise_types: tuple = (EuropeanExercise, AmericanExercise),
        process_types: tuple = (BlackScholesProcess,),
    ):
        self.exercise_types = exercise_types
        self.process_types = process_types
        self.process = None
        self.payoff: Optional[PlainVanillaPayoff] = None
        self.exercise = None

    def validate(self) -> None:
        if self.process is None:
            raise InvalidArguments("no process given")
        if not isinstance(self.process, self.process_types):
            expected = ", ".join(t.__name__ for t in self.process_types)
            raise TypeMismatch(
                f"{type(self.process).__name__} given, engine requires {expected}"
            )
        if self.payoff is None:
            raise InvalidArguments("no payoff given")
        if not isinstance(self.payoff, PlainVanillaPayoff):
            raise InvalidArguments(
                f"{type(self.payoff).__name__} payoff not supported"
            )
        if self.exercise is None:
            raise InvalidArguments("no exercise given")
        if not isinstance(self.exercise, self.exercise_types):
            raise InvalidArguments(
                f"{type(self.exercise).__name__} not supported by this engine"
            )
        last_date = self.exercise.last_date
        for curve in (self.process.risk_free_ts, self.process.black_vol_ts):
            if last_date <= curve.reference_date:
                raise InvalidArguments(
                    f"option expired: last exercise date {last_date} is not "
                    f"after reference date {curve.reference_date}"
                )


@dataclass
class VanillaResults:
    """Value and Greeks. Unset fields are NaN."""
    value: float = math.nan
    delta: float = math.nan
    gamma: float = math.nan
    theta: float = math.nan
    vega: float = math.nan
    rho: float = math.nan
    dividend_rho: float = math.nan

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, f.default)


# ---------------------------------------------------------------------------
# Engine interface
# ---------------------------------------------------------------------------

class PricingEngine(ABC):
    """Base pricer: ``reset()``, ``validate()``, ``calculate()``."""

    def __init__(self):
        self.arguments = self._new_arguments()
        self.results = self._new_results()

    def _new_arguments(self) -> VanillaArguments:
        return VanillaArguments()

    def _new_results(self) -> VanillaResults:
        return VanillaResults()

    def reset(self) -> None:
        self.results.reset()

    def validate(self) -> None:
        self.arguments.validate()

    @abstractmethod
    def calculate(self) -> None:
        ...


def _black_scholes_inputs(arguments: VanillaArguments):
    """Flatten bound curves to ``(S, K, T, r, q, sigma, kind)`` at expiry.

    Time is measured with the volatility curve's day counter; rates are the
    continuously-compounded zero rates implied by the discount factors.
    """
    process = arguments.process
    payoff = arguments.payoff
    last_date = arguments.exercise.last_date

    vol_ts = process.black_vol_ts
    T = vol_ts.time_from_reference(last_date)
    variance = vol_ts.black_variance(last_date, payoff.strike)
    r = -math.log(process.risk_free_ts.discount(last_date)) / T
    q = -math.log(process.dividend_ts.discount(last_date)) / T
    sigma = math.sqrt(variance / T)
    return process.x0, payoff.strike, T, r, q, sigma, payoff.kind


# ---------------------------------------------------------------------------
# Analytic Black-Scholes
# ---------------------------------------------------------------------------

class AnalyticEuropeanEngine(PricingEngine):
    """Closed-form Black-Scholes value and Greeks, European exercise only."""

    def _new_arguments(self) -> VanillaArguments:
        return VanillaArguments(exercise_types=(EuropeanExercise,))

    def calculate(self) -> None:
        S, K, T, r, q, sigma, kind = _black_scholes_inputs(self.arguments)
        greeks = bs_greeks_vec(S, K, T, r, q, sigma, kind)
        for name, val in greeks.items():
            setattr(self.results, name, float(val))


# ---------------------------------------------------------------------------
# Cox-Ross-Rubinstein tree
# ---------------------------------------------------------------------------

def _crr_rollback(S0, K, T, r, q, sigma, kind, N, american):
    """Roll a CRR tree back to the root; return option values at steps 0-2."""
    dt = T / N
    u  = exp(sigma * sqrt(dt))
    d  = 1.0 / u
    disc = exp(-r * dt)
    p = (exp((r - q) * dt) - d) / (u - d)
    if not (0.0 < p < 1.0):
        raise ValueError("Risk-neutral prob p out of (0,1); try larger N or different params.")

    # Payoff at maturity
    j = np.arange(N + 1)
    ST = S0 * (u ** j) * (d ** (N - j))
    if kind == CALL:
        V = np.maximum(ST - K, 0.0)
    else:
        V = np.maximum(K - ST, 0.0)

    # Backward induction
    early = {N: V.copy()} if N <= 2 else {}
    for k in range(N - 1, -1, -1):
        V = disc * (p * V[1:] + (1.0 - p) * V[:-1])
        if american:
            j = np.arange(k + 1)
            S_k = S0 * (u ** j) * (d ** (k - j))
            if kind == CALL:
                V = np.maximum(V, S_k - K)
            else:
                V = np.maximum(V, K - S_k)
        if k <= 2:
            early[k] = V.copy()

    return early, u, d, dt


class BinomialVanillaEngine(PricingEngine):
    """CRR binomial tree on flattened curves. European or American exercise.

    Delta, gamma and theta come from the first two steps of the lattice;
    vega, rho and dividend rho by central bump-and-reprice.

    Parameters
    ----------
    steps : int
        Number of time steps (at least 2).
    """

    def __init__(self, steps: int = 500):
        if steps < 2:
            raise InvalidConfiguration(f"steps must be at least 2, got {steps}")
        super().__init__()
        self.steps = int(steps)

    def _price(self, S0, K, T, r, q, sigma, kind, american) -> float:
        early, *_ = _crr_rollback(S0, K, T, r, q, sigma, kind, self.steps, american)
        return float(early[0][0])

    def calculate(self) -> None:
        S0, K, T, r, q, sigma, kind = _black_scholes_inputs(self.arguments)
        american = isinstance(self.arguments.exercise, AmericanExercise)

        early, u, d, dt = _crr_rollback(S0, K, T, r, q, sigma, kind, self.steps, american)
        V0, V1, V2 = early[0][0], early[1], early[2]

        S1 = S0 * np.array([d, u])
        S2 = S0 * np.array([d * d, 1.0, u * u])
        delta = (V1[1] - V1[0]) / (S1[1] - S1[0])
        delta_up = (V2[2] - V2[1]) / (S2[2] - S2[1])
        delta_dn = (V2[1] - V2[0]) / (S2[1] - S2[0])
        gamma = (delta_up - delta_dn) / (0.5 * (S2[2] - S2[0]))
        theta = (V2[1] - V0) / (2.0 * dt)

        # --- Vega (vol bump) ---
        eps_v = max(0.01 * sigma, 1e-4)
        sig_dn = max(sigma - eps_v, 1e-6)
        vega = (self._price(S0, K, T, r, q, sigma + eps_v, kind, american)
                - self._price(S0, K, T, r, q, sig_dn, kind, american)) / (sigma + eps_v - sig_dn)

        # --- Rho / dividend rho (rate bumps) ---
        eps_r = 1e-4
        rho = (self._price(S0, K, T, r + eps_r, q, sigma, kind, american)
               - self._price(S0, K, T, r - eps_r, q, sigma, kind, american)) / (2.0 * eps_r)
        dividend_rho = (self._price(S0, K, T, r, q + eps_r, sigma, kind, american)
                        - self._price(S0, K, T, r, q - eps_r, sigma, kind, american)) / (2.0 * eps_r)

        res = self.results
        res.value = float(V0)
        res.delta = float(delta)
        res.gamma = float(gamma)
        res.theta = float(theta)
        res.vega = float(vega)
        res.rho = float(rho)
        res.dividend_rho = float(dividend_rho)
