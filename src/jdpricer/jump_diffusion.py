"""Merton (1976) jump-diffusion pricing as a Poisson mixture.

Conditional on exactly ``n`` jumps before expiry the Merton model is a
Black-Scholes model with adjusted volatility and rate, so the option value is

    V = sum_n  P(N = n) * BS(sigma_n, r_n),      N ~ Poisson(lambda' * t)

with lambda' = lambda * (1 + k), k = E[e^Y - 1],

    sigma_n^2 = sigma^2 + n * sigma_J^2 / t
    r_n       = r - lambda * k + n * (mu + sigma_J^2 / 2) / t.

``JumpDiffusionEngine`` truncates the series adaptively and delegates each
term to any diffusion-only ``PricingEngine``; ``merton_series_price`` is a
fixed-length vectorised version used as a reference.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date

import numpy as np
from scipy.stats import poisson

from .black_scholes import bs_price_vec
from .daycount import DayCounter
from .engines import PricingEngine, VanillaArguments, VanillaResults
from .errors import ConvergenceFailure, InvalidArguments, InvalidConfiguration, TypeMismatch
from .processes import Merton76Process
from .termstructures import BlackConstantVol, FlatForward

__all__ = [
    "poisson_weight",
    "JumpParameters",
    "JumpDiffusionResults",
    "JumpDiffusionEngine",
    "merton_series_price",
]

logger = logging.getLogger(__name__)

_EPS = np.finfo(float).eps


def poisson_weight(mean: float, n: int) -> float:
    """Probability of exactly ``n`` jumps when ``mean`` jumps are expected."""
    if mean < 0:
        raise ValueError(f"mean must be non-negative, got {mean}")
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return float(poisson.pmf(n, mean))


@dataclass(frozen=True)
class JumpParameters:
    """Scalars derived from a Merton process for one option horizon."""
    jump_intensity: float
    jump_square_vol: float
    mu_plus_half_square_vol: float
    k: float                  # expected relative jump size
    lambda_: float            # compensated intensity (k + 1) * jump_intensity
    variance: float           # Black variance of the diffusion part to expiry
    t: float
    risk_free_rate: float
    reference_date: date      # anchor of the per-iteration flat curves
    day_counter: DayCounter

    @classmethod
    def from_process(
        cls, process: Merton76Process, last_date: date, strike: float
    ) -> JumpParameters:
        jump_square_vol = process.log_jump_volatility ** 2
        mu_plus_half_square_vol = process.log_jump_mean + 0.5 * jump_square_vol
        k = math.exp(mu_plus_half_square_vol) - 1.0

        vol_ts = process.black_vol_ts
        day_counter = vol_ts.day_counter
        t = day_counter.year_fraction(vol_ts.reference_date, last_date)
        variance = vol_ts.black_variance(last_date, strike)
        risk_free_rate = -math.log(process.risk_free_ts.discount(last_date)) / t

        return cls(
            jump_intensity=process.jump_intensity,
            jump_square_vol=jump_square_vol,
            mu_plus_half_square_vol=mu_plus_half_square_vol,
            k=k,
            lambda_=(k + 1.0) * process.jump_intensity,
            variance=variance,
            t=t,
            risk_free_rate=risk_free_rate,
            reference_date=process.risk_free_ts.reference_date,
            day_counter=day_counter,
        )

    @property
    def poisson_mean(self) -> float:
        return self.lambda_ * self.t

    def volatility(self, n: int) -> float:
        return math.sqrt((self.variance + n * self.jump_square_vol) / self.t)

    def rate(self, n: int) -> float:
        return (self.risk_free_rate - self.jump_intensity * self.k
                + n * self.mu_plus_half_square_vol / self.t)


@dataclass
class JumpDiffusionResults(VanillaResults):
    """Mixture value and Greeks plus diagnostics of the summation."""
    iterations: int = 0
    weights: tuple = ()
    last_contribution: float = math.nan

    @property
    def cumulative_weight(self) -> float:
        return math.fsum(self.weights)


class JumpDiffusionEngine(PricingEngine):
    """Prices options on a ``Merton76Process`` as a Poisson mixture.

    Each term re-binds ``base_engine`` to a Black-Scholes process with flat
    curves at the jump-adjusted rate and volatility, so the base engine is
    mutated on every iteration and must not be shared across concurrent
    calculations.

    Parameters
    ----------
    base_engine : PricingEngine
        Diffusion-only engine pricing each term.
    relative_accuracy : float
        Summation stops once the last weighted term is at most this
        fraction of the running value, or once the Poisson tail beyond the
        last term is below machine epsilon.
    max_iterations : int
        Cap on the number of terms; hitting it raises ``ConvergenceFailure``.
    absolute_accuracy : float
        Smallest running value the relative test trusts. Below it the
        mixture keeps summing until the Poisson tail is exhausted, since the
        jump terms may carry nearly all of the value.
    """

    def __init__(
        self,
        base_engine: PricingEngine,
        relative_accuracy: float = 1e-4,
        max_iterations: int = 100,
        absolute_accuracy: float = 1e-12,
    ):
        if base_engine is None:
            raise InvalidConfiguration("null base engine")
        if not isinstance(base_engine, PricingEngine):
            raise InvalidConfiguration(
                f"base engine must be a PricingEngine, got {type(base_engine).__name__}"
            )
        if not relative_accuracy > 0:
            raise InvalidConfiguration(
                f"relative_accuracy must be positive, got {relative_accuracy}"
            )
        if int(max_iterations) != max_iterations or max_iterations <= 0:
            raise InvalidConfiguration(
                f"max_iterations must be a positive integer, got {max_iterations}"
            )
        if not absolute_accuracy > 0:
            raise InvalidConfiguration(
                f"absolute_accuracy must be positive, got {absolute_accuracy}"
            )
        super().__init__()
        self.base_engine = base_engine
        self.relative_accuracy = float(relative_accuracy)
        self.max_iterations = int(max_iterations)
        self.absolute_accuracy = float(absolute_accuracy)

    def _new_arguments(self) -> VanillaArguments:
        return VanillaArguments(process_types=(Merton76Process,))

    def _new_results(self) -> JumpDiffusionResults:
        return JumpDiffusionResults()

    def _bind_base_engine(self, process: Merton76Process) -> None:
        base = self.base_engine
        base.reset()
        base.arguments.payoff = self.arguments.payoff
        base.arguments.exercise = self.arguments.exercise
        base.arguments.process = process.diffusion_process()
        try:
            base.validate()
        except TypeMismatch as exc:
            raise InvalidArguments(f"base engine rejected arguments: {exc}") from exc

    def calculate(self) -> None:
        process = self.arguments.process
        if not isinstance(process, Merton76Process):
            raise TypeMismatch(
                f"not a jump diffusion process: {type(process).__name__}"
            )

        params = JumpParameters.from_process(
            process, self.arguments.exercise.last_date, self.arguments.payoff.strike
        )
        self._bind_base_engine(process)

        base_args = self.base_engine.arguments
        base_results = self.base_engine.results
        mean = params.poisson_mean

        res = self.results
        res.reset()
        res.value = res.delta = res.gamma = res.theta = 0.0
        res.vega = res.rho = res.dividend_rho = 0.0
        weights = []

        converged = False
        last_contribution = math.inf
        for i in range(self.max_iterations):
            # constant vol/rate assumption per term
            v = params.volatility(i)
            r = params.rate(i)
            base_args.process = base_args.process.with_curves(
                risk_free_ts=FlatForward(params.reference_date, r, params.day_counter),
                black_vol_ts=BlackConstantVol(params.reference_date, v, params.day_counter),
            )
            try:
                self.base_engine.validate()
                self.base_engine.calculate()
            except InvalidArguments:
                res.reset()
                raise
            except (TypeMismatch, ValueError) as exc:
                res.reset()
                raise InvalidArguments(
                    f"base engine failed on term {i} (vol={v:.6f}, rate={r:.6f}): {exc}"
                ) from exc

            weight = poisson_weight(mean, i)
            weights.append(weight)
            addendum = weight * base_results.value
            res.value += addendum
            res.delta += weight * base_results.delta
            res.gamma += weight * base_results.gamma
            res.theta += weight * base_results.theta
            res.vega += weight * base_results.vega
            res.rho += weight * base_results.rho
            res.dividend_rho += weight * base_results.dividend_rho

            last_contribution = abs(addendum) / max(abs(res.value), self.absolute_accuracy)
            logger.debug(
                "term %d: vol=%.6f rate=%.6f weight=%.6e value=%.6e contribution=%.3e",
                i, v, r, weight, base_results.value, last_contribution,
            )
            # a running value below the floor says nothing about the remaining terms
            tail = float(poisson.sf(i, mean))
            if tail <= _EPS or (abs(res.value) >= self.absolute_accuracy
                                and last_contribution <= self.relative_accuracy):
                converged = True
                break

        res.iterations = len(weights)
        res.weights = tuple(weights)
        res.last_contribution = last_contribution

        if not converged:
            value = res.value
            logger.warning(
                "jump diffusion series did not converge: %d terms, last "
                "contribution %.3e > %.3e", res.iterations, last_contribution,
                self.relative_accuracy,
            )
            res.reset()
            raise ConvergenceFailure(
                len(weights), self.relative_accuracy, last_contribution, value,
            )

        logger.debug(
            "jump diffusion series converged after %d terms: value=%.10f",
            res.iterations, res.value,
        )


# ---------------------------------------------------------------------------
# Fixed-length reference series
# ---------------------------------------------------------------------------

def merton_series_price(
    S, K, T, r, q, sigma, lam, mu_j, sigma_j, kind, *, n_terms: int = 50,
) -> np.ndarray:
    """Vectorised Merton price summing the first ``n_terms`` Poisson terms.

    Parameters accept scalars or arrays and broadcast; ``lam``, ``mu_j`` and
    ``sigma_j`` are the jump intensity and the mean / std of the log jump.
    """
    if n_terms <= 0:
        raise ValueError("n_terms must be positive.")
    S, K, T, r, q, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, q, sigma))
    lam, mu_j, sigma_j = (np.asarray(x, dtype=float) for x in (lam, mu_j, sigma_j))

    half = mu_j + 0.5 * sigma_j * sigma_j
    k = np.exp(half) - 1.0
    mean = lam * (1.0 + k) * T

    total = np.zeros(np.broadcast_shapes(
        S.shape, K.shape, T.shape, r.shape, q.shape, sigma.shape, mean.shape,
    ))
    for n in range(n_terms):
        sigma_n = np.sqrt(sigma * sigma + n * sigma_j * sigma_j / T)
        r_n = r - lam * k + n * half / T
        total = total + poisson.pmf(n, mean) * bs_price_vec(S, K, T, r_n, q, sigma_n, kind)
    return total
