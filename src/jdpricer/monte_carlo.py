# jdpricer/monte_carlo.py

from __future__ import annotations
import math
import numpy as np
from concurrent.futures import ProcessPoolExecutor, as_completed

from .core import CALL, PUT, EuropeanExercise, PlainVanillaPayoff
from .errors import InvalidArguments
from .processes import StochasticProcess, flat_parameters, simulate_paths

__all__ = ["euro_price_mc"]


# ---- helper: one simulation chunk (no path storage, only terminal S_T) ----

def _mc_chunk_sumstats(
    n: int,
    *,
    process: StochasticProcess, T: float, K: float, kind: str,
    antithetic: bool, seed: np.random.SeedSequence | int | None,
):
    """
    Simulate `n` terminal draws of S_T under `process` (one exact step),
    compute discounted payoff X and control variate Y = e^{-rT} S_T.
    Return sufficient statistics to aggregate:
        n_eff, sumX, sumX2, sumY, sumY2, sumXY
    """
    if n <= 0:
        return (0, 0.0, 0.0, 0.0, 0.0, 0.0)

    ST = simulate_paths(process, T, 1, n, antithetic=antithetic, seed=seed)[-1, :]
    _, r, _, _ = flat_parameters(process, T)
    df = math.exp(-r * T)

    if kind == CALL:
        payoff = np.maximum(ST - K, 0.0)
    elif kind == PUT:
        payoff = np.maximum(K - ST, 0.0)
    else:
        raise ValueError("kind must be 'call' or 'put'")

    X = df * payoff
    Y = df * ST

    return (X.size, float(X.sum()), float((X * X).sum()),
            float(Y.sum()), float((Y * Y).sum()), float((X * Y).sum()))


def _aggregate_stats(stats_list):
    return tuple(sum(s[i] for s in stats_list) for i in range(6))


def euro_price_mc(
    process: StochasticProcess,
    payoff: PlainVanillaPayoff,
    exercise: EuropeanExercise, *,
    n_paths: int = 100_000,
    seed: int | None = None,
    chunk_size: int = 100_000,
    antithetic: bool = True,
    control_variate: bool = True,
    n_workers: int = 1,
) -> tuple[float, float]:
    """
    Memory-light European option Monte-Carlo pricer (terminal-only) for
    either process kind. Returns (price, stderr).

    - Streams in chunks to cap memory.
    - Optional antithetic variates.
    - Optional control variate Y = e^{-rT}S_T with E[Y] = S0*exp(-qT), which
      holds for the jump process too since its drift is compensated.
    - Optional process-level parallelism.

    Curves are collapsed to flat rates and vol at expiry, measured on the
    volatility curve's day counter.
    """
    if not isinstance(exercise, EuropeanExercise):
        raise InvalidArguments(f"{type(exercise).__name__} not supported by Monte Carlo")
    T = process.black_vol_ts.time_from_reference(exercise.last_date)
    if T <= 0:
        raise InvalidArguments(f"option expired: T={T}")
    S0, _, q, _ = flat_parameters(process, T)
    K, kind = payoff.strike, payoff.kind

    # set up SeedSequence tree so each chunk/worker has an independent stream
    ss_root = np.random.SeedSequence(seed)

    chunks = []
    remaining = int(n_paths)
    while remaining > 0:
        m = min(chunk_size, remaining)
        chunks.append(m)
        remaining -= m
    child_seeds = ss_root.spawn(len(chunks))

    stats_list = []
    if n_workers <= 1:
        for m, ss in zip(chunks, child_seeds):
            stats_list.append(_mc_chunk_sumstats(
                m, process=process, T=T, K=K, kind=kind,
                antithetic=antithetic, seed=ss,
            ))
    else:
        # process pool, safe in scripts; in notebooks prefer n_workers=1
        with ProcessPoolExecutor(max_workers=n_workers) as ex:
            futs = [
                ex.submit(_mc_chunk_sumstats, m, process=process, T=T, K=K,
                          kind=kind, antithetic=antithetic, seed=ss)
                for m, ss in zip(chunks, child_seeds)
            ]
            for f in as_completed(futs):
                stats_list.append(f.result())

    n, sumX, sumX2, sumY, sumY2, sumXY = _aggregate_stats(stats_list)
    if n == 0:
        return float("nan"), float("nan")

    meanX = sumX / n
    varX  = max(0.0, sumX2 / n - meanX * meanX)

    if control_variate:
        # c_hat = Cov(X,Y)/Var(Y)
        meanY = sumY / n
        varY  = max(0.0, sumY2 / n - meanY * meanY)
        covXY = (sumXY / n) - meanX * meanY
        c_hat = 0.0 if varY == 0.0 else (covXY / varY)

        EY = S0 * math.exp(-q * T)  # known under RN measure
        mean_cv = meanX - c_hat * (meanY - EY)

        var_cv = varX - 2.0 * c_hat * covXY + (c_hat * c_hat) * varY
        return float(mean_cv), float(math.sqrt(max(0.0, var_cv) / n))

    return float(meanX), float(math.sqrt(varX / n))
