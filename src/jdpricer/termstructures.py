"""Interest-rate and Black-volatility term structures.

Every curve is anchored at a ``reference_date`` and converts dates to times
with its own day counter.  Query methods accept either a ``datetime.date``
or a year fraction already measured from the reference date.

Curves are immutable once built; engines that need a different curve build a
new one.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from datetime import date
from typing import Sequence, Union

import numpy as np

from .daycount import DayCounter

__all__ = [
    "YieldTermStructure",
    "FlatForward",
    "ZeroCurve",
    "BlackVolTermStructure",
    "BlackConstantVol",
    "BlackVarianceCurve",
]

DateOrTime = Union[date, float]


class _TermStructure(ABC):
    def __init__(self, reference_date: date, day_counter: DayCounter):
        self._reference_date = reference_date
        self._day_counter = day_counter

    @property
    def reference_date(self) -> date:
        return self._reference_date

    @property
    def day_counter(self) -> DayCounter:
        return self._day_counter

    def time_from_reference(self, d: DateOrTime) -> float:
        if isinstance(d, date):
            return self._day_counter.year_fraction(self._reference_date, d)
        return float(d)

    def _check_time(self, t: float) -> None:
        if t < 0.0:
            raise ValueError(
                f"negative time ({t}) given: date precedes reference date "
                f"{self._reference_date}"
            )


# ---------------------------------------------------------------------------
# Yield curves
# ---------------------------------------------------------------------------

class YieldTermStructure(_TermStructure):
    """Discount curve quoted as continuously-compounded zero rates."""

    @abstractmethod
    def _zero_rate(self, t: float) -> float:
        ...

    def zero_rate(self, d: DateOrTime) -> float:
        t = self.time_from_reference(d)
        self._check_time(t)
        return self._zero_rate(t)

    def discount(self, d: DateOrTime) -> float:
        t = self.time_from_reference(d)
        self._check_time(t)
        return math.exp(-self._zero_rate(t) * t)


class FlatForward(YieldTermStructure):
    """Constant continuously-compounded rate."""

    def __init__(self, reference_date: date, rate: float, day_counter: DayCounter):
        super().__init__(reference_date, day_counter)
        self._rate = float(rate)

    @property
    def rate(self) -> float:
        return self._rate

    def _zero_rate(self, t: float) -> float:
        return self._rate

    def __repr__(self) -> str:
        return (f"FlatForward({self._reference_date}, {self._rate!r}, "
                f"{self._day_counter.name})")


class ZeroCurve(YieldTermStructure):
    """Zero rates on pillar dates, linearly interpolated in time.

    Flat extrapolation on both sides.
    """

    def __init__(
        self,
        reference_date: date,
        dates: Sequence[date],
        rates: Sequence[float],
        day_counter: DayCounter,
    ):
        super().__init__(reference_date, day_counter)
        if len(dates) == 0 or len(dates) != len(rates):
            raise ValueError("dates and rates must be non-empty and of equal length")
        times = np.array([self.time_from_reference(d) for d in dates], dtype=float)
        if np.any(times < 0.0) or np.any(np.diff(times) <= 0.0):
            raise ValueError("pillar dates must be increasing and not before the reference date")
        self._times = times
        self._rates = np.asarray(rates, dtype=float)

    def _zero_rate(self, t: float) -> float:
        return float(np.interp(t, self._times, self._rates))


# ---------------------------------------------------------------------------
# Black volatility curves
# ---------------------------------------------------------------------------

class BlackVolTermStructure(_TermStructure):
    """Black (implied) volatility as a function of expiry and strike."""

    @abstractmethod
    def _black_variance(self, t: float, strike: float) -> float:
        ...

    def black_variance(self, d: DateOrTime, strike: float) -> float:
        t = self.time_from_reference(d)
        self._check_time(t)
        return self._black_variance(t, strike)

    def black_vol(self, d: DateOrTime, strike: float) -> float:
        t = self.time_from_reference(d)
        self._check_time(t)
        if t == 0.0:
            # limit of variance / t from the first pillar
            t = 1e-5
        return math.sqrt(self._black_variance(t, strike) / t)


class BlackConstantVol(BlackVolTermStructure):
    """Flat volatility, independent of strike and expiry."""

    def __init__(self, reference_date: date, volatility: float, day_counter: DayCounter):
        super().__init__(reference_date, day_counter)
        if volatility < 0.0:
            raise ValueError(f"volatility must be non-negative, got {volatility}")
        self._volatility = float(volatility)

    @property
    def volatility(self) -> float:
        return self._volatility

    def _black_variance(self, t: float, strike: float) -> float:
        return self._volatility * self._volatility * t

    def __repr__(self) -> str:
        return (f"BlackConstantVol({self._reference_date}, {self._volatility!r}, "
                f"{self._day_counter.name})")


class BlackVarianceCurve(BlackVolTermStructure):
    """At-the-money vol term structure, strike independent.

    Total variance ``sigma^2 * t`` is interpolated linearly between pillars
    (zero at the reference date) and extrapolated at constant volatility
    beyond the last pillar.
    """

    def __init__(
        self,
        reference_date: date,
        dates: Sequence[date],
        volatilities: Sequence[float],
        day_counter: DayCounter,
    ):
        super().__init__(reference_date, day_counter)
        if len(dates) == 0 or len(dates) != len(volatilities):
            raise ValueError("dates and volatilities must be non-empty and of equal length")
        times = np.array([self.time_from_reference(d) for d in dates], dtype=float)
        if times[0] <= 0.0 or np.any(np.diff(times) <= 0.0):
            raise ValueError("pillar dates must be increasing and after the reference date")
        vols = np.asarray(volatilities, dtype=float)
        variances = vols * vols * times
        if np.any(np.diff(variances) < 0.0):
            raise ValueError("total variance must be non-decreasing in time")
        self._times = np.concatenate([[0.0], times])
        self._variances = np.concatenate([[0.0], variances])

    def _black_variance(self, t: float, strike: float) -> float:
        t_last = self._times[-1]
        if t <= t_last:
            return float(np.interp(t, self._times, self._variances))
        return float(self._variances[-1] * t / t_last)
