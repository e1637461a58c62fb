from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .engines import PricingEngine, VanillaResults
    from .processes import StochasticProcess


CALL = "call"
PUT  = "put"


# ---------------------------------------------------------------------------
# Market quotes
# ---------------------------------------------------------------------------
class SimpleQuote:
    """Mutable market observable (spot, fixing, ...) shared between processes.

    Processes hold a reference to the quote rather than the number, so a
    ``set_value`` is seen by every process built on top of it.
    """

    def __init__(self, value: float):
        self._value = float(value)

    @property
    def value(self) -> float:
        return self._value

    def set_value(self, value: float) -> None:
        self._value = float(value)

    def __repr__(self) -> str:
        return f"SimpleQuote({self._value!r})"


# ---------------------------------------------------------------------------
# Contract terms
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PlainVanillaPayoff:
    """Call or put payoff on a single strike.

    Parameters
    ----------
    kind : str
        ``"call"`` or ``"put"``.
    strike : float
        Strike price.
    """
    kind: str
    strike: float

    def __post_init__(self):
        if self.kind not in (CALL, PUT):
            raise ValueError(f"kind must be 'call' or 'put', got {self.kind!r}")
        if self.strike <= 0:
            raise ValueError(f"strike must be positive, got {self.strike}")

    def __call__(self, spot: float) -> float:
        if self.kind == CALL:
            return max(spot - self.strike, 0.0)
        return max(self.strike - spot, 0.0)


@dataclass(frozen=True)
class EuropeanExercise:
    """Exercise on a single date."""
    date: date

    @property
    def last_date(self) -> date:
        return self.date


@dataclass(frozen=True)
class AmericanExercise:
    """Exercise on any date between ``earliest_date`` and ``latest_date``."""
    earliest_date: date
    latest_date: date

    def __post_init__(self):
        if self.latest_date < self.earliest_date:
            raise ValueError(
                f"latest_date {self.latest_date} precedes earliest_date "
                f"{self.earliest_date}"
            )

    @property
    def last_date(self) -> date:
        return self.latest_date


# ---------------------------------------------------------------------------
# Instrument
# ---------------------------------------------------------------------------
class VanillaOption:
    """Single-asset option priced by whichever engine is attached.

    The instrument owns nothing but its terms: every ``npv()`` resets the
    engine, binds process, payoff and exercise to its arguments, validates
    them and recalculates.
    """

    def __init__(
        self,
        process: StochasticProcess,
        payoff: PlainVanillaPayoff,
        exercise: EuropeanExercise | AmericanExercise,
    ):
        self.process = process
        self.payoff = payoff
        self.exercise = exercise
        self._engine: Optional[PricingEngine] = None

    def set_pricing_engine(self, engine: PricingEngine) -> None:
        self._engine = engine

    def results(self) -> VanillaResults:
        """Recalculate and return the engine's results object."""
        if self._engine is None:
            raise ValueError("no pricing engine set")
        engine = self._engine
        engine.reset()
        engine.arguments.process = self.process
        engine.arguments.payoff = self.payoff
        engine.arguments.exercise = self.exercise
        engine.validate()
        engine.calculate()
        return engine.results

    def npv(self) -> float:
        return self.results().value

    def delta(self) -> float:
        return self.results().delta

    def gamma(self) -> float:
        return self.results().gamma

    def theta(self) -> float:
        return self.results().theta

    def vega(self) -> float:
        return self.results().vega

    def rho(self) -> float:
        return self.results().rho

    def dividend_rho(self) -> float:
        return self.results().dividend_rho
