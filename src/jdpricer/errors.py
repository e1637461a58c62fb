"""Exception hierarchy shared by all pricing engines."""

from __future__ import annotations

__all__ = [
    "PricingError",
    "InvalidConfiguration",
    "TypeMismatch",
    "InvalidArguments",
    "ConvergenceFailure",
]


class PricingError(Exception):
    """Base class for every error raised by an engine."""


class InvalidConfiguration(PricingError, ValueError):
    """Engine constructed with unusable settings."""


class TypeMismatch(PricingError, TypeError):
    """Stochastic process of the wrong kind attached to an engine."""


class InvalidArguments(PricingError, ValueError):
    """Arguments rejected by ``validate()``."""


class ConvergenceFailure(PricingError, RuntimeError):
    """Series summation hit its iteration cap before reaching the target accuracy.

    Attributes
    ----------
    iterations : int
        Number of terms summed.
    relative_accuracy : float
        Target that was not reached.
    last_contribution : float
        Relative size of the last addendum.
    value : float
        Running sum when the loop stopped.
    """

    def __init__(
        self,
        iterations: int,
        relative_accuracy: float,
        last_contribution: float,
        value: float,
    ):
        super().__init__(iterations, relative_accuracy, last_contribution, value)
        self.iterations = iterations
        self.relative_accuracy = relative_accuracy
        self.last_contribution = last_contribution
        self.value = value

    def __str__(self) -> str:
        return (
            f"{self.iterations} iterations were not enough to reach the "
            f"required {self.relative_accuracy:.2e} accuracy: the last addendum "
            f"was {self.last_contribution:.2e} while the running sum was "
            f"{self.value:.6e}"
        )
