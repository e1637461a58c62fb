# daycount.py
# Day-count conventions turning a pair of dates into a year fraction.

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

__all__ = ["DayCounter", "Actual365Fixed", "Actual360", "Thirty360"]


@dataclass(frozen=True)
class DayCounter(ABC):
    """Base convention: actual day count, subclasses fix the year basis."""

    name: str = ""

    def day_count(self, d1: date, d2: date) -> int:
        return (d2 - d1).days

    @abstractmethod
    def year_fraction(self, d1: date, d2: date) -> float:
        ...


@dataclass(frozen=True)
class Actual365Fixed(DayCounter):
    name: str = "Actual/365 (Fixed)"

    def year_fraction(self, d1: date, d2: date) -> float:
        return self.day_count(d1, d2) / 365.0


@dataclass(frozen=True)
class Actual360(DayCounter):
    name: str = "Actual/360"

    def year_fraction(self, d1: date, d2: date) -> float:
        return self.day_count(d1, d2) / 360.0


@dataclass(frozen=True)
class Thirty360(DayCounter):
    """30/360 US bond basis."""

    name: str = "30/360 (Bond Basis)"

    def day_count(self, d1: date, d2: date) -> int:
        dd1, dd2 = d1.day, d2.day
        if dd1 == 31:
            dd1 = 30
        if dd2 == 31 and dd1 == 30:
            dd2 = 30
        return (
            360 * (d2.year - d1.year)
            + 30 * (d2.month - d1.month)
            + (dd2 - dd1)
        )

    def year_fraction(self, d1: date, d2: date) -> float:
        return self.day_count(d1, d2) / 360.0
