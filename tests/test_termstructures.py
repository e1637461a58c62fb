"""Tests for day counters and term structures."""

import math
from datetime import date, timedelta

import pytest

from jdpricer import (
    Actual360, Actual365Fixed, BlackConstantVol, BlackVarianceCurve,
    DayCounter, FlatForward, Thirty360, ZeroCurve,
)

REF = date(2023, 1, 2)


class TestDayCounters:
    def test_actual_365(self):
        assert Actual365Fixed().year_fraction(REF, REF + timedelta(days=365)) == 1.0

    def test_actual_360(self):
        assert Actual360().year_fraction(REF, REF + timedelta(days=90)) == 0.25

    def test_thirty_360_end_of_month(self):
        dc = Thirty360()
        assert dc.day_count(date(2023, 1, 31), date(2023, 3, 31)) == 60
        assert dc.year_fraction(date(2023, 1, 15), date(2024, 1, 15)) == 1.0

    def test_equality_by_convention(self):
        assert Actual365Fixed() == Actual365Fixed()
        assert Actual365Fixed() != Actual360()

    def test_base_convention_is_abstract(self):
        with pytest.raises(TypeError):
            DayCounter()


class TestYieldCurves:
    def test_flat_forward_discount(self):
        curve = FlatForward(REF, 0.05, Actual365Fixed())
        d = REF + timedelta(days=730)
        assert curve.discount(d) == pytest.approx(math.exp(-0.10))
        assert curve.discount(2.0) == pytest.approx(math.exp(-0.10))
        assert curve.zero_rate(d) == 0.05

    def test_date_before_reference_rejected(self):
        curve = FlatForward(REF, 0.05, Actual365Fixed())
        with pytest.raises(ValueError):
            curve.discount(REF - timedelta(days=1))

    def test_zero_curve_interpolation(self):
        dc = Actual365Fixed()
        curve = ZeroCurve(REF, [REF + timedelta(days=365), REF + timedelta(days=730)],
                          [0.02, 0.04], dc)
        assert curve.zero_rate(1.5) == pytest.approx(0.03)
        # flat extrapolation both sides
        assert curve.zero_rate(0.5) == pytest.approx(0.02)
        assert curve.zero_rate(5.0) == pytest.approx(0.04)
        assert curve.discount(1.5) == pytest.approx(math.exp(-0.045))

    def test_zero_curve_rejects_unsorted_dates(self):
        with pytest.raises(ValueError):
            ZeroCurve(REF, [REF + timedelta(days=30), REF + timedelta(days=10)],
                      [0.01, 0.02], Actual365Fixed())


class TestVolCurves:
    def test_constant_vol(self):
        vol = BlackConstantVol(REF, 0.2, Actual365Fixed())
        assert vol.black_variance(2.0, 123.0) == pytest.approx(0.08)
        assert vol.black_vol(REF + timedelta(days=100), 80.0) == pytest.approx(0.2)

    def test_negative_vol_rejected(self):
        with pytest.raises(ValueError):
            BlackConstantVol(REF, -0.1, Actual365Fixed())

    def test_variance_curve_interpolates_total_variance(self):
        dc = Actual365Fixed()
        curve = BlackVarianceCurve(
            REF, [REF + timedelta(days=365), REF + timedelta(days=730)],
            [0.20, 0.25], dc,
        )
        # variance 0.04 at 1y, 0.125 at 2y
        assert curve.black_variance(1.5, 100.0) == pytest.approx(0.0825)
        assert curve.black_variance(0.5, 100.0) == pytest.approx(0.02)
        # constant vol beyond the last pillar
        assert curve.black_vol(3.0, 100.0) == pytest.approx(0.25)

    def test_variance_curve_rejects_calendar_arbitrage(self):
        with pytest.raises(ValueError):
            BlackVarianceCurve(
                REF, [REF + timedelta(days=365), REF + timedelta(days=730)],
                [0.40, 0.20], Actual365Fixed(),
            )
