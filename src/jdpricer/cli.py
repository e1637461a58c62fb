import argparse
import logging
import sys
from datetime import date, timedelta

from .core import (
    CALL, PUT, AmericanExercise, EuropeanExercise, PlainVanillaPayoff,
    SimpleQuote, VanillaOption,
)
from .daycount import Actual365Fixed
from .engines import AnalyticEuropeanEngine, BinomialVanillaEngine
from .errors import PricingError
from .jump_diffusion import JumpDiffusionEngine
from .processes import BlackScholesProcess, Merton76Process
from .termstructures import BlackConstantVol, FlatForward

_GREEKS = ("delta", "gamma", "theta", "vega", "rho", "dividend_rho")


def _kind(s: str):
    s = s.lower()
    if s in {"call", "c"}:
        return CALL
    if s in {"put", "p"}:
        return PUT
    raise argparse.ArgumentTypeError("kind must be 'call' or 'put'")


def add_common(parser: argparse.ArgumentParser):
    parser.add_argument("--S0", type=float, required=True)
    parser.add_argument("--K", type=float, required=True)
    parser.add_argument("--T", type=float, required=True, help="years (Actual/365)")
    parser.add_argument("--r", type=float, required=True, help="cont. risk-free")
    parser.add_argument("--sigma", type=float, required=True)
    parser.add_argument("--q", type=float, default=0.0, help="cont. dividend yield")
    parser.add_argument("--kind", type=_kind, default=CALL, help="call|put")
    parser.add_argument("--greeks", action="store_true", help="also print Greeks")


def _market(args):
    """Flat curves anchored today; expiry rounded to whole days."""
    today = date.today()
    dc = Actual365Fixed()
    expiry = today + timedelta(days=max(1, round(args.T * 365)))
    spot = SimpleQuote(args.S0)
    dividend_ts = FlatForward(today, args.q, dc)
    risk_free_ts = FlatForward(today, args.r, dc)
    vol_ts = BlackConstantVol(today, args.sigma, dc)
    return today, expiry, spot, dividend_ts, risk_free_ts, vol_ts


def _report(option: VanillaOption, greeks: bool):
    res = option.results()
    print(f"{res.value:.10f}")
    if greeks:
        for name in _GREEKS:
            print(f"{name:>13s} {getattr(res, name): .10f}")


def cmd_bs(args):
    today, expiry, spot, div_ts, rf_ts, vol_ts = _market(args)
    process = BlackScholesProcess(spot, div_ts, rf_ts, vol_ts)
    option = VanillaOption(process, PlainVanillaPayoff(args.kind, args.K),
                           EuropeanExercise(expiry))
    option.set_pricing_engine(AnalyticEuropeanEngine())
    _report(option, args.greeks)


def cmd_merton(args):
    today, expiry, spot, div_ts, rf_ts, vol_ts = _market(args)
    process = Merton76Process(spot, div_ts, rf_ts, vol_ts,
                              jump_intensity=args.lam,
                              log_jump_mean=args.mu_j,
                              log_jump_volatility=args.sigma_j)
    if args.american:
        exercise = AmericanExercise(today, expiry)
    else:
        exercise = EuropeanExercise(expiry)
    if args.engine == "binomial" or args.american:
        base = BinomialVanillaEngine(steps=args.steps)
    else:
        base = AnalyticEuropeanEngine()
    engine = JumpDiffusionEngine(base, relative_accuracy=args.accuracy,
                                 max_iterations=args.max_iterations)
    option = VanillaOption(process, PlainVanillaPayoff(args.kind, args.K), exercise)
    option.set_pricing_engine(engine)
    _report(option, args.greeks)


def main(argv=None):
    p = argparse.ArgumentParser(prog="jdpricer",
                                description="Jump-diffusion options pricing CLI")
    p.add_argument("--log-level", default="WARNING",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = p.add_subparsers(dest="cmd", required=True)

    # BS
    p_bs = sub.add_parser("bs", help="Black-Scholes price")
    add_common(p_bs)
    p_bs.set_defaults(func=cmd_bs)

    # Merton
    p_jd = sub.add_parser("merton", help="Merton jump-diffusion price (Poisson mixture)")
    add_common(p_jd)
    p_jd.add_argument("--lam", type=float, required=True, help="jump intensity per year")
    p_jd.add_argument("--mu-j", dest="mu_j", type=float, required=True,
                      help="mean of log jump size")
    p_jd.add_argument("--sigma-j", dest="sigma_j", type=float, required=True,
                      help="std of log jump size")
    p_jd.add_argument("--engine", choices=["analytic", "binomial"], default="analytic",
                      help="diffusion-only engine pricing each term")
    p_jd.add_argument("--steps", type=int, default=500, help="binomial steps")
    p_jd.add_argument("--american", action="store_true",
                      help="American exercise (implies --engine binomial)")
    p_jd.add_argument("--accuracy", type=float, default=1e-4)
    p_jd.add_argument("--max-iterations", dest="max_iterations", type=int, default=100)
    p_jd.set_defaults(func=cmd_merton)

    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        args.func(args)
    except (PricingError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
