# jdpricer: Merton jump-diffusion pricing as a Poisson mixture of
# Black-Scholes engines
# Public API

# Contract & market primitives
from .core import (
    CALL, PUT, SimpleQuote, PlainVanillaPayoff,
    EuropeanExercise, AmericanExercise, VanillaOption,
)
from .daycount import DayCounter, Actual365Fixed, Actual360, Thirty360
from .termstructures import (
    YieldTermStructure, FlatForward, ZeroCurve,
    BlackVolTermStructure, BlackConstantVol, BlackVarianceCurve,
)

# Processes
from .processes import (
    BlackScholesProcess, Merton76Process, StochasticProcess,
    gbm_paths, merton_jump_paths, simulate_paths,
)

# Errors
from .errors import (
    PricingError, InvalidConfiguration, TypeMismatch,
    InvalidArguments, ConvergenceFailure,
)

# Engines
from .black_scholes import bs_price_vec, bs_greeks_vec
from .engines import (
    VanillaArguments, VanillaResults, PricingEngine,
    AnalyticEuropeanEngine, BinomialVanillaEngine,
)
from .jump_diffusion import (
    poisson_weight, JumpParameters, JumpDiffusionResults,
    JumpDiffusionEngine, merton_series_price,
)
from .monte_carlo import euro_price_mc

__all__ = [
    # Primitives
    "CALL", "PUT", "SimpleQuote", "PlainVanillaPayoff",
    "EuropeanExercise", "AmericanExercise", "VanillaOption",
    "DayCounter", "Actual365Fixed", "Actual360", "Thirty360",
    "YieldTermStructure", "FlatForward", "ZeroCurve",
    "BlackVolTermStructure", "BlackConstantVol", "BlackVarianceCurve",
    # Processes
    "BlackScholesProcess", "Merton76Process", "StochasticProcess",
    "gbm_paths", "merton_jump_paths", "simulate_paths",
    # Errors
    "PricingError", "InvalidConfiguration", "TypeMismatch",
    "InvalidArguments", "ConvergenceFailure",
    # Engines
    "bs_price_vec", "bs_greeks_vec",
    "VanillaArguments", "VanillaResults", "PricingEngine",
    "AnalyticEuropeanEngine", "BinomialVanillaEngine",
    "poisson_weight", "JumpParameters", "JumpDiffusionResults",
    "JumpDiffusionEngine", "merton_series_price",
    # Monte Carlo
    "euro_price_mc",
]

__version__ = "0.1.0"
