"""One-dimensional root finding.

The solvers in this module are shared by every price-to-rate inversion in the
package (yield from price and z-spread from price). A solver
first brackets a root by expanding an interval around a guess, then refines
it with :mod:`scipy.optimize` until the requested accuracy is reached. The
number of function evaluations is capped; failures raise instead of
returning a stale estimate.

Solver instances hold configuration only (evaluation cap and domain bounds),
so a single instance can be shared between threads.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any

from scipy import optimize

from jloan.exceptions import MaxIterationsExceededError, RootNotBracketedError
from jloan.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ACCURACY = 1.0e-8
DEFAULT_MAX_EVALUATIONS = 100
GROWTH_FACTOR = 1.6

_EPSILON = sys.float_info.epsilon

ObjectiveFunction = Callable[[float], float]


class Solver1D:
    """Base class for bracketing one-dimensional solvers.

    Attributes:
        max_evaluations: Hard cap on objective evaluations per ``solve`` call
        lower_bound: Optional lower limit of the search domain
        upper_bound: Optional upper limit of the search domain
    """

    _scipy_method: Callable[..., tuple[float, Any]]

    def __init__(
        self,
        max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
        lower_bound: float | None = None,
        upper_bound: float | None = None,
    ) -> None:
        if max_evaluations < 2:
            raise ValueError(f"at least two evaluations are needed, got {max_evaluations}")
        if lower_bound is not None and upper_bound is not None and lower_bound >= upper_bound:
            raise ValueError(f"empty search domain [{lower_bound}, {upper_bound}]")
        self.max_evaluations = max_evaluations
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound

    def _enforce_bounds(self, x: float) -> float:
        if self.lower_bound is not None and x < self.lower_bound:
            return self.lower_bound
        if self.upper_bound is not None and x > self.upper_bound:
            return self.upper_bound
        return x

    def solve(
        self,
        f: ObjectiveFunction,
        accuracy: float,
        guess: float,
        step: float,
    ) -> float:
        """Find a root of ``f`` starting from ``guess``.

        The bracket grows geometrically from ``[guess - step, guess]`` or
        ``[guess, guess + step]`` (depending on the sign of ``f(guess)``)
        until ``f`` changes sign.

        Args:
            f: Objective function
            accuracy: Required accuracy on the root
            guess: Starting point
            step: Initial bracket width

        Returns:
            The root

        Raises:
            RootNotBracketedError: If no sign change is found within the
                evaluation budget
            MaxIterationsExceededError: If refinement does not converge within
                the evaluation budget
        """
        accuracy = max(accuracy, _EPSILON)

        root = self._enforce_bounds(guess)
        fx_max = f(root)
        if fx_max == 0.0:
            return root

        if fx_max > 0.0:
            x_min = self._enforce_bounds(root - step)
            fx_min = f(x_min)
            x_max = root
        else:
            x_min = root
            fx_min = fx_max
            x_max = self._enforce_bounds(root + step)
            fx_max = f(x_max)

        evaluations = 2
        while evaluations <= self.max_evaluations:
            if fx_min * fx_max <= 0.0:
                if fx_min == 0.0:
                    return x_min
                if fx_max == 0.0:
                    return x_max
                return self._refine(f, accuracy, x_min, x_max, evaluations)
            if abs(fx_min) < abs(fx_max):
                x_min = self._enforce_bounds(x_min + GROWTH_FACTOR * (x_min - x_max))
                fx_min = f(x_min)
            else:
                x_max = self._enforce_bounds(x_max + GROWTH_FACTOR * (x_max - x_min))
                fx_max = f(x_max)
            evaluations += 1

        logger.debug(
            "Root bracketing failed",
            extra={"guess": guess, "x_min": x_min, "x_max": x_max, "evaluations": evaluations},
        )
        raise RootNotBracketedError(
            f"unable to bracket root in {self.max_evaluations} function evaluations",
            context={"guess": guess, "last_bracket": (x_min, x_max), "f": (fx_min, fx_max)},
        )

    def solve_in_bracket(
        self,
        f: ObjectiveFunction,
        accuracy: float,
        guess: float,
        x_min: float,
        x_max: float,
    ) -> float:
        """Find a root of ``f`` inside an explicit bracket ``[x_min, x_max]``.

        Raises:
            RootNotBracketedError: If ``f`` has the same sign at both ends
            MaxIterationsExceededError: If refinement does not converge
        """
        accuracy = max(accuracy, _EPSILON)
        if x_min >= x_max:
            raise ValueError(f"invalid bracket: x_min ({x_min}) >= x_max ({x_max})")
        if self.lower_bound is not None and x_min < self.lower_bound:
            raise ValueError(f"x_min ({x_min}) below the lower bound ({self.lower_bound})")
        if self.upper_bound is not None and x_max > self.upper_bound:
            raise ValueError(f"x_max ({x_max}) above the upper bound ({self.upper_bound})")

        fx_min = f(x_min)
        if fx_min == 0.0:
            return x_min
        fx_max = f(x_max)
        if fx_max == 0.0:
            return x_max

        if fx_min * fx_max >= 0.0:
            raise RootNotBracketedError(
                "root not bracketed",
                context={"bracket": (x_min, x_max), "f": (fx_min, fx_max)},
            )
        if not x_min <= guess <= x_max:
            raise ValueError(f"guess ({guess}) outside the bracket [{x_min}, {x_max}]")

        return self._refine(f, accuracy, x_min, x_max, 2)

    def _refine(
        self,
        f: ObjectiveFunction,
        accuracy: float,
        x_min: float,
        x_max: float,
        evaluations: int,
    ) -> float:
        """Narrow a valid bracket down to the root with the remaining budget."""
        budget = max(self.max_evaluations - evaluations, 1)
        root, result = self._scipy_method(
            f, x_min, x_max, xtol=accuracy, maxiter=budget, full_output=True, disp=False
        )
        if not result.converged:
            raise self._exhausted(root)
        return root

    def _exhausted(self, root: float) -> MaxIterationsExceededError:
        logger.debug("Solver exhausted its budget", extra={"root": root})
        return MaxIterationsExceededError(
            f"maximum number of function evaluations ({self.max_evaluations}) exceeded",
            context={"last_root": root},
        )


class Brent(Solver1D):
    """Brent's method: inverse quadratic interpolation with bisection fallback.

    Refinement is delegated to :func:`scipy.optimize.brentq`.

    References:
        R. P. Brent, Algorithms for Minimization without Derivatives, 1973
    """

    _scipy_method = staticmethod(optimize.brentq)


class Bisection(Solver1D):
    """Plain interval halving; slower than Brent but needs no smoothness."""

    _scipy_method = staticmethod(optimize.bisect)
