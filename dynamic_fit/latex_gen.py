from __future__ import annotations

import sympy as sp

from .dynamic import FittedState
from .polynomial import Polynomial


class PolynomialLatex:
    """Converts a Polynomial or a FittedState -> display-math LaTeX string.

    Parameters
    ----------
    approx : bool
        When True (default) coefficients are rendered as rounded decimals
        with *decimals* digits after the point.
        When False, exact rational fractions are used.
    decimals : int
        Number of digits after the decimal point in approximate mode.
    """

    def __init__(self, approx: bool = True, decimals: int = 3) -> None:
        self.approx = approx
        self.decimals = max(0, min(10, int(decimals)))

    def reconfigure(self, approx: bool, decimals: int) -> None:
        self.approx = approx
        self.decimals = max(0, min(10, int(decimals)))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _n(self, v: float) -> sp.Expr:
        """Approx mode -> sp.Float at self.decimals places; exact mode -> sp.Rational."""
        if self.approx:
            return sp.Float(f"{v:.{self.decimals}f}")
        return sp.Rational(v).limit_denominator(1000)

    def _round_floats(self, expr: sp.Basic) -> sp.Basic:
        """Round every sp.Float leaf; expanding the time mapping adds digits."""
        if isinstance(expr, sp.Float):
            return sp.Float(f"{float(expr):.{self.decimals}f}")
        if expr.args:
            return expr.func(*[self._round_floats(a) for a in expr.args])
        return expr

    def _wrap(self, lhs: str, expr: sp.Basic) -> str:
        if self.approx:
            return f"$${lhs} = {sp.latex(self._round_floats(expr))}$$"
        simplified = sp.nsimplify(expr, rational=False, tolerance=1e-6)
        return f"$${lhs} = {sp.latex(simplified)}$$"

    def _horner(self, p: Polynomial, arg: sp.Expr) -> sp.Expr:
        expr: sp.Expr = sp.Integer(0)
        for c in p.coef:
            expr = expr * arg + self._n(float(c))
        return expr

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def polynomial(self, p: Polynomial, symbol: str = "x") -> str:
        """Polynomial in its own (normalized) variable."""
        x = sp.Symbol(symbol)
        return self._wrap(f"P({symbol})", sp.expand(self._horner(p, x)))

    def state(self, state: FittedState, symbol: str = "t") -> str:
        """Fitted curve expanded in real time, x = 2 (t - To) / span - 1."""
        lhs = f"f({symbol})"
        if state.polynomial is None:
            return f"$${lhs} = \\text{{undefined}}$$"
        t = sp.Symbol(symbol)
        if state.span > 0:
            if self.approx:
                x = 2 * (t - sp.Float(state.t_start)) / sp.Float(state.span) - 1
            else:
                x = (
                    2 * (t - sp.Rational(state.t_start).limit_denominator(10000))
                    / sp.Rational(state.span).limit_denominator(10000) - 1
                )
        else:
            x = sp.Integer(0)
        return self._wrap(lhs, sp.expand(self._horner(state.polynomial, x)))
