from dynamic_fit.dynamic import UNDEFINED_STATE, Dynamic
from dynamic_fit.latex_gen import PolynomialLatex
from dynamic_fit.polynomial import CHEBYSHEV2, Polynomial


def test_polynomial_exact():
    gen = PolynomialLatex(approx=False)
    assert gen.polynomial(Polynomial([1.0, -2.0, 3.0])) == "$$P(x) = x^{2} - 2 x + 3$$"


def test_polynomial_approx():
    out = PolynomialLatex(approx=True, decimals=2).polynomial(Polynomial([0.5, 0.25]), symbol="u")
    assert out.startswith("$$P(u) = ")
    assert "u" in out


def test_undefined_state():
    assert PolynomialLatex().state(UNDEFINED_STATE) == "$$f(t) = \\text{undefined}$$"


def test_state_in_real_time():
    f = Dynamic(5, CHEBYSHEV2)
    for t in range(5):
        f.update(float(t), 2.0 * t + 1.0)
    f.process()
    gen = PolynomialLatex(approx=False)
    assert gen.state(f.snapshot()) == "$$f(t) = 2 t + 1$$"
    gen.reconfigure(True, 1)
    assert gen.decimals == 1
    assert gen.state(f.snapshot()).startswith("$$f(t) = ")


def test_constant_state():
    f = Dynamic(5, CHEBYSHEV2)
    f.update(3.0, 4.0)
    assert PolynomialLatex(approx=False).state(f.snapshot()) == "$$f(t) = 4$$"
