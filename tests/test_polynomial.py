import numpy as np
import pytest

from dynamic_fit.polynomial import (
    CHEBYSHEV4,
    CHEBYSHEV5,
    CHEBYSHEV6,
    Polynomial,
    PolynomialBasis,
    chebyshev_basis,
)


def test_horner_evaluation_scalar_and_array():
    p = Polynomial([1.0, -2.0, 3.0])  # x^2 - 2x + 3
    assert p.order == 3
    assert len(p) == 3
    assert p(2.0) == pytest.approx(3.0)
    assert isinstance(p(2.0), float)
    np.testing.assert_allclose(p(np.array([0.0, 1.0, -1.0])), [3.0, 2.0, 6.0])


def test_coefficient_indexing():
    p = Polynomial([4.0, 0.0, -3.0, 0.0])
    assert p[0] == 4.0
    assert p[-2] == -3.0
    with pytest.raises(IndexError):
        p[4]


def test_coefficients_are_read_only():
    p = Polynomial([1.0, 2.0])
    with pytest.raises(ValueError):
        p.coef[0] = 5.0


def test_empty_coefficients_rejected():
    with pytest.raises(ValueError):
        Polynomial([])


def test_scale_and_add():
    p = Polynomial([1.0, -2.0, 3.0])
    q = Polynomial([0.0, 1.0, 1.0])
    assert p * 2 == Polynomial([2.0, -4.0, 6.0])
    assert 2 * p == p * 2
    assert p + q == Polynomial([1.0, -1.0, 4.0])
    with pytest.raises(ValueError):
        p + Polynomial([1.0, 2.0])


def test_constant_and_zero():
    c = Polynomial.constant(5.0, 4)
    assert c.order == 4
    assert c(123.0) == pytest.approx(5.0)
    assert Polynomial.zero(3)(7.0) == 0.0


def test_chebyshev_members():
    assert CHEBYSHEV4[0] == Polynomial([0.0, 0.0, 0.0, 1.0])
    assert CHEBYSHEV4[1] == Polynomial([0.0, 0.0, 1.0, 0.0])
    assert CHEBYSHEV4[2] == Polynomial([0.0, 2.0, 0.0, -1.0])
    assert CHEBYSHEV4[3] == Polynomial([4.0, 0.0, -3.0, 0.0])
    assert CHEBYSHEV5[4] == Polynomial([8.0, 4.0, -8.0, 0.0, 1.0])
    assert CHEBYSHEV6[4] == Polynomial([0.0, 8.0, 4.0, -8.0, 0.0, 1.0])
    assert CHEBYSHEV6[5] == Polynomial([16.0, 0.0, -20.0, 0.0, 5.0, 1.0])


def test_untabled_orders_are_first_kind():
    # T6 = 32x^6 - 48x^4 + 18x^2 - 1
    assert chebyshev_basis(7)[6] == Polynomial([32.0, 0.0, -48.0, 0.0, 18.0, 0.0, -1.0])
    assert chebyshev_basis(7)[3] == Polynomial([0.0, 0.0, 0.0, 4.0, 0.0, -3.0, 0.0])


def test_chebyshev_basis_is_shared():
    assert chebyshev_basis(4) is CHEBYSHEV4
    assert chebyshev_basis(1)[0] == Polynomial([1.0])
    with pytest.raises(ValueError):
        chebyshev_basis(0)


def test_basis_linear_combination():
    p = CHEBYSHEV4([1.0, 2.0, 0.0, 0.0])
    assert p == Polynomial([0.0, 0.0, 2.0, 1.0])
    q = CHEBYSHEV4([0.0, 0.0, 0.5, 1.0])  # 0.5 T2 + T3
    assert q == Polynomial([4.0, 1.0, -3.0, -0.5])
    with pytest.raises(ValueError):
        CHEBYSHEV4([1.0, 2.0])


def test_basis_design_matrix():
    phi = CHEBYSHEV4.design([0.5, -1.0])
    np.testing.assert_allclose(phi[0], [1.0, 0.5, -0.5, -1.0])
    np.testing.assert_allclose(phi[1], [1.0, -1.0, 1.0, -1.0])


def test_basis_member_order_validated():
    with pytest.raises(ValueError):
        PolynomialBasis([Polynomial([1.0]), Polynomial([1.0, 0.0])])
