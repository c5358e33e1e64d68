import pytest

from spdf_compiler.core.divisors import DivisorSet
from spdf_compiler.core.errors import ArithmeticInconsistencyError, ExpressionSyntaxError
from spdf_compiler.core.expression import Expression, add, divide, divides, gcd, lcm, multiply, prime_divisors


def E(text):
    return Expression.parse(text)


def test_divisor_set_powers():
    d = DivisorSet({"2": 3, "x": 1})
    assert d.power("2") == 3
    assert d.power("y") == 0

    d.increment_power("x", -1)
    # zero powers are dropped
    assert "x" not in d
    assert len(d) == 1

    with pytest.raises(ArithmeticInconsistencyError):
        d.set_power("2", -1)


def test_divisor_set_failed_negation_leaves_set_untouched():
    d = DivisorSet({"2": 1, "x": 2})
    with pytest.raises(ArithmeticInconsistencyError):
        d.union_with_negated(DivisorSet({"x": 1, "3": 1}))
    assert d == DivisorSet({"2": 1, "x": 2})


def test_divisor_set_intersection():
    d = DivisorSet({"2": 3, "x": 2, "y": 1})
    d.intersect_with(DivisorSet({"2": 1, "x": 5, "z": 1}))
    assert d == DivisorSet({"2": 1, "x": 2})


def test_prime_divisors():
    assert prime_divisors(440) == DivisorSet({"2": 3, "5": 1, "11": 1})
    assert len(prime_divisors(1)) == 0
    with pytest.raises(ValueError):
        prime_divisors(0)


def test_parse_and_format():
    e = E("4 * x * y * x")
    assert e.coefficient() == 4
    assert e.parameter_set() == {"x", "y"}
    assert str(e) == "4*x*x*y"

    assert str(E("x")) == "x"
    assert str(E("1")) == "1"
    assert str(E("6*1")) == "6"
    # trailing separators produce empty tokens, which are skipped
    assert E("5*p*") == E("5*p")
    assert E("") == Expression.one()


def test_parse_rejects_garbage():
    with pytest.raises(ExpressionSyntaxError):
        E("2+x")
    with pytest.raises(ExpressionSyntaxError):
        E("0*x")
    with pytest.raises(ExpressionSyntaxError):
        E("-3")


def test_expression_equality_is_structural():
    assert E("x*2*y") == E("y*x*2")
    assert hash(E("x*2*y")) == hash(E("2*y*x"))
    assert E("2*x") != E("4*x")
    assert E("6") == Expression.of(6)


def test_divide():
    assert divide(E("100*x*x*y"), E("50*x*x")) == E("2*y")
    assert E("100*x*x*y") / E("50*x*x") == E("2*y")

    with pytest.raises(ArithmeticInconsistencyError):
        divide(E("2*x"), E("3"))
    with pytest.raises(ArithmeticInconsistencyError):
        divide(E("2*x"), E("x*x"))


def test_gcd_and_multiply():
    assert gcd(E("100*x*x*y"), E("50*x*x")) == E("50*x*x")
    assert multiply(E("100*x*x*y"), E("50*x*x")) == E("5000*y*x*x*x*x")
    assert gcd(E("50*x*x*7*x"), E("100*x*x*y")) == E("50*x*x")
    assert gcd(E("x"), E("y")) == Expression.one()


@pytest.mark.parametrize(
    "a, b",
    [("100*x*x*y", "50*x*x"), ("6*p*q", "4*q*r"), ("1", "7*z"), ("x", "x")],
)
def test_gcd_commutative_idempotent(a, b):
    assert gcd(E(a), E(b)) == gcd(E(b), E(a))
    assert gcd(E(a), E(a)) == E(a)
    assert gcd(E(b), E(b)) == E(b)


@pytest.mark.parametrize(
    "a, b",
    [("100*x*x*y", "50*x*x"), ("12*p*q*q", "3*q"), ("7*z", "1"), ("x", "x"), ("6*p*q", "2")],
)
def test_divide_multiply_inverse(a, b):
    assert divides(E(b), E(a))
    assert multiply(divide(E(a), E(b)), E(b)) == E(a)
    assert divide(E(a), E(a)) == Expression.one()


def test_lcm_and_divides():
    assert lcm(E("4*x"), E("6*y")) == E("12*x*y")
    assert divides(E("3"), E("6*p"))
    assert not divides(E("3"), E("2"))
    assert divides(E("p"), E("2*p*q"))
    assert not divides(E("2*p*q"), E("p"))


def test_integer_helpers():
    assert E("2*3*5").as_integer() == 30
    assert add(E("6"), E("4")) == E("10")

    with pytest.raises(ValueError):
        E("2*x").as_integer()
    with pytest.raises(ValueError):
        add(E("x"), E("1"))
