# DecimalMath.py
"""""
Decimal arithmetic for the calculator.

Values are plain decimal.Decimal objects. The scale of a result (digits after
the point) follows fixed rules so that rendered output is predictable:

- add / subtract: scale = max(left, right), never rounded
- multiply: scale = left + right, never rounded
- divide: rounded to the working precision, exact quotients keep their
  natural scale (1/2 -> 0.5)
- power: integer exponents are exact, other exponents use the working
  precision and drop a fraction that only holds zeros (4^0.5 -> 2)

Two contexts are involved. EXACT is wide enough that add/sub/mul never round.
The working context (34 significant digits unless configured otherwise) is
used for everything that can produce an infinite expansion.
"""""

import decimal
import functools
from decimal import Decimal, Context, ROUND_HALF_EVEN, ROUND_DOWN
from fractions import Fraction

from . import error as E


SIGNAL_TRAPS = [decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow]

# Never rounds: the documented way to get unrounded decimal arithmetic
EXACT = Context(prec=decimal.MAX_PREC, Emax=decimal.MAX_EMAX, Emin=decimal.MIN_EMIN,
                traps=SIGNAL_TRAPS)

DEFAULT_PRECISION = 34  # decimal128
DEFAULT_MAX_EXPONENT = 100000
MAX_EXACT_ROOT_DEGREE = 64

ZERO = Decimal(0)
ONE = Decimal(1)


def working_context(precision=DEFAULT_PRECISION):
    """Return the rounding context used for division, roots and real powers."""
    return Context(prec=precision, rounding=ROUND_HALF_EVEN, traps=SIGNAL_TRAPS)


WORKING = working_context()


def translate_signals(operation):
    """Turn trapped decimal signals raised inside `operation` into CalculationErrors."""
    @functools.wraps(operation)
    def wrapper(*args, **kwargs):
        try:
            return operation(*args, **kwargs)
        except decimal.DivisionByZero:
            raise E.CalculationError("Division by zero", code="3003")
        except decimal.Overflow:
            raise E.CalculationError("Number too large (Arithmetic overflow).", code="3026")
        except decimal.InvalidOperation:
            raise E.CalculationError(f"Invalid operation in {operation.__name__}", code="3033")
    return wrapper


# -----------------------------
# Helpers
# -----------------------------

def canonical(value):
    """Return value with a negative zero turned into a positive one."""
    if value.is_zero() and value.is_signed():
        return value.copy_abs()
    return value


def truth(flag):
    """Comparisons have no boolean type: map to Decimal 1 / 0."""
    return ONE if flag else ZERO


def is_integral(value):
    return value == value.to_integral_value(context=EXACT)


def to_integer(value, what="operation"):
    """Return value as int, or raise if it has a non-zero fraction."""
    if not is_integral(value):
        raise E.CalculationError(f"{what} requires an integer, got {render(value)}", code="3034")
    return int(value)


def truncate(value):
    """Round toward zero to an integral value."""
    return value.to_integral_value(rounding=ROUND_DOWN, context=EXACT)


def parse_literal(text):
    """Convert the text of a numeric literal to Decimal without rounding.

    The literal keeps the digit count typed after the point ("1.00" has
    scale 2). Hex (0x) and binary (0b) literals are integers.
    """
    lowered = text.lower()
    if lowered.startswith("0x"):
        return Decimal(int(text[2:], 16))
    if lowered.startswith("0b"):
        return Decimal(int(text[2:], 2))
    return Decimal(text)


def render(value):
    """Canonical text of a value.

    Plain notation while the exponent is <= 0 and the adjusted exponent is
    >= -6, otherwise scientific with an explicit sign: 1E+3, 1.2E+3, 1E-7.
    """
    return str(canonical(value))


# -----------------------------
# Arithmetic
# -----------------------------

@translate_signals
def add(left, right):
    return canonical(EXACT.add(left, right))


@translate_signals
def subtract(left, right):
    return canonical(EXACT.subtract(left, right))


@translate_signals
def multiply(left, right):
    return canonical(EXACT.multiply(left, right))


@translate_signals
def divide(left, right, context=WORKING):
    if right.is_zero():
        raise E.CalculationError("Division by zero", code="3003")
    return canonical(context.divide(left, right))


@translate_signals
def remainder(left, right):
    """Truncating remainder: the result has the sign of the dividend."""
    if right.is_zero():
        raise E.CalculationError("Division by zero", code="3003")
    return canonical(EXACT.remainder(left, right))


def _exact_power(base, n):
    # Square-and-multiply, every step exact
    result = ONE
    while n:
        if n & 1:
            result = EXACT.multiply(result, base)
        n >>= 1
        if n:
            base = EXACT.multiply(base, base)
    return result


def _drop_redundant_fraction(value):
    if value.as_tuple().exponent >= 0:
        return value
    if is_integral(value):
        return EXACT.quantize(value, ONE)
    return value.normalize(EXACT)


def _integer_root(n, k):
    """Floor of the k-th root of a non-negative int (Newton's method)."""
    if n < 2:
        return n
    x = 1 << ((n.bit_length() + k - 1) // k)
    while True:
        y = ((k - 1) * x + n // x ** (k - 1)) // k
        if y >= x:
            return x
        x = y


def _exact_root(fraction, k):
    """Return the k-th root of a Fraction if it is rational, else None."""
    negative = fraction < 0
    if negative and k % 2 == 0:
        return None
    numerator, denominator = abs(fraction.numerator), fraction.denominator
    numerator_root = _integer_root(numerator, k)
    denominator_root = _integer_root(denominator, k)
    if numerator_root ** k != numerator or denominator_root ** k != denominator:
        return None
    result = Fraction(numerator_root, denominator_root)
    return -result if negative else result


def _fraction_to_decimal(fraction, context):
    if fraction.denominator == 1:
        return Decimal(fraction.numerator)
    return divide(Decimal(fraction.numerator), Decimal(fraction.denominator), context)


@translate_signals
def power(base, exponent, context=WORKING, max_exponent=DEFAULT_MAX_EXPONENT):
    """base ^ exponent.

    Integer exponents are computed exactly (negative ones as a reciprocal at
    working precision). A fractional exponent p/q with a small q is tried as
    an exact q-th root first (4^0.5 -> 2, 2.25^0.5 -> 1.5); anything else goes
    through context.power.
    """
    if exponent.copy_abs() > max_exponent:
        raise E.CalculationError(f"Exponent {render(exponent)} exceeds the limit of {max_exponent}",
                                 code="3026")

    if is_integral(exponent):
        n = int(exponent)
        result = _exact_power(base, abs(n))
        if n < 0:
            return divide(ONE, result, context)
        return canonical(result)

    ratio = Fraction(exponent)
    if ratio.denominator <= MAX_EXACT_ROOT_DEGREE:
        root_value = _exact_root(Fraction(base), ratio.denominator)
        if root_value is not None:
            if root_value == 0 and ratio < 0:
                raise E.CalculationError("Division by zero", code="3003")
            result = _fraction_to_decimal(root_value ** ratio.numerator, context)
            return canonical(_drop_redundant_fraction(result))

    return canonical(_drop_redundant_fraction(context.power(base, exponent)))


@translate_signals
def square_root(value, context=WORKING):
    """Square root at working precision; exact roots come out exact (sqrt(81) -> 9)."""
    return canonical(context.sqrt(value))


@translate_signals
def root(value, degree, context=WORKING):
    """degree-th root; exact when the root is rational, odd roots of negatives allowed."""
    exact = _exact_root(Fraction(value), degree)
    if exact is not None:
        return canonical(_fraction_to_decimal(exact, context))
    if value.is_signed() and degree % 2 == 1:
        return root(value.copy_negate(), degree, context).copy_negate()
    return canonical(context.power(value, context.divide(ONE, Decimal(degree))))


# -----------------------------
# Bit operations (integers only)
# -----------------------------

def bit_and(*values):
    result = to_integer(values[0], "BitAnd")
    for value in values[1:]:
        result &= to_integer(value, "BitAnd")
    return Decimal(result)


def bit_or(*values):
    result = to_integer(values[0], "BitOr")
    for value in values[1:]:
        result |= to_integer(value, "BitOr")
    return Decimal(result)


def bit_xor(*values):
    result = to_integer(values[0], "BitXor")
    for value in values[1:]:
        result ^= to_integer(value, "BitXor")
    return Decimal(result)


def bit_not(value):
    return Decimal(~to_integer(value, "BitNot"))


def shift_left(value, count):
    number = to_integer(value, "'<<'")
    places = to_integer(count, "'<<'")
    if places < 0:
        return Decimal(number >> -places)
    return Decimal(number << places)


def shift_right(value, count):
    number = to_integer(value, "'>>'")
    places = to_integer(count, "'>>'")
    if places < 0:
        return Decimal(number << -places)
    return Decimal(number >> places)
