# ScientificEngine.py
"""""
Built-in functions of the calculator.

Every built-in is a Function: a name, an arity and an implementation that is
called as impl(context, *args). Ordinary functions get their arguments
already evaluated to Decimal. The range functions (sum, product) are "lazy":
they get the argument nodes themselves, because the body has to be evaluated
once per loop value.

Transcendental functions go through the float routines of the math module,
like the rest of the scientific engine always did; their results are
converted back to Decimal via the shortest float repr. Everything that can be
done exactly (rounding, roots, factorial, bit operations) stays in Decimal.
"""""

import math
import random
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP

from . import DecimalMath as D
from . import error as E


# Name of the variable sum() and product() bind for each step
LOOP_VARIABLE = "i"


class Function:
    """A named, arity-checked built-in."""

    def __init__(self, name, impl, arity, lazy=False):
        self.name = name
        self.impl = impl
        self.arity = arity      # int, or (min, max) with max=None for "or more"
        self.lazy = lazy

    def arity_range(self):
        if isinstance(self.arity, tuple):
            return self.arity
        return (self.arity, self.arity)

    def describe_arity(self):
        low, high = self.arity_range()
        if high is None:
            return f"at least {low}"
        if low == high:
            return str(low)
        return f"{low} to {high}"

    def check_arity(self, count):
        low, high = self.arity_range()
        if count < low or (high is not None and count > high):
            raise E.CalculationError(
                f"{self.name}: expected {self.describe_arity()} arguments, got {count}", code="3032")

    def apply(self, args, context):
        """Evaluate this function for the argument nodes `args`."""
        self.check_arity(len(args))
        if self.lazy:
            result = self.impl(context, *args)
        else:
            values = [arg.evaluate(context) for arg in args]
            result = self.impl(context, *values)
        return D.canonical(result)

    def __repr__(self):
        return f"Function('{self.name}')"


# -----------------------------
# Float bridge
# -----------------------------

def to_float(value):
    number = float(value)
    if math.isinf(number):
        raise E.CalculationError(f"{D.render(value)} is out of range for this function", code="2002")
    return number


def float_to_decimal(number):
    """Integral floats become scale-0 integers (cos(pi) -> -1), others keep their shortest repr."""
    if math.isnan(number) or math.isinf(number):
        raise E.CalculationError("Result out of range", code="2002")
    if number.is_integer():
        return Decimal(int(number))
    return Decimal(repr(number))


def _float_function(fn, angle_argument=False, angle_result=False):
    """Wrap a math-module function taking and returning floats."""
    def impl(context, *args):
        numbers = [to_float(arg) for arg in args]
        degrees = context.settings.get("degrees", False)
        if angle_argument and degrees:
            numbers = [math.radians(number) for number in numbers]
        try:
            result = fn(*numbers)
        except ValueError:
            raise E.CalculationError(f"Math domain error in {fn.__name__}", code="3033")
        except OverflowError:
            raise E.CalculationError(f"Result of {fn.__name__} is out of range", code="2002")
        if angle_result and degrees:
            result = math.degrees(result)
        return float_to_decimal(result)
    return impl


def _logarithm(number, base=None):
    x = to_float(number)
    if x <= 0:
        raise E.CalculationError(f"Logarithm of {D.render(number)}", code="2001")
    if base is None:
        return math.log(x)
    b = to_float(base)
    if b <= 0 or b == 1:
        raise E.CalculationError(f"Invalid logarithm base {D.render(base)}", code="2001")
    # Dedicated routines are exact for powers of their base (log10(1000) == 3)
    if b == 2:
        return math.log2(x)
    if b == 10:
        return math.log10(x)
    return math.log(x) / math.log(b)


def _log(context, *args):
    """log(x) is the natural log, log(base, x) uses an explicit base."""
    if len(args) == 1:
        return float_to_decimal(_logarithm(args[0]))
    base, number = args
    return float_to_decimal(_logarithm(number, base))


# -----------------------------
# Exact functions
# -----------------------------

def _abs(context, value):
    return value.copy_abs()


def _ceiling(context, value):
    return value.to_integral_value(rounding=ROUND_CEILING, context=D.EXACT)


def _floor(context, value):
    return value.to_integral_value(rounding=ROUND_FLOOR, context=D.EXACT)


def _round(context, value):
    # Half away from zero: round(2.5) == 3, round(-2.5) == -3
    return value.to_integral_value(rounding=ROUND_HALF_UP, context=D.EXACT)


def _sqrt(context, value):
    return D.square_root(value, context.working)


def _cbrt(context, value):
    return D.root(value, 3, context.working)


def _factorial(context, value):
    n = D.to_integer(value, "factorial")
    if n < 0:
        raise E.CalculationError(f"factorial of negative number {n}", code="3033")
    return Decimal(math.factorial(n))


# Witnesses that make Miller-Rabin deterministic below 3.3e24
_PRIME_WITNESSES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)
_DETERMINISTIC_LIMIT = 3317044064679887385961981


def _jacobi(a, n):
    """Jacobi symbol (a/n) for odd positive n."""
    a %= n
    result = 1
    while a:
        while a % 2 == 0:
            a //= 2
            if n % 8 in (3, 5):
                result = -result
        a, n = n, a
        if a % 4 == 3 and n % 4 == 3:
            result = -result
        a %= n
    return result if n == 1 else 0


def _half_mod(x, n):
    # x / 2 mod odd n
    if x % 2:
        x += n
    return (x // 2) % n


def _is_strong_lucas_probable_prime(n):
    """Strong Lucas test with Selfridge parameters (P = 1, Q = (1 - D) / 4)."""
    if math.isqrt(n) ** 2 == n:
        return False
    d = 5
    while True:
        symbol = _jacobi(d, n)
        if symbol == -1:
            break
        if symbol == 0:
            return False
        d = -d - 2 if d > 0 else -d + 2
    q = (1 - d) // 4

    k, s = n + 1, 0
    while k % 2 == 0:
        k //= 2
        s += 1

    # U_1, V_1, Q^1; then walk the bits of k
    u, v, q_k = 1, 1, q % n
    for bit in bin(k)[3:]:
        u = u * v % n
        v = (v * v - 2 * q_k) % n
        q_k = q_k * q_k % n
        if bit == "1":
            u, v = _half_mod(u + v, n), _half_mod(d * u + v, n)
            q_k = q_k * q % n

    if u == 0 or v == 0:
        return True
    for _ in range(s - 1):
        v = (v * v - 2 * q_k) % n
        q_k = q_k * q_k % n
        if v == 0:
            return True
    return False


def is_prime_integer(n):
    """Primality of a non-negative int.

    Miller-Rabin over fixed witnesses is exact below 3.3e24. Above that a
    strong Lucas test is added (Baillie-PSW), which has no known
    counterexample.
    """
    if n < 2:
        return False
    for p in _PRIME_WITNESSES:
        if n % p == 0:
            return n == p
    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1
    for a in _PRIME_WITNESSES:
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return n < _DETERMINISTIC_LIMIT or _is_strong_lucas_probable_prime(n)


def _is_prime(context, value):
    return D.truth(is_prime_integer(abs(D.to_integer(value, "is_prime"))))


def _sign(context, value):
    if value.is_zero():
        return D.ZERO
    return Decimal(-1) if value.is_signed() else D.ONE


def _integer_part(context, value):
    return D.truncate(value)


def _fractional_part(context, value):
    return D.subtract(value, D.truncate(value))


def _minimum(context, *values):
    return min(values)


def _maximum(context, *values):
    return max(values)


def _random(context):
    return float_to_decimal(random.random())


# -----------------------------
# Higher-order range functions
# -----------------------------

def _range_function(name, combine, identity):
    """Build sum/product: fold `body` over i = low, low+1, ... <= trunc(high)."""
    def impl(context, low_node, high_node, body):
        low = low_node.evaluate(context)
        high = D.truncate(high_node.evaluate(context))

        previous = context.variables.get(LOOP_VARIABLE)
        result = identity
        i = low
        try:
            while i <= high:
                context.bind(LOOP_VARIABLE, i)
                result = combine(result, body.evaluate(context))
                i = D.add(i, D.ONE)
        finally:
            # Put back whatever `i` meant before the loop
            if previous is None:
                context.variables.pop(LOOP_VARIABLE, None)
            else:
                context.variables[LOOP_VARIABLE] = previous
        return result

    impl.__name__ = name
    return impl


# -----------------------------
# Registry
# -----------------------------

def builtin_functions():
    """Return a fresh name -> Function table, aliases sharing one instance."""
    table = {}

    def register(function, *aliases):
        table[function.name] = function
        for alias in aliases:
            table[alias] = function

    for name, fn in [("sin", math.sin), ("cos", math.cos), ("tan", math.tan)]:
        register(Function(name, _float_function(fn, angle_argument=True), 1))
    for name, fn in [("asin", math.asin), ("acos", math.acos), ("atan", math.atan)]:
        register(Function(name, _float_function(fn, angle_result=True), 1))
    register(Function("atan2", _float_function(math.atan2, angle_result=True), 2))

    for name, fn in [("sinh", math.sinh), ("cosh", math.cosh), ("tanh", math.tanh),
                     ("asinh", math.asinh), ("acosh", math.acosh), ("atanh", math.atanh),
                     ("exp", math.exp)]:
        register(Function(name, _float_function(fn), 1))
    register(Function("hypot", _float_function(math.hypot), 2))

    register(Function("log", _log, (1, 2)))
    register(Function("logE", _float_function(math.log), 1))
    register(Function("log2", _float_function(math.log2), 1))
    register(Function("log10", _float_function(math.log10), 1))

    register(Function("abs", _abs, 1))
    register(Function("ceiling", _ceiling, 1), "ceil")
    register(Function("floor", _floor, 1))
    register(Function("round", _round, 1))
    register(Function("sqrt", _sqrt, 1))
    register(Function("cbrt", _cbrt, 1))
    register(Function("factorial", _factorial, 1))
    register(Function("is_prime", _is_prime, 1))
    register(Function("sign", _sign, 1))
    register(Function("int", _integer_part, 1))
    register(Function("frac", _fractional_part, 1))
    register(Function("min", _minimum, (1, None)))
    register(Function("max", _maximum, (1, None)))

    register(Function("BitAnd", lambda context, *values: D.bit_and(*values), (2, None)))
    register(Function("BitOr", lambda context, *values: D.bit_or(*values), (2, None)))
    register(Function("BitXor", lambda context, *values: D.bit_xor(*values), (2, None)))
    register(Function("BitNot", lambda context, value: D.bit_not(value), 1))

    register(Function("random", _random, 0), "rand")

    register(Function("sum", _range_function("sum", D.add, D.ZERO), 3, lazy=True),
             "Σ", "∑")  # Greek capital sigma, n-ary summation sign
    register(Function("product", _range_function("product", D.multiply, D.ONE), 3, lazy=True),
             "Π", "∏")  # Greek capital pi, n-ary product sign

    return table
