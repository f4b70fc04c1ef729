"""Tests for MathEngine: operators, precedence, rendering, sessions and errors."""

import pytest

from DecimalCalc import error as E
from DecimalCalc.MathEngine import Calculator


# --- Literals and rendering ---

@pytest.mark.parametrize("expression, expected", [
    ("0", "0"),
    ("1", "1"),
    ("-1", "-1"),
    ("--1", "1"),
    ("1.00", "1.00"),
    (".2", "0.2"),
    ("1.2E3", "1.2E+3"),
    ("1E3", "1E+3"),
    ("1.E3", "1E+3"),
    (".1E3", "1E+2"),
    ("1e-7", "1E-7"),
    ("0x1F", "31"),
    ("0b101", "5"),
])
def test_literals(evaluate, expression, expected):
    assert evaluate(expression) == expected


@pytest.mark.parametrize("literal", ["0", "1.00", ".2", "1.2E3", "1.E3", ".1E3", "123.4500", "1e-9"])
def test_rendering_is_idempotent(evaluate, literal):
    once = evaluate(literal)
    assert evaluate(once) == once


# --- Arithmetic ---

@pytest.mark.parametrize("expression, expected", [
    ("1+2+3", "6"),
    ("1+-2", "-1"),
    ("3-2-1", "0"),
    ("1.00 + 0", "1.00"),
    ("10000+0.001", "10000.001"),
    ("0.001+10000", "10000.001"),
    ("10000-0.001", "9999.999"),
    ("0.001-10000", "-9999.999"),
    ("3*4", "12"),
    ("-3*4", "-12"),
    ("3*-4", "-12"),
    ("-3*-4", "12"),
    ("1.5*2", "3.0"),
    ("0*-4", "0"),
    ("1+2*3", "7"),
    ("(1+2)*3", "9"),
    ("1/2", "0.5"),
    ("6/2", "3"),
    ("1/3", "0.3333333333333333333333333333333333"),
    ("3%4", "3"),
    ("4%4", "0"),
    ("5%4", "1"),
    ("-5%4", "-1"),
])
def test_arithmetic(evaluate, expression, expected):
    assert evaluate(expression) == expected


def test_addition_is_never_rounded(evaluate):
    big = "1" + "0" * 40
    assert evaluate(f"{big} + 0.5") == big + ".5"


# --- Relational and logical operators ---

@pytest.mark.parametrize("expression, expected", [
    ("1<2", "1"), ("2<2", "0"), ("2<1", "0"),
    ("1<=2", "1"), ("2<=2", "1"), ("2<=1", "0"),
    ("1>2", "0"), ("2>2", "0"), ("2>1", "1"),
    ("1>=2", "0"), ("2>=2", "1"), ("2>=1", "1"),
    ("1==2", "0"), ("2==2", "1"), ("2==1", "0"),
    ("1!=2", "1"), ("2!=2", "0"), ("2!=1", "1"),
    ("1.0 == 1", "1"),
    ("1<2<3", "1"),
])
def test_relational_operations(evaluate, expression, expected):
    assert evaluate(expression) == expected


@pytest.mark.parametrize("expression, expected", [
    ("!(1==2)", "1"),
    ("!(2==2)", "0"),
    ("!!(2==2)", "1"),
])
def test_not(evaluate, expression, expected):
    assert evaluate(expression) == expected


# --- Shifts and bit operations ---

@pytest.mark.parametrize("expression, expected", [
    ("1<<4", "16"),
    ("(12<<3)>>3", "12"),
    ("16>>-1", "32"),
    ("(0x1234 & 0xff0) == 0x230", "1"),
    ("(0x1200 | 0x34) == 0x1234", "1"),
    ("BitXor(5, 3)", "6"),
    ("BitAnd(7, 6, 3)", "2"),
    ("((0x1234 & ~0xff) | 0x56) == 0x1256", "1"),
    ("(0x1234 & ~0xff) | 0x56", "4694"),
    ("~3", "-4"),
    ("~~3", "3"),
    ("2.0 | 1", "3"),
])
def test_bit_operations(evaluate, expression, expected):
    assert evaluate(expression) == expected


@pytest.mark.parametrize("expression", ["1.5 & 1", "~0.5", "1 << 0.5", "BitOr(1, 2.5)"])
def test_bit_operations_need_integers(evaluate, expression):
    with pytest.raises(E.CalculationError) as excinfo:
        evaluate(expression)
    assert excinfo.value.code == "3034"


# --- Exponentiation ---

@pytest.mark.parametrize("expression, expected", [
    ("2^3", "8"),
    ("2^3^4", "2417851639229258349412352"),
    ("4^0.5", "2"),
    ("2.25^0.5", "1.5"),
    ("16^0.25", "2"),
    ("4^1.5", "8"),
    ("-10^2", "-100"),
    ("(-10)^2", "100"),
    ("1.5^2", "2.25"),
    ("2^0", "1"),
    ("2^(0-1)", "0.5"),
    ("(0-32)^0.2", "-2"),
])
def test_exponentiation(evaluate, expression, expected):
    assert evaluate(expression) == expected


def test_integer_powers_are_exact(evaluate):
    assert evaluate("2^100") == str(2 ** 100)


def test_irrational_power_uses_working_precision(evaluate):
    assert evaluate("2^0.5").startswith("1.414213562373095048801688724209")


def test_exponent_limit(evaluate):
    with pytest.raises(E.CalculationError) as excinfo:
        evaluate("2^200000")
    assert excinfo.value.code == "3026"


# --- Constants ---

def test_constants(evaluate):
    assert float(evaluate("e")) == pytest.approx(2.718281828459045, abs=1e-6)
    assert float(evaluate("pi")) == pytest.approx(3.141592653589793, abs=1e-6)
    assert evaluate("pi == π") == "1"


# --- Square root glyph ---

def test_sqrt_glyph(evaluate):
    assert evaluate("√4") == "2"
    assert evaluate("√√16") == "2"
    assert evaluate("√3*2").startswith("3.464")
    assert evaluate("2*√3") == evaluate("√3*2")


# --- Sessions: Ans and variables ---

def test_ans_chains(calc):
    assert calc.evaluate("0") == "0"
    assert calc.evaluate("1+Ans") == "1"
    assert calc.evaluate("1+Ans") == "2"
    assert calc.evaluate("Ans*2") == "4"


def test_variables_persist_within_a_session(calc):
    assert calc.evaluate("a = 2") == "2"
    assert calc.evaluate("a") == "2"
    assert calc.evaluate("2*a") == "4"
    assert calc.evaluate("a = a + 1") == "3"
    assert calc.evaluate("a") == "3"


def test_sessions_are_independent(settings):
    first, second = Calculator(settings), Calculator(settings)
    first.evaluate("x = 5")
    with pytest.raises(E.CalculationError):
        second.evaluate("x")


def test_failed_call_keeps_bindings(calc):
    calc.evaluate("a = 2")
    with pytest.raises(E.CalculationError):
        calc.evaluate("a = 1/0")
    with pytest.raises(E.SyntaxError):
        calc.evaluate("a = (")
    assert calc.evaluate("a") == "2"
    assert calc.evaluate("Ans") == "2"


def test_failed_call_undoes_nested_assignments(calc):
    calc.evaluate("a = 1")
    with pytest.raises(E.CalculationError):
        calc.evaluate("(a = 5) + undefinedVar")
    with pytest.raises(E.CalculationError):
        calc.evaluate("(b = 2) * (1/0)")
    assert calc.evaluate("a") == "1"
    assert "b" not in calc.context.variables
    assert calc.evaluate("Ans") == "1"


def test_successful_nested_assignment_sticks(calc):
    assert calc.evaluate("(a = 5) + 1") == "6"
    assert calc.evaluate("a") == "5"


def test_ans_is_unbound_before_first_result(calc):
    with pytest.raises(E.CalculationError) as excinfo:
        calc.evaluate("Ans")
    assert excinfo.value.code == "3031"


# --- Errors ---

def test_missing_operand(evaluate):
    with pytest.raises(E.SyntaxError, match="expected an operand, got end of input instead"):
        evaluate("1+")


def test_missing_close_parenthesis(evaluate):
    with pytest.raises(E.SyntaxError, match="expected '\\)', got end of input instead") as excinfo:
        evaluate("(1+2")
    assert excinfo.value.code == "3012"


def test_trailing_tokens(evaluate):
    with pytest.raises(E.SyntaxError, match="expected end of input, got number instead"):
        evaluate("1 2")


def test_only_one_assignment(evaluate):
    with pytest.raises(E.SyntaxError, match="expected end of input, got '=' instead"):
        evaluate("a = b = 1")


def test_unbound_variable(evaluate):
    with pytest.raises(E.CalculationError, match="undefinedVar") as excinfo:
        evaluate("undefinedVar")
    assert excinfo.value.code == "3031"


def test_unexpected_character(evaluate):
    with pytest.raises(E.SyntaxError, match="'\\$'") as excinfo:
        evaluate("1 $ 2")
    assert excinfo.value.code == "3011"


def test_assignment_needs_a_variable(evaluate):
    with pytest.raises(E.CalculationError) as excinfo:
        evaluate("3 = 4")
    assert excinfo.value.code == "3035"


def test_constants_cannot_be_reassigned(evaluate):
    with pytest.raises(E.CalculationError):
        evaluate("pi = 3")


@pytest.mark.parametrize("expression", ["1/0", "5%0", "0^(0-1)"])
def test_division_by_zero(evaluate, expression):
    with pytest.raises(E.CalculationError) as excinfo:
        evaluate(expression)
    assert excinfo.value.code == "3003"


@pytest.mark.parametrize("expression", ["sqrt(0-1)", "(0-4)^0.5", "√(0-2)"])
def test_negative_roots_are_domain_errors(evaluate, expression):
    with pytest.raises(E.CalculationError) as excinfo:
        evaluate(expression)
    assert excinfo.value.code == "3033"


def test_errors_share_one_base_class(evaluate):
    for expression in ["1+", "nope", "1 # 2", "sqrt()"]:
        with pytest.raises(E.MathError):
            evaluate(expression)


@pytest.mark.parametrize("code, category", [
    ("2001", "Scientific Calculation Error"),
    ("3003", "Calculator Error"),
    ("4002", "UI Error"),
    ("5001", "Configuration Error"),
    ("9999", "Runtime Error"),
    ("7000", "Runtime Error"),
])
def test_error_category(code, category):
    assert E.error_category(code) == category


def test_every_raised_code_has_a_message(evaluate):
    for expression in ["1/0", "1 $ 2", "(1", "1+", "2^200000", "nope", "sqrt()", "asin(2)", "~0.5", "3 = 4"]:
        with pytest.raises(E.MathError) as excinfo:
            evaluate(expression)
        assert excinfo.value.code in E.ERROR_MESSAGES


# --- Settings ---

def test_precision_setting(settings):
    settings["precision"] = 10
    assert Calculator(settings).evaluate("1/3") == "0.3333333333"
