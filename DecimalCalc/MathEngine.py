# MathEngine.py
"""""
Core calculation engine for the Decimal Calculator.

Pipeline
--------
1) Lexer: turns the raw input string into tokens, one at a time, as the
   parser asks for them.
2) Parser (AST): recursive descent with one method per precedence level.
3) Evaluator: every AST node evaluates itself to a Decimal against a Context
   holding the constants, built-in functions and variables of one session.
4) Formatter: the result is stored as `Ans` and rendered to canonical text.

Precedence, lowest to highest:

    =   |   &   prefix !   == != < <= > >=   << >>   + -   * / %
    prefix - ~   prefix √   ^ (right-assoc)   postfix !   primary
"""""

import logging
import re
from decimal import Decimal
from types import MappingProxyType
from typing import NamedTuple, Optional

from . import DecimalMath as D
from . import ScientificEngine
from . import config_manager as config_manager
from . import error as E

logger = logging.getLogger(__name__)


# -----------------------------
# Tokens
# -----------------------------

END = "end of input"
NUMBER = "number"
IDENTIFIER = "identifier"

# Two-character operators first so that the longest match wins
OPERATORS = ["==", "!=", "<=", ">=", "<<", ">>",
             "+", "-", "*", "/", "%", "^", "&", "|", "~", "!", "=", "<", ">",
             "(", ")", ",", "√"]

RELATIONAL_OPERATORS = ("==", ">=", ">", "<=", "<", "!=")

# Greek pi/sigma and the n-ary sum/product signs are identifiers on their own
SINGLE_GLYPH_IDENTIFIERS = "πΣΠ∑∏"

NUMBER_PATTERN = re.compile(
    r"0[xX][0-9a-fA-F]+|0[bB][01]+|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class Token(NamedTuple):
    kind: str
    number: Optional[Decimal] = None
    identifier: Optional[str] = None

    def __str__(self):
        if self.kind == NUMBER:
            return D.render(self.number)
        if self.kind == IDENTIFIER:
            return self.identifier
        return self.kind


def quote_token(kind):
    """Quote operators for error messages; names like "end of input" stay bare."""
    if len(kind) > 2:
        return kind
    return f"'{kind}'"


class Lexer:
    """Single-pass tokenizer. `current_token()` is the token the parser looks at."""

    def __init__(self, text):
        self.text = text
        self.position = 0
        self.token = None
        self.advance()

    def current_token(self):
        return self.token

    def advance(self):
        """Move to the next token and return it."""
        self.token = self._scan()
        return self.token

    def _scan(self):
        text = self.text
        while self.position < len(text) and text[self.position].isspace():
            self.position += 1
        if self.position >= len(text):
            return Token(END)

        start = self.position
        char = text[start]

        match = NUMBER_PATTERN.match(text, start)
        if match:
            self.position = match.end()
            return Token(NUMBER, number=D.parse_literal(match.group()))

        if char in SINGLE_GLYPH_IDENTIFIERS:
            self.position += 1
            return Token(IDENTIFIER, identifier=char)

        match = IDENTIFIER_PATTERN.match(text, start)
        if match:
            self.position = match.end()
            return Token(IDENTIFIER, identifier=match.group())

        for operator in OPERATORS:
            if text.startswith(operator, start):
                self.position += len(operator)
                return Token(operator)

        raise E.SyntaxError(f"Unexpected character '{char}' at position {start}", code="3011")


def tokenize(problem):
    """Return the full token list of `problem` (end-of-input token excluded)."""
    lexer = Lexer(problem)
    tokens = []
    while lexer.current_token().kind != END:
        tokens.append(lexer.current_token())
        lexer.advance()
    return tokens


# -----------------------------
# AST node types
# -----------------------------

class Number:
    """AST node for a numeric literal backed by Decimal."""
    def __init__(self, value):
        self.value = value

    def evaluate(self, context):
        return self.value

    def __repr__(self):
        return f"Number({D.render(self.value)})"


class Variable:
    """AST node for a name that is neither a constant nor a function."""
    def __init__(self, name):
        self.name = name

    def evaluate(self, context):
        """Resolved at evaluation time, so later assignments are seen."""
        return context.lookup(self.name).evaluate(context)

    def __repr__(self):
        return f"Variable('{self.name}')"


UNARY_OPERATIONS = {
    "not": lambda context, value: D.truth(value.is_zero()),
    "factorial": lambda context, value: context.functions["factorial"].impl(context, value),
}


class UnaryOp:
    """AST node for prefix `!` ("not") and postfix `!` ("factorial")."""
    def __init__(self, operator, operand):
        self.operator = operator
        self.operand = operand

    def evaluate(self, context):
        operation = UNARY_OPERATIONS.get(self.operator)
        if operation is None:
            raise E.CalculationError(f"Unknown operator: {self.operator}", code="3013")
        return operation(context, self.operand.evaluate(context))

    def __repr__(self):
        return f"UnaryOp({self.operator!r}, {self.operand})"


BINARY_OPERATIONS = {
    "+": lambda context, left, right: D.add(left, right),
    "-": lambda context, left, right: D.subtract(left, right),
    "*": lambda context, left, right: D.multiply(left, right),
    "/": lambda context, left, right: D.divide(left, right, context.working),
    "%": lambda context, left, right: D.remainder(left, right),
    "^": lambda context, left, right: D.power(left, right, context.working, context.max_exponent),
    "<<": lambda context, left, right: D.shift_left(left, right),
    ">>": lambda context, left, right: D.shift_right(left, right),
    "==": lambda context, left, right: D.truth(left == right),
    "!=": lambda context, left, right: D.truth(left != right),
    "<": lambda context, left, right: D.truth(left < right),
    "<=": lambda context, left, right: D.truth(left <= right),
    ">": lambda context, left, right: D.truth(left > right),
    ">=": lambda context, left, right: D.truth(left >= right),
}


class BinOp:
    """AST node for a binary operation: left <operator> right."""
    def __init__(self, left, operator, right):
        self.left = left
        self.operator = operator
        self.right = right

    def evaluate(self, context):
        """Evaluate both sides and apply the operator.

        `=` is the one exception: the left side is a name, not a value, and
        evaluating the node binds it in the context.
        """
        if self.operator == "=":
            if not isinstance(self.left, Variable):
                raise E.CalculationError(f"Cannot assign to {self.left}", code="3035")
            value = self.right.evaluate(context)
            context.bind(self.left.name, value)
            return value

        operation = BINARY_OPERATIONS.get(self.operator)
        if operation is None:
            raise E.CalculationError(f"Unknown operator: {self.operator}", code="3013")
        left_value = self.left.evaluate(context)
        right_value = self.right.evaluate(context)
        return operation(context, left_value, right_value)

    def __repr__(self):
        return f"BinOp({self.operator!r}, left={self.left}, right={self.right})"


class FunctionCall:
    """AST node applying a built-in Function to argument nodes."""
    def __init__(self, function, args):
        self.function = function
        self.args = args

    def evaluate(self, context):
        return self.function.apply(self.args, context)

    def __repr__(self):
        return f"FunctionCall({self.function.name!r}, {self.args})"


# -----------------------------
# Parser (recursive descent)
# -----------------------------

class Parser:
    """Builds an AST from a Lexer, one method per precedence level."""

    def __init__(self, lexer, context):
        self.lexer = lexer
        self.context = context

    def kind(self):
        return self.lexer.current_token().kind

    def expect(self, kind):
        """Consume a token of `kind` or fail naming what was found instead."""
        found = self.lexer.current_token()
        if found.kind != kind:
            raise E.SyntaxError(
                f"expected {quote_token(kind)}, got {quote_token(found.kind)} instead", code="3012")
        self.lexer.advance()
        return found

    def parse(self):
        tree = self.parse_expression()
        self.expect(END)
        return tree

    def parse_expression(self):
        return self.parse_assignment()

    def parse_assignment(self):
        """= (at most one per expression)"""
        tree = self.parse_or()
        if self.kind() == "=":
            self.lexer.advance()
            tree = BinOp(tree, "=", self.parse_or())
        return tree

    def parse_or(self):
        tree = self.parse_and()
        while self.kind() == "|":
            self.lexer.advance()
            tree = FunctionCall(self.context.functions["BitOr"], [tree, self.parse_and()])
        return tree

    def parse_and(self):
        tree = self.parse_not()
        while self.kind() == "&":
            self.lexer.advance()
            tree = FunctionCall(self.context.functions["BitAnd"], [tree, self.parse_not()])
        return tree

    def parse_not(self):
        """Prefix '!'."""
        if self.kind() == "!":
            self.lexer.advance()
            return UnaryOp("not", self.parse_not())
        return self.parse_relational()

    def parse_relational(self):
        tree = self.parse_shift()
        while self.kind() in RELATIONAL_OPERATORS:
            operator = self.kind()
            self.lexer.advance()
            tree = BinOp(tree, operator, self.parse_shift())
        return tree

    def parse_shift(self):
        tree = self.parse_sum()
        while self.kind() in ("<<", ">>"):
            operator = self.kind()
            self.lexer.advance()
            tree = BinOp(tree, operator, self.parse_sum())
        return tree

    def parse_sum(self):
        """Addition and subtraction."""
        tree = self.parse_term()
        while self.kind() in ("+", "-"):
            operator = self.kind()
            self.lexer.advance()
            tree = BinOp(tree, operator, self.parse_term())
        return tree

    def parse_term(self):
        """Multiplication, division and remainder."""
        tree = self.parse_unary()
        while self.kind() in ("*", "/", "%"):
            operator = self.kind()
            self.lexer.advance()
            tree = BinOp(tree, operator, self.parse_unary())
        return tree

    def parse_unary(self):
        """Leading '-' becomes 0 - operand, leading '~' a BitNot call."""
        if self.kind() == "-":
            self.lexer.advance()
            return BinOp(Number(D.ZERO), "-", self.parse_unary())
        if self.kind() == "~":
            self.lexer.advance()
            return FunctionCall(self.context.functions["BitNot"], [self.parse_unary()])
        return self.parse_sqrt()

    def parse_sqrt(self):
        if self.kind() == "√":
            self.lexer.advance()
            return FunctionCall(self.context.functions["sqrt"], [self.parse_sqrt()])
        return self.parse_power()

    def parse_power(self):
        """Exponentiation, right-associative: 2^3^4 == 2^(3^4)."""
        tree = self.parse_factorial()
        if self.kind() == "^":
            self.lexer.advance()
            tree = BinOp(tree, "^", self.parse_power())
        return tree

    def parse_factorial(self):
        tree = self.parse_factor()
        if self.kind() == "!":
            self.lexer.advance()
            tree = UnaryOp("factorial", tree)
        return tree

    def parse_factor(self):
        """Parenthesized sub-expressions, numbers, constants, function calls and variables."""
        token = self.lexer.current_token()

        if token.kind == "(":
            self.lexer.advance()
            tree = self.parse_expression()
            self.expect(")")
            return tree

        if token.kind == NUMBER:
            self.lexer.advance()
            return Number(token.number)

        if token.kind == IDENTIFIER:
            self.lexer.advance()
            name = token.identifier
            if name in self.context.constants:
                return self.context.constants[name]
            function = self.context.functions.get(name)
            if function is not None:
                return FunctionCall(function, self.parse_arguments())
            return Variable(name)

        raise E.SyntaxError(f"expected an operand, got {quote_token(token.kind)} instead", code="3013")

    def parse_arguments(self):
        """'(' [ expr { ',' expr } ] ')'"""
        self.expect("(")
        args = []
        if self.kind() != ")":
            args.append(self.parse_expression())
            while self.kind() == ",":
                self.lexer.advance()
                args.append(self.parse_expression())
        self.expect(")")
        return args


# -----------------------------
# Evaluation context / session
# -----------------------------

# 34 significant digits, matching the default working precision
PI = Decimal("3.141592653589793238462643383279503")
E_CONSTANT = Decimal("2.718281828459045235360287471352662")


class Context:
    """Constants, functions and variables of one calculator session. Not thread-safe."""

    def __init__(self, settings=None):
        if settings is None:
            settings = config_manager.load_setting_value("all")
        self.settings = {**config_manager.DEFAULT_SETTINGS, **settings}

        self.working = D.working_context(int(self.settings["precision"]))
        self.max_exponent = int(self.settings["max_exponent"])

        pi = Number(PI)
        self.constants = MappingProxyType({"e": Number(E_CONSTANT), "pi": pi, "π": pi})
        self.functions = MappingProxyType(ScientificEngine.builtin_functions())
        self.variables = {}

    def lookup(self, name):
        node = self.variables.get(name)
        if node is None:
            raise E.CalculationError(f"Unknown variable '{name}'", code="3031")
        return node

    def bind(self, name, value):
        self.variables[name] = Number(value)


class Calculator:
    """One interpreter session: evaluate() calls share variables and `Ans`."""

    def __init__(self, settings=None):
        self.context = Context(settings)

    def restore(self, saved):
        self.context.variables.clear()
        self.context.variables.update(saved)

    def parse(self, expression):
        return Parser(Lexer(expression), self.context).parse()

    def evaluate(self, expression):
        """Parse and evaluate `expression`, returning the canonical text of the result.

        Raises error.MathError; a failed call leaves all bindings as they were.
        """
        saved = dict(self.context.variables)
        try:
            tree = self.parse(expression)
            logger.debug("Final AST: %r", tree)
            value = tree.evaluate(self.context)
        except RecursionError:
            self.restore(saved)
            raise E.CalculationError("Expression is nested too deeply", code="3026")
        except Exception:
            # Assignments nested in a failed expression must not stick
            self.restore(saved)
            raise

        self.context.bind("Ans", value)
        return D.render(value)


# -----------------------------
# Public entry point
# -----------------------------

def calculate(problem, calculator=None):
    """Main API: evaluate `problem`, attaching it to any error raised.

    Without a `calculator` a fresh session is used, so no variables carry over.
    """
    if calculator is None:
        calculator = Calculator()
    try:
        result = calculator.evaluate(problem)
        logger.debug("%s = %s", problem, result)
        return result

    # Re-raise our domain errors after attaching the source equation
    except E.MathError as e:
        e.equation = problem
        raise e
    # Convert unexpected Python exceptions to our unified error type
    except Exception as e:
        logger.exception("Unexpected error while calculating %r", problem)
        raise E.MathError(message=str(e), code="9999", equation=problem) from e


def repl(calculator=None, read_line=None):
    """Read-eval-print loop over one session; ends on EOF or 'quit'."""
    if calculator is None:
        calculator = Calculator()
    if read_line is None:
        read_line = input
    while True:
        try:
            problem = read_line("> ")
        except EOFError:
            break
        problem = problem.strip()
        if problem in ("quit", "exit"):
            break
        if not problem:
            continue
        try:
            print(calculate(problem, calculator))
        except E.MathError as e:
            print(f"Error {e.code}: {e.message}")


if __name__ == "__main__":
    # Allow running this module directly for quick CLI use:
    #   python -m DecimalCalc.MathEngine
    repl()
