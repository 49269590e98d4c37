# MathEngine.py
"""
Core calculation engine of the MathMind calculator.

Pipeline
--------
1) Tokenizer: converts a raw input string into a flat list of tokens.
2) Parser (AST): builds an Abstract Syntax Tree (recursive-descent, precedence aware).
3) Evaluator: walks the tree post-order and computes a float.
4) Formatter: renders the float for the display ("4", not "4.0").

No user text is ever handed to eval/exec. calculate() is the only entry point
the UI needs; it never raises and reports failures inside an EvalResult.
"""

import logging
import math
from collections import namedtuple
from enum import Enum

from . import config_manager as config_manager
from . import ScientificEngine
from . import error as E

logger = logging.getLogger(__name__)

# Supported operators (kept as simple lists for quick membership checks)
Operations = ["+", "-", "*", "/", "^"]
Basic_Operations = ["+", "-", "*", "/"]
DIGITS = "0123456789"

# Display glyphs -> characters the tokenizer understands. Order matters: '**' before single chars.
GLYPHS = [
    ("×", "*"),
    ("÷", "/"),
    ("−", "-"),
    ("**", "^"),
] + list(ScientificEngine.GLYPH_ALIASES.items())


class CalcMode(Enum):
    BASIC = "BASIC"
    SCIENTIFIC = "SCIENTIFIC"


class TokenKind(Enum):
    NUMBER = "NUMBER"
    OPERATOR = "OPERATOR"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    FUNCTION = "FUNCTION"
    CONSTANT = "CONSTANT"


# position is the character offset inside the normalized text
Token = namedtuple("Token", ["kind", "value", "position"])

# Token kinds between which a '*' is implied, e.g. 2(3+4), 2pi, (1)(2), 3sqrt(4)
IMPLICIT_LEFT = (TokenKind.NUMBER, TokenKind.CONSTANT, TokenKind.RPAREN)
IMPLICIT_RIGHT = (TokenKind.LPAREN, TokenKind.CONSTANT, TokenKind.FUNCTION)


def resolve_mode(mode):
    """Accept a CalcMode or its name ("basic", "SCIENTIFIC") and return the CalcMode."""
    if isinstance(mode, CalcMode):
        return mode
    try:
        return CalcMode[str(mode).strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown calculator mode: {mode!r}")


def check_finite(value, source):
    """Raise an OVERFLOW EvalError unless value is a finite float."""
    if math.isinf(value) or math.isnan(value):
        raise E.EvalError(f"{source}", kind=E.ErrorKind.OVERFLOW, code="3026")
    return value


# -----------------------------
# AST node types
# -----------------------------

class Literal:
    """AST node for a numeric literal or an already resolved constant."""
    def __init__(self, value):
        self.value = float(value)

    def evaluate(self):
        return check_finite(self.value, "Number literal")

    def __eq__(self, other):
        return isinstance(other, Literal) and self.value == other.value

    def __repr__(self):
        return f"Literal({self.value!r})"


class UnaryOp:
    """AST node for a leading '-' or '+'."""
    def __init__(self, operator, operand):
        self.operator = operator
        self.operand = operand

    def evaluate(self):
        value = self.operand.evaluate()
        if self.operator == '-':
            return check_finite(-value, f"-{value}")
        elif self.operator == '+':
            return value
        else:
            raise E.MathError(f"Unknown unary operator: {self.operator}", code="3011")

    def __eq__(self, other):
        return (isinstance(other, UnaryOp) and self.operator == other.operator
                and self.operand == other.operand)

    def __repr__(self):
        return f"UnaryOp({self.operator!r}, {self.operand})"


class BinaryOp:
    """AST node for a binary operation: left <operator> right."""
    def __init__(self, operator, left, right):
        self.operator = operator
        self.left = left
        self.right = right

    def evaluate(self):
        """Evaluate both subtrees, then apply the operator."""
        left_value = self.left.evaluate()
        right_value = self.right.evaluate()
        source = f"{left_value} {self.operator} {right_value}"

        try:
            if self.operator == '+':
                ergebnis = left_value + right_value
            elif self.operator == '-':
                ergebnis = left_value - right_value
            elif self.operator == '*':
                ergebnis = left_value * right_value
            elif self.operator == '/':
                if right_value == 0:
                    raise E.EvalError("Division by zero", kind=E.ErrorKind.DIV_BY_ZERO, code="3003")
                ergebnis = left_value / right_value
            elif self.operator == '^':
                ergebnis = power(left_value, right_value)
            else:
                raise E.MathError(f"Unknown operator: {self.operator}", code="3011")
        except OverflowError:
            raise E.EvalError(source, kind=E.ErrorKind.OVERFLOW, code="3026")

        return check_finite(ergebnis, source)

    def __eq__(self, other):
        return (isinstance(other, BinaryOp) and self.operator == other.operator
                and self.left == other.left and self.right == other.right)

    def __repr__(self):
        return f"BinaryOp({self.operator!r}, left={self.left}, right={self.right})"


class Call:
    """AST node for a scientific function applied to one argument."""
    def __init__(self, name, argument):
        self.name = name
        self.argument = argument

    def evaluate(self):
        argument_value = self.argument.evaluate()
        ergebnis = ScientificEngine.apply_function(self.name, argument_value)
        return check_finite(ergebnis, f"{self.name}({argument_value})")

    def __eq__(self, other):
        return (isinstance(other, Call) and self.name == other.name
                and self.argument == other.argument)

    def __repr__(self):
        return f"Call({self.name!r}, {self.argument})"


def power(basis, exponent):
    """pow() semantics restricted to real, finite results."""
    if basis == 0 and exponent < 0:
        raise E.EvalError(f"{basis} ^ {exponent}", kind=E.ErrorKind.DIV_BY_ZERO, code="3003")
    if basis < 0 and not exponent.is_integer():
        # Would be complex
        raise E.EvalError(f"{basis} ^ {exponent}", kind=E.ErrorKind.DOMAIN_ERROR, code="2003")
    try:
        return math.pow(basis, exponent)
    except ValueError:
        raise E.EvalError(f"{basis} ^ {exponent}", kind=E.ErrorKind.DOMAIN_ERROR, code="2003")


# -----------------------------
# Tokenizer
# -----------------------------

def normalize(problem):
    """Map keypad glyphs (×, ÷, π, √, **) to the characters the tokenizer reads."""
    for glyph, replacement in GLYPHS:
        problem = problem.replace(glyph, replacement)
    return problem


def insert_implicit_multiplication(tokens):
    """Return a new token list with '*' between tokens that imply multiplication."""
    full_problem = []
    for token in tokens:
        if full_problem and full_problem[-1].kind in IMPLICIT_LEFT and token.kind in IMPLICIT_RIGHT:
            full_problem.append(Token(TokenKind.OPERATOR, "*", token.position))
        full_problem.append(token)
    return full_problem


def tokenize(problem, mode=CalcMode.SCIENTIFIC, settings=None):
    """Convert raw input text into a list of Tokens.

    Notes:
    - The input string is never modified; glyphs are mapped on a copy.
    - In BASIC mode only digits, '.', '+ - * /' and parentheses are legal.
    - Implicit multiplication is inserted when the setting allows it.
    """
    mode = resolve_mode(mode)
    if settings is None:
        settings = config_manager.DEFAULT_SETTINGS

    problem = normalize(problem)
    full_problem = []
    b = 0

    while b < len(problem):
        current_char = problem[b]

        # --- Numbers: digits and decimal separator ---
        if current_char in DIGITS or current_char == ".":
            start = b
            has_point = False  # Only one dot allowed in a numeric literal

            while b < len(problem) and (problem[b] in DIGITS or problem[b] == "."):
                if problem[b] == ".":
                    if has_point:
                        raise E.LexError("More than one '.' in one number.", code="3008", position=b)
                    has_point = True
                b += 1

            str_number = problem[start:b]
            if str_number == ".":
                raise E.LexError("'.' without digits.", code="3008", position=start)
            full_problem.append(Token(TokenKind.NUMBER, float(str_number), start))
            continue

        # --- Operators ---
        elif current_char in Operations:
            if mode == CalcMode.BASIC and current_char not in Basic_Operations:
                raise E.LexError(current_char, code="3013", position=b)
            full_problem.append(Token(TokenKind.OPERATOR, current_char, b))

        # --- Whitespace (ignored) ---
        elif current_char.isspace():
            pass

        # --- Parentheses ---
        elif current_char == "(":
            full_problem.append(Token(TokenKind.LPAREN, "(", b))
        elif current_char == ")":
            full_problem.append(Token(TokenKind.RPAREN, ")", b))

        # --- Function names and constants ---
        elif current_char.isascii() and current_char.isalpha():
            start = b
            while b < len(problem) and problem[b].isascii() and problem[b].isalpha():
                b += 1
            name = problem[start:b]

            if mode == CalcMode.BASIC:
                raise E.LexError(name, code="3013", position=start)
            if ScientificEngine.isFunction(name):
                full_problem.append(Token(TokenKind.FUNCTION, name, start))
            elif ScientificEngine.isConstant(name):
                full_problem.append(Token(TokenKind.CONSTANT, name, start))
            else:
                raise E.LexError(name, code="3000", position=start)
            continue

        else:
            raise E.LexError(current_char, code="3000", position=b)

        b += 1

    if settings.get("implicit_multiplication", True):
        full_problem = insert_implicit_multiplication(full_problem)

    return full_problem


# -----------------------------
# Parser (recursive descent)
# -----------------------------

def parse(tokens):
    """Parse a token list into an AST.

    Implements precedence via nested functions: atom → power → unary → term → expr.
    '^' is right-associative and binds tighter than unary minus, so -2^2 is -4.
    """
    index = 0

    def peek():
        return tokens[index] if index < len(tokens) else None

    def advance():
        nonlocal index
        token = tokens[index]
        index += 1
        return token

    def is_operator(token, *symbols):
        return token is not None and token.kind == TokenKind.OPERATOR and token.value in symbols

    def expect_closing(context):
        token = peek()
        if token is None or token.kind != TokenKind.RPAREN:
            raise E.ParseError(f"Missing closing parenthesis ')' {context}", code="3009", index=index)
        advance()

    def parse_atom():
        """Numbers, constants, sub-expressions in '()' and function calls."""
        token = peek()
        if token is None:
            raise E.ParseError("Missing Number.", code="3012", index=index)

        if token.kind == TokenKind.NUMBER:
            advance()
            return Literal(token.value)

        elif token.kind == TokenKind.CONSTANT:
            advance()
            return Literal(ScientificEngine.constant_value(token.value))

        elif token.kind == TokenKind.LPAREN:
            advance()
            baum_in_der_klammer = parse_expr()
            expect_closing("after sub-expression")
            return baum_in_der_klammer

        elif token.kind == TokenKind.FUNCTION:
            advance()
            # function must be followed by '('
            following = peek()
            if following is None or following.kind != TokenKind.LPAREN:
                raise E.ParseError(f"Missing opening parenthesis after function {token.value}",
                                   code="3010", index=index)
            advance()
            argument_baum = parse_expr()
            expect_closing(f"after function '{token.value}'")
            return Call(token.value, argument_baum)

        raise E.ParseError(f"{token.value}", code="3011", index=index)

    def parse_power():
        """Exponentiation '^', right operand may carry its own sign (2^-1)."""
        basis = parse_atom()
        if is_operator(peek(), "^"):
            operator = advance().value
            exponent = parse_unary()
            return BinaryOp(operator, basis, exponent)
        return basis

    def parse_unary():
        """Handle leading '+'/'-'."""
        if is_operator(peek(), "+", "-"):
            operator = advance().value
            return UnaryOp(operator, parse_unary())
        return parse_power()

    def parse_term():
        """Multiplication and division."""
        aktueller_baum = parse_unary()
        while is_operator(peek(), "*", "/"):
            operator = advance().value
            rechtes_teil = parse_unary()
            aktueller_baum = BinaryOp(operator, aktueller_baum, rechtes_teil)
        return aktueller_baum

    def parse_expr():
        """Addition and subtraction."""
        aktueller_baum = parse_term()
        while is_operator(peek(), "+", "-"):
            operator = advance().value
            rechte_seite = parse_term()
            aktueller_baum = BinaryOp(operator, aktueller_baum, rechte_seite)
        return aktueller_baum

    if not tokens:
        raise E.ParseError("Empty expression.", code="3012", index=0)

    try:
        finaler_baum = parse_expr()
    except RecursionError:
        raise E.ParseError("Expression nested too deeply.", code="3014", index=index) from None

    # Leftovers mean a stray ')' or two operands without an operator between them
    if index < len(tokens):
        raise E.ParseError(f"{tokens[index].value}", code="3011", index=index)

    return finaler_baum


def evaluate(baum):
    """Evaluate an AST and return its float value."""
    return baum.evaluate()


# -----------------------------
# Result formatting
# -----------------------------

# Above this, integral floats are no longer exact integers; show them in exponent form
INTEGER_DISPLAY_LIMIT = 1e16


def format_result(ergebnis):
    """Integral results without a decimal point, everything else as the shortest repr."""
    if ergebnis.is_integer() and abs(ergebnis) < INTEGER_DISPLAY_LIMIT:
        # int() also turns -0.0 into 0
        return str(int(ergebnis))
    return repr(ergebnis)


class EvalResult:
    """Outcome of one calculate() call: a finite value or a MathError, never both."""

    def __init__(self, expression, value=None, error=None):
        self.expression = expression
        self.value = value
        self.error = error
        self.display = format_result(value) if error is None else None

    @property
    def ok(self):
        return self.error is None

    def __repr__(self):
        if self.ok:
            return f"EvalResult({self.expression!r} = {self.display})"
        return f"EvalResult({self.expression!r}, error={self.error.code})"


# -----------------------------
# Public entry point
# -----------------------------

def calculate(problem, mode=CalcMode.SCIENTIFIC, settings=None):
    """Main API: tokenize → parse → evaluate → format.

    Returns None for empty input (nothing to evaluate), otherwise an EvalResult.
    """
    if problem is None or not problem.strip():
        return None

    mode = resolve_mode(mode)
    # Callers that want the user's config.json pass it in; no file is read here
    if settings is None:
        settings = config_manager.DEFAULT_SETTINGS

    tokens = []
    try:
        tokens = tokenize(problem, mode, settings)
        finaler_baum = parse(tokens)
        logger.debug("AST for %r: %r", problem, finaler_baum)
        ergebnis = evaluate(finaler_baum)
        return EvalResult(problem, value=ergebnis)

    # The parser reports its own depth limit; this catches a tree too deep to walk
    except RecursionError:
        error = E.ParseError("Expression nested too deeply.", code="3014", index=len(tokens))
    # Our own errors carry a code already
    except E.MathError as e:
        error = e
    # Convert unexpected Python exceptions to our unified error type
    except Exception as e:
        logger.exception("Unexpected error while calculating %r", problem)
        error = E.MathError(message=str(e), code="9999")

    error.equation = problem
    logger.debug("Calculation of %r failed: %s", problem, error.describe())
    return EvalResult(problem, error=error)
