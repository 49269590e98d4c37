# ScientificEngine
"""Scientific functions and constants used by MathEngine.

Every function takes and returns a float. Domain checks happen here so the
evaluator only has to deal with the generic non-finite case.
"""
import math

from . import error as E


FUNCTIONS = ["sin", "cos", "tan", "log", "sqrt"]

CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
}

# Display glyphs the keypad can produce, mapped to their identifier
GLYPH_ALIASES = {
    "π": "pi",
    "√": "sqrt",
}


def isFunction(name):
    return name in FUNCTIONS


def isConstant(name):
    return name in CONSTANTS


def constant_value(name):
    try:
        return CONSTANTS[name]
    except KeyError:
        raise E.MathError(f"{name}", code="2004")


def isSCT(name, number):  # Sin / Cos / Tan, radians only
    if name == "sin":
        return math.sin(number)
    elif name == "cos":
        return math.cos(number)
    elif name == "tan":
        return math.tan(number)
    else:
        raise E.MathError(f"{name}", code="2004")


def isLog(number):
    if number <= 0:
        raise E.EvalError(f"log({number})", kind=E.ErrorKind.DOMAIN_ERROR, code="2001")
    return math.log10(number)


def isRoot(number):
    if number < 0:
        raise E.EvalError(f"sqrt({number})", kind=E.ErrorKind.DOMAIN_ERROR, code="2002")
    return math.sqrt(number)


def apply_function(name, number):
    """Apply the named scientific function to an already evaluated argument."""
    if name in ("sin", "cos", "tan"):
        return isSCT(name, number)
    elif name == "log":
        return isLog(number)
    elif name == "sqrt":
        return isRoot(number)
    else:
        raise E.MathError(f"{name}", code="2004")
