# error.py
from enum import Enum


class ErrorKind(Enum):
    DIV_BY_ZERO = "DIV_BY_ZERO"
    DOMAIN_ERROR = "DOMAIN_ERROR"
    OVERFLOW = "OVERFLOW"


class MathError(Exception):
    def __init__(self, message, code="9999", equation=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.equation = equation

    def describe(self):
        """Return the table text for this error's code, followed by the detail message."""
        base = ERROR_MESSAGES.get(self.code, ERROR_MESSAGES["9999"])
        return f"Error {self.code}: {base.strip()} {self.message}".strip()


class LexError(MathError):
    def __init__(self, message, code="3000", equation=None, position=None):
        super().__init__(message, code=code, equation=equation)
        self.position = position


class ParseError(MathError):
    def __init__(self, message, code="3011", equation=None, index=None):
        super().__init__(message, code=code, equation=equation)
        self.index = index


class EvalError(MathError):
    def __init__(self, message, kind, code="3003", equation=None):
        super().__init__(message, code=code, equation=equation)
        self.kind = kind


class AIServiceError(MathError):
    pass


Error_Dictionary = {

    "1": "Missing Files",
    "2": "Scientific Calculation Error",
    "3": "Calculator Error",
    "4": "UI Error",
    "5": "Configuration Error",
    "6": "Communication Error",
    "9": "Unexpected Error"

}

# Error Messages are structured in:
# 1. Digit: Main Error
# 2. Digit: Specification
# 3. and 4. Digit: Error Number


ERROR_MESSAGES = {
    "2001": "Logarithm of a non-positive number.",
    "2002": "Square root of a negative number.",
    "2003": "Power has no real result.",
    "2004": "Unable to identify given function: ",  # + function name

    "3000": "Unknown character: ",  # + character
    "3003": "Division by Zero",
    "3008": "Invalid number literal.",
    "3009": "Missing ')'. ",
    "3010": "Missing '(' after function. ",
    "3011": "Unexpected Token: ",  # + Token
    "3012": "Unexpected end of expression.",
    "3013": "Not available in basic mode: ",  # + Token
    "3014": "Expression nested too deeply.",
    "3026": "Number too big.",

    "5001": "Settings could not be saved.",

    "6000": "AI request failed.",
    "6001": "AI response could not be read.",

    "9999": "Unexpected Error: "  # + error
}
