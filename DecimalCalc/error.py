

class MathError(Exception):
    def __init__(self, message, code="9999", equation=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.equation = equation

class SyntaxError(MathError):
    pass

class CalculationError(MathError):
    pass



Error_Dictionary= {

    "2" : "Scientific Calculation Error",
    "3" : "Calculator Error",
    "4" : "UI Error",
    "5" : "Configuration Error",
    "9" : "Runtime Error"

}

def error_category(code):
    """Title for an error code, taken from its first digit."""
    return Error_Dictionary.get(str(code)[:1], Error_Dictionary["9"])


#Error Messages are structured in:
# 1. Digit: Main Error
# 2. Digit: Sub-category
# 3. and 4. Digit: Error Number



ERROR_MESSAGES = {
    "2001" : "Logarithm of a non-positive number or base.",
    "2002" : "Result out of range for the scientific function.",


    "3003" : "Division by zero",
    "3011" : "Unexpected character: ", # + character
    "3012" : "Missing token: ", # + expected token
    "3013" : "Unexpected token: ", # + token
    "3026" : "Number too big.",
    "3031" : "Unknown variable: ", # + name
    "3032" : "Wrong number of arguments: ", # + function
    "3033" : "Math domain error.",
    "3034" : "Integer required.",
    "3035" : "Only variables can be assigned.",


    "4002" : "Calculation already Running!",
    "5001" : "Not all Settings could be saved: ", # + setting


    "9999" : "Unexpected Error: " #+error
}
