from typing import Optional, Tuple, Union

from models import ApiErr, Token, TokenKind


class LoxError(Exception):
    """Base for every failure the pipeline reports to its caller.

    Carries what the services put in an ``ApiErr`` body: the phase that
    failed, a stable error code, a message and, when known, the source line.
    """
    phase = "lex"
    code = "E_LOX"

    def __init__(self, msg: str, line: Optional[int] = None):
        super().__init__(msg)
        self.msg = msg
        self.line = line

    def to_api(self) -> ApiErr:
        return ApiErr(phase=self.phase, line=self.line, code=self.code, msg=self.msg)


class SourceUnavailable(LoxError):
    phase = "io"
    code = "E_IO"

    def __init__(self, path: str, cause: Union[OSError, UnicodeDecodeError]):
        super().__init__(f"Could not read {path}: {cause}")
        self.path = path
        self.cause = cause


class RecursionLimitExceeded(LoxError):
    code = "E_DEPTH"

    def __init__(self, limit: int, phase: str, line: Optional[int] = None):
        super().__init__(f"Expression nested deeper than {limit} levels", line)
        self.limit = limit
        self.phase = phase


# lexing

class LexingError(LoxError):
    phase = "lex"

class InvalidToken(LexingError):
    code = "E_LEX_UNK_CHAR"

    def __init__(self, char: str, line: int):
        super().__init__(f"Invalid token '{char}'", line)
        self.char = char

class UnexpectedEndStringLiteral(LexingError):
    code = "E_LEX_UNTERMINATED_STRING"

    def __init__(self, line: int):
        super().__init__(f"String literal unexpectedly ended, opened on line {line}", line)

class InvalidDigit(LexingError):
    code = "E_LEX_INVALID_DIGIT"

    def __init__(self, line: int, cause: ValueError):
        super().__init__(f"Could not parse number on line {line}: {cause}", line)
        self.cause = cause


# parsing

class ParsingError(LoxError):
    phase = "parse"

class UnexpectedToken(ParsingError):
    code = "E_PARSE_UNEXPECTED"

    def __init__(self, token: Token):
        what = "end of input" if token.type is TokenKind.EOF else f"{token.type.value} '{token.lexeme}'"
        super().__init__(f"Unexpected {what}", token.line)
        self.token = token

class ExpectedToken(ParsingError):
    code = "E_PARSE_EXPECT"

    def __init__(self, kind: TokenKind, found: Optional[Token] = None):
        got = f", got {found.type.value}" if found is not None else ""
        super().__init__(f"Expected {kind.value}{got}", found.line if found is not None else None)
        self.kind = kind
        self.found = found


# evaluation

class EvaluationError(LoxError):
    phase = "eval"

class TypeMismatch(EvaluationError):
    code = "E_EVAL_TYPE"

    def __init__(self, operator: str, operands: Tuple):
        kinds = " and ".join(v.kind for v in operands)
        super().__init__(f"Operator '{operator}' cannot be applied to {kinds}")
        self.operator = operator
        self.operands = operands

class UnsupportedComparison(TypeMismatch):
    code = "E_EVAL_COMPARE"

    def __init__(self, operator: str, operands: Tuple):
        super().__init__(operator, operands)
        self.kind = next(v.kind for v in operands if v.kind != "Number")
