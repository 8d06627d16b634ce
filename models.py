import math
from enum import Enum
from types import MappingProxyType
from typing import Optional, Any, Literal, Union, Annotated

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


# runtime values

class NumberValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["Number"] = "Number"
    value: float

    @field_validator("value", mode="before")
    @classmethod
    def _from_text(cls, v):
        # JSON has no inf/nan, so they travel as strings
        return float(v) if isinstance(v, str) else v

    @field_serializer("value", when_used="json")
    def _to_text(self, v: float):
        return v if math.isfinite(v) else str(v)

    def __str__(self):
        v = self.value
        if not math.isfinite(v): return str(v)
        if v.is_integer(): return str(int(v))
        return repr(v)

class StringValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["String"] = "String"
    value: str

    def __str__(self): return self.value

class IdentifierValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["Identifier"] = "Identifier"
    value: str

    def __str__(self): return self.value

class BooleanValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["Boolean"] = "Boolean"
    value: bool

    def __str__(self): return "true" if self.value else "false"

class NilValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["Nil"] = "Nil"

    def __str__(self): return "nil"

Value = Annotated[
    Union[NumberValue, StringValue, IdentifierValue, BooleanValue, NilValue],
    Field(discriminator="kind"),
]


# tokens

class TokenKind(str, Enum):
    # single-character
    LEFT_PAREN = "LEFT_PAREN"
    RIGHT_PAREN = "RIGHT_PAREN"
    LEFT_BRACE = "LEFT_BRACE"
    RIGHT_BRACE = "RIGHT_BRACE"
    COMMA = "COMMA"
    DOT = "DOT"
    MINUS = "MINUS"
    PLUS = "PLUS"
    SEMICOLON = "SEMICOLON"
    SLASH = "SLASH"
    STAR = "STAR"
    # one or two characters
    BANG = "BANG"
    BANG_EQUAL = "BANG_EQUAL"
    EQUAL = "EQUAL"
    EQUAL_EQUAL = "EQUAL_EQUAL"
    GREATER = "GREATER"
    GREATER_EQUAL = "GREATER_EQUAL"
    LESS = "LESS"
    LESS_EQUAL = "LESS_EQUAL"
    # literals
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    # keywords
    AND = "AND"
    CLASS = "CLASS"
    ELSE = "ELSE"
    FALSE = "FALSE"
    FUN = "FUN"
    FOR = "FOR"
    IF = "IF"
    NIL = "NIL"
    OR = "OR"
    PRINT = "PRINT"
    RETURN = "RETURN"
    SUPER = "SUPER"
    THIS = "THIS"
    TRUE = "TRUE"
    VAR = "VAR"
    WHILE = "WHILE"

    EOF = "EOF"

KEYWORDS = MappingProxyType({
    "and": TokenKind.AND, "class": TokenKind.CLASS, "else": TokenKind.ELSE,
    "false": TokenKind.FALSE, "fun": TokenKind.FUN, "for": TokenKind.FOR,
    "if": TokenKind.IF, "nil": TokenKind.NIL, "or": TokenKind.OR,
    "print": TokenKind.PRINT, "return": TokenKind.RETURN, "super": TokenKind.SUPER,
    "this": TokenKind.THIS, "true": TokenKind.TRUE, "var": TokenKind.VAR,
    "while": TokenKind.WHILE,
})

class Token(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: TokenKind
    lexeme: str
    literal: Optional[Value] = None
    line: int = Field(ge=0)


# expression tree

class UnaryOp(str, Enum):
    BANG = "!"
    MINUS = "-"

class BinaryOp(str, Enum):
    BANG_EQUAL = "!="
    EQUAL_EQUAL = "=="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LESS = "<"
    LESS_EQUAL = "<="
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"

class LiteralExpr(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Literal"] = "Literal"
    value: Value

class UnaryExpr(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Unary"] = "Unary"
    op: UnaryOp
    expr: "Expr"

class BinaryExpr(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Binary"] = "Binary"
    left: "Expr"
    op: BinaryOp
    right: "Expr"

class GroupingExpr(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Grouping"] = "Grouping"
    expr: "Expr"

Expr = Annotated[
    Union[LiteralExpr, UnaryExpr, BinaryExpr, GroupingExpr],
    Field(discriminator="type"),
]

for _node in (UnaryExpr, BinaryExpr, GroupingExpr):
    _node.model_rebuild()


# api envelopes

class ApiErr(BaseModel):
    ok: Literal[False] = False
    phase: Literal["lex","parse","eval","io"]
    line: Optional[int] = None
    code: str
    msg: str

class ApiOk(BaseModel):
    ok: Literal[True] = True
    data: Any
