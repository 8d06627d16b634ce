import logging
import re
from typing import List

from fastapi import FastAPI
from pydantic import BaseModel

from errors import LexingError, InvalidToken, UnexpectedEndStringLiteral, InvalidDigit
from models import (Token, TokenKind, KEYWORDS, ApiOk, NumberValue, StringValue,
                    IdentifierValue)

logger = logging.getLogger(__name__)

app = FastAPI(title="lexer-svc")

@app.get("/healthz")
def healthz():
    return {"ok":True}

# order matters: the first alternative that matches wins
TOKENS = [
    ("COM", r"//[^\n]*"),
    ("NL", r"\n"),
    ("WS", r"[ \t\r]+"),
    ("STR", r'"[^"]*"'),
    ("USTR", r'"[^"]*\Z'),
    ("NUM", r"[0-9][0-9A-Za-z.]*"),
    ("IDENT", r"[A-Za-z][A-Za-z0-9]*"),
    ("OP", r"!=|==|<=|>=|[!=<>]"),
    ("SYM", r"[(){},.\-+;*/]"),
]
MASTER = re.compile("|".join(f"(?P<T{i}>{p})" for i,(_,p) in enumerate(TOKENS)))
NUMBER = re.compile(r"[0-9]+(\.[0-9]*)?")

OPS = {"!=": TokenKind.BANG_EQUAL, "==": TokenKind.EQUAL_EQUAL, "<=": TokenKind.LESS_EQUAL,
       ">=": TokenKind.GREATER_EQUAL, "!": TokenKind.BANG, "=": TokenKind.EQUAL,
       "<": TokenKind.LESS, ">": TokenKind.GREATER}
SYMS = {"(": TokenKind.LEFT_PAREN, ")": TokenKind.RIGHT_PAREN, "{": TokenKind.LEFT_BRACE,
        "}": TokenKind.RIGHT_BRACE, ",": TokenKind.COMMA, ".": TokenKind.DOT,
        "-": TokenKind.MINUS, "+": TokenKind.PLUS, ";": TokenKind.SEMICOLON,
        "*": TokenKind.STAR, "/": TokenKind.SLASH}


def number(text, line):
    try:
        if not NUMBER.fullmatch(text):
            raise ValueError(f"invalid float literal {text!r}")
        return NumberValue(value=float(text))
    except ValueError as e:
        raise InvalidDigit(line, e) from e

def classify(name, text, line):
    if name == "OP": return Token(type=OPS[text], lexeme=text, line=line)
    if name == "SYM": return Token(type=SYMS[text], lexeme=text, line=line)
    if name == "STR":
        return Token(type=TokenKind.STRING, lexeme=text, literal=StringValue(value=text[1:-1]), line=line)
    if name == "NUM":
        return Token(type=TokenKind.NUMBER, lexeme=text, literal=number(text, line), line=line)
    kw = KEYWORDS.get(text)
    if kw is not None: return Token(type=kw, lexeme=text, line=line)
    return Token(type=TokenKind.IDENTIFIER, lexeme=text, literal=IdentifierValue(value=text), line=line)

def scan(source: str) -> List[Token]:
    """Turn source text into tokens, line numbers counted from 0.

    Comments and whitespace produce nothing and no end marker is appended.
    Raises a LexingError subclass on the first character that cannot start
    a token, an unterminated string, or a malformed number.
    """
    s=source; line=0; i=0; out: List[Token]=[]
    while i < len(s):
        m=MASTER.match(s,i)
        if not m:
            raise InvalidToken(s[i], line)
        name,_=TOKENS[int(m.lastgroup[1:])]
        text=m.group(); i=m.end()
        if name == "USTR":
            raise UnexpectedEndStringLiteral(line)
        if name not in ("WS","COM","NL"):
            out.append(classify(name, text, line))
        line += text.count("\n")
    logger.debug("scanned %d tokens over %d lines", len(out), line+1)
    return out


class LexReq(BaseModel):
    source: str

@app.post("/lex")
def lex(req: LexReq):
    try:
        tokens = scan(req.source)
    except LexingError as e:
        logger.info("rejected source: %s", e)
        return e.to_api()
    return ApiOk(data=[t.model_dump(mode="json") for t in tokens])
