import logging
import os
from contextlib import contextmanager
from typing import List, Optional, Sequence, Tuple

import requests
from fastapi import FastAPI
from pydantic import BaseModel

from errors import LoxError, ExpectedToken, RecursionLimitExceeded, UnexpectedToken
from models import (ApiOk, ApiErr, BinaryExpr, BinaryOp, BooleanValue, Expr, LiteralExpr,
                    NilValue, StringValue, Token, TokenKind, UnaryExpr, UnaryOp)

logger = logging.getLogger(__name__)

app = FastAPI(title="parser-svc")
EVALUATOR_URL = os.getenv("EVALUATOR_URL", "http://evaluator-svc:8000")
MAX_DEPTH = int(os.getenv("LOX_PARSE_MAX_DEPTH", "64"))

@app.get("/healthz")
def healthz():
    return {"ok": True}

class ParseReq(BaseModel):
    tokens: List[Token]

# helpers
class Stream:
    def __init__(self, toks, max_depth):
        self.t=toks; self.i=0; self.depth=0; self.max_depth=max_depth
        self.heights={}
    def peek(self):
        if self.i<len(self.t): return self.t[self.i]
        return Token(type=TokenKind.EOF, lexeme="", line=self.t[-1].line if self.t else 0)
    def pop(self): x=self.peek(); self.i+= (self.i<len(self.t)); return x
    def match(self, table):
        if self.peek().type in table: return table[self.pop().type]
        return None
    def expect(self, kind):
        tok=self.peek()
        if tok.type!=kind:
            raise ExpectedToken(kind, tok)
        return self.pop()
    @contextmanager
    def nested(self):
        if self.depth >= self.max_depth:
            raise RecursionLimitExceeded(self.max_depth, "parse", self.peek().line)
        self.depth+=1
        try:
            yield
        finally:
            self.depth-=1
    def built(self, node, *children):
        # tree height, literals count as 0
        h=1+max(self.heights.get(id(c),0) for c in children)
        if h > self.max_depth:
            raise RecursionLimitExceeded(self.max_depth, "parse", self.peek().line)
        self.heights[id(node)]=h
        return node

# precedence ladder, lowest first
EQUALITY = {TokenKind.EQUAL_EQUAL: BinaryOp.EQUAL_EQUAL, TokenKind.BANG_EQUAL: BinaryOp.BANG_EQUAL}
COMPARISON = {TokenKind.GREATER: BinaryOp.GREATER, TokenKind.GREATER_EQUAL: BinaryOp.GREATER_EQUAL,
              TokenKind.LESS: BinaryOp.LESS, TokenKind.LESS_EQUAL: BinaryOp.LESS_EQUAL}
ADDITION = {TokenKind.PLUS: BinaryOp.PLUS, TokenKind.MINUS: BinaryOp.MINUS}
MULTIPLICATION = {TokenKind.STAR: BinaryOp.STAR, TokenKind.SLASH: BinaryOp.SLASH}
UNARY = {TokenKind.BANG: UnaryOp.BANG, TokenKind.MINUS: UnaryOp.MINUS}

KEYWORD_LITERALS = {TokenKind.TRUE: BooleanValue(value=True),
                    TokenKind.FALSE: BooleanValue(value=False),
                    TokenKind.NIL: NilValue()}

def parse_partial(tokens: Sequence[Token], max_depth: Optional[int] = None) -> Tuple[Expr, List[Token]]:
    """Parse one expression from the front of ``tokens``.

    Returns the tree and whatever tokens were left unconsumed.
    """
    s=Stream(list(tokens), MAX_DEPTH if max_depth is None else max_depth)
    def primary():
        tok=s.peek(); t=tok.type
        if t in (TokenKind.NUMBER, TokenKind.STRING) and tok.literal is not None:
            s.pop(); return LiteralExpr(value=tok.literal)
        if t==TokenKind.IDENTIFIER:
            # no environment yet: a bare name reads as a string of itself
            s.pop(); return LiteralExpr(value=StringValue(value=tok.lexeme))
        if t in KEYWORD_LITERALS:
            s.pop(); return LiteralExpr(value=KEYWORD_LITERALS[t])
        if t==TokenKind.LEFT_PAREN:
            s.pop()
            with s.nested():
                e=expression()
            s.expect(TokenKind.RIGHT_PAREN)
            return e
        raise UnexpectedToken(tok)
    def unary():
        op=s.match(UNARY)
        if op is not None:
            with s.nested():
                node=unary()
            return s.built(UnaryExpr(op=op, expr=node), node)
        return primary()
    def binary(table, operand):
        left=operand()
        while (op := s.match(table)) is not None:
            right=operand()
            left=s.built(BinaryExpr(left=left, op=op, right=right), left, right)
        return left
    def multiplication(): return binary(MULTIPLICATION, unary)
    def addition(): return binary(ADDITION, multiplication)
    def comparison(): return binary(COMPARISON, addition)
    def equality(): return binary(EQUALITY, comparison)
    def expression(): return equality()

    tree=expression()
    return tree, s.t[s.i:]

def parse(tokens: Sequence[Token], max_depth: Optional[int] = None) -> Expr:
    tree, rest = parse_partial(tokens, max_depth)
    if rest:
        raise UnexpectedToken(rest[0])
    logger.debug("parsed %s expression from %d tokens", tree.type, len(tokens))
    return tree

@app.post("/parse")
def parse_api(req: ParseReq):
    try:
        tree = parse(req.tokens)
    except LoxError as e:
        logger.info("rejected tokens: %s", e)
        return e.to_api()
    return ApiOk(data=tree.model_dump(mode="json"))

@app.post("/interpret")
def interpret_api(req: ParseReq):
    try:
        tree = parse(req.tokens)

        # forward tree to evaluator
        r = requests.post(f"{EVALUATOR_URL}/evaluate", json={"ast": tree.model_dump(mode="json")}, timeout=5)
        r.raise_for_status()
        # evaluator answers with ApiOk/ApiErr-shape JSON already
        return r.json()

    except LoxError as e:
        logger.info("rejected tokens: %s", e)
        return e.to_api()
    except requests.RequestException as e:
        logger.warning("evaluator unreachable: %s", e)
        return ApiErr(phase="eval", code="E_FORWARD_EVALUATOR",
                    msg=f"Failed to contact evaluator: {e}")
