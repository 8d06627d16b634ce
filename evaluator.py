import logging
import math
import operator
import os
from typing import Optional

from fastapi import FastAPI
from pydantic import BaseModel

from errors import LoxError, RecursionLimitExceeded, TypeMismatch, UnsupportedComparison
from lexer import scan
from models import (ApiOk, BinaryExpr, BinaryOp, BooleanValue, Expr, NumberValue, UnaryExpr,
                    UnaryOp, Value)
from parser import parse

logger = logging.getLogger(__name__)

app = FastAPI(title="evaluator-svc")
MAX_DEPTH = int(os.getenv("LOX_EVAL_MAX_DEPTH", "256"))

@app.get("/healthz")
def healthz():
    return {"ok": True}

class EvalReq(BaseModel):
    ast: Expr


def divide(x, y):
    # IEEE-754 rather than ZeroDivisionError
    if y == 0:
        if x == 0 or math.isnan(x): return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)
    return x / y

ARITHMETIC = {BinaryOp.PLUS: operator.add, BinaryOp.MINUS: operator.sub,
              BinaryOp.STAR: operator.mul, BinaryOp.SLASH: divide}
COMPARISON = {BinaryOp.GREATER: operator.gt, BinaryOp.GREATER_EQUAL: operator.ge,
              BinaryOp.LESS: operator.lt, BinaryOp.LESS_EQUAL: operator.le}

def equals(a: Value, b: Value) -> bool:
    """Equality across value kinds.

    Different kinds are never equal, so an identifier never equals a string
    spelled the same. Numbers compare as IEEE-754 doubles, which makes
    ``nan`` unequal to itself.
    """
    if a.kind != b.kind: return False
    if a.kind == "Nil": return True
    return a.value == b.value

def ev(n, depth, limit) -> Value:
    if depth > limit:
        raise RecursionLimitExceeded(limit, "eval")
    t=n.type
    if t=="Literal":
        return n.value
    elif t=="Grouping":
        return ev(n.expr, depth+1, limit)
    elif t=="Unary":
        v=ev(n.expr, depth+1, limit)
        if n.op is UnaryOp.BANG:
            if v.kind!="Boolean": raise TypeMismatch(n.op.value, (v,))
            return BooleanValue(value=not v.value)
        if v.kind!="Number": raise TypeMismatch(n.op.value, (v,))
        return NumberValue(value=-v.value)
    elif t=="Binary":
        if n.op is BinaryOp.BANG_EQUAL:
            rewritten=UnaryExpr(op=UnaryOp.BANG,
                                expr=BinaryExpr(left=n.left, op=BinaryOp.EQUAL_EQUAL, right=n.right))
            return ev(rewritten, depth, limit)
        a=ev(n.left, depth+1, limit); b=ev(n.right, depth+1, limit)
        if n.op is BinaryOp.EQUAL_EQUAL:
            return BooleanValue(value=equals(a, b))
        if n.op in COMPARISON:
            if a.kind!="Number" or b.kind!="Number": raise UnsupportedComparison(n.op.value, (a, b))
            return BooleanValue(value=COMPARISON[n.op](a.value, b.value))
        if a.kind!="Number" or b.kind!="Number": raise TypeMismatch(n.op.value, (a, b))
        return NumberValue(value=ARITHMETIC[n.op](a.value, b.value))
    else: raise ValueError(f"Unknown node {t}")

def evaluate(tree: Expr, max_depth: Optional[int] = None) -> Value:
    value=ev(tree, 0, MAX_DEPTH if max_depth is None else max_depth)
    logger.debug("%s evaluated to %s %s", tree.type, value.kind, value)
    return value

def interpret(source: str) -> Value:
    """Scan, parse and evaluate one expression of source text."""
    return evaluate(parse(scan(source)))

@app.post("/evaluate")
def evaluate_api(req: EvalReq):
    try:
        value=evaluate(req.ast)
    except LoxError as e:
        logger.info("evaluation failed: %s", e)
        return e.to_api()
    return ApiOk(data={"value": value.model_dump(mode="json"), "display": str(value)})
