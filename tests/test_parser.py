import pytest

from errors import ExpectedToken, RecursionLimitExceeded, UnexpectedToken
from lexer import scan
from models import (BinaryExpr, BinaryOp, BooleanValue, LiteralExpr, NilValue, NumberValue,
                    StringValue, TokenKind, UnaryExpr, UnaryOp)
from parser import parse, parse_partial


def num(x):
    return LiteralExpr(value=NumberValue(value=x))

def p(source, **kw):
    return parse(scan(source), **kw)


class TestPrimary:
    def test_number(self):
        assert p("2") == num(2.0)

    def test_string(self):
        assert p('"hi"') == LiteralExpr(value=StringValue(value="hi"))

    def test_identifier_reads_as_string(self):
        assert p("foo") == LiteralExpr(value=StringValue(value="foo"))

    def test_keywords(self):
        assert p("true") == LiteralExpr(value=BooleanValue(value=True))
        assert p("false") == LiteralExpr(value=BooleanValue(value=False))
        assert p("nil") == LiteralExpr(value=NilValue())

    def test_grouping_is_folded(self):
        assert p("((3))") == num(3.0)


class TestPrecedence:
    def test_mul_binds_tighter_than_add(self):
        assert p("2 + 3 * 4") == BinaryExpr(
            left=num(2.0), op=BinaryOp.PLUS,
            right=BinaryExpr(left=num(3.0), op=BinaryOp.STAR, right=num(4.0)),
        )

    def test_mul_then_add(self):
        assert p("2 * 3 + 4") == BinaryExpr(
            left=BinaryExpr(left=num(2.0), op=BinaryOp.STAR, right=num(3.0)),
            op=BinaryOp.PLUS, right=num(4.0),
        )

    def test_parens_override(self):
        assert p("(1 + 2) * 3") == BinaryExpr(
            left=BinaryExpr(left=num(1.0), op=BinaryOp.PLUS, right=num(2.0)),
            op=BinaryOp.STAR, right=num(3.0),
        )

    def test_left_associative(self):
        assert p("1 - 2 - 3") == BinaryExpr(
            left=BinaryExpr(left=num(1.0), op=BinaryOp.MINUS, right=num(2.0)),
            op=BinaryOp.MINUS, right=num(3.0),
        )

    def test_comparison_below_equality(self):
        tree = p("1 < 2 == true")
        assert tree.op is BinaryOp.EQUAL_EQUAL
        assert tree.left.op is BinaryOp.LESS

    def test_unary(self):
        assert p("-2 * 3") == BinaryExpr(
            left=UnaryExpr(op=UnaryOp.MINUS, expr=num(2.0)), op=BinaryOp.STAR, right=num(3.0),
        )
        assert p("!!true") == UnaryExpr(
            op=UnaryOp.BANG, expr=UnaryExpr(op=UnaryOp.BANG, expr=LiteralExpr(value=BooleanValue(value=True))),
        )

    def test_bang_equal_kept_as_binary(self):
        assert p("1 != 2").op is BinaryOp.BANG_EQUAL


class TestErrors:
    def test_no_token(self):
        with pytest.raises(UnexpectedToken) as exc:
            p("")
        assert exc.value.token.type is TokenKind.EOF

    def test_missing_operand(self):
        with pytest.raises(UnexpectedToken) as exc:
            p("1 +")
        assert exc.value.token.type is TokenKind.EOF

    def test_unclosed_paren(self):
        with pytest.raises(ExpectedToken) as exc:
            p("(1 + 2")
        assert exc.value.kind is TokenKind.RIGHT_PAREN

    def test_wrong_closer(self):
        with pytest.raises(ExpectedToken) as exc:
            p("(1 + 2;")
        assert exc.value.found.type is TokenKind.SEMICOLON

    def test_unexpected_leading_token(self):
        with pytest.raises(UnexpectedToken) as exc:
            p("* 2")
        assert exc.value.token.type is TokenKind.STAR

    def test_extra_token(self):
        with pytest.raises(UnexpectedToken) as exc:
            p("2 3")
        assert exc.value.token.lexeme == "3"

    def test_partial_returns_rest(self):
        tree, rest = parse_partial(scan("1 + 2; var"))
        assert tree == BinaryExpr(left=num(1.0), op=BinaryOp.PLUS, right=num(2.0))
        assert [t.type for t in rest] == [TokenKind.SEMICOLON, TokenKind.VAR]

    def test_nesting_limit(self):
        assert p("(" * 10 + "1" + ")" * 10, max_depth=10) == num(1.0)
        with pytest.raises(RecursionLimitExceeded):
            p("(" * 11 + "1" + ")" * 11, max_depth=10)
        with pytest.raises(RecursionLimitExceeded) as exc:
            p("-" * 200 + "1")
        assert exc.value.phase == "parse"


class TestTreeHeight:
    def test_flat_sum_at_limit(self):
        tree = p("+".join(["1"] * 65))
        height = 0
        while tree.type == "Binary":
            tree, height = tree.left, height + 1
        assert height == 64

    def test_long_flat_sum_rejected(self):
        with pytest.raises(RecursionLimitExceeded) as exc:
            p("\n" + "+".join(["1"] * 300))
        assert exc.value.phase == "parse"
        assert exc.value.line == 1

    def test_height_counts_unary_over_binary(self):
        assert p("-(1+1)", max_depth=2) == UnaryExpr(
            op=UnaryOp.MINUS, expr=BinaryExpr(left=num(1.0), op=BinaryOp.PLUS, right=num(1.0)),
        )
        with pytest.raises(RecursionLimitExceeded):
            p("-(1+1+1)", max_depth=2)
