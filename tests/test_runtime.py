import dataclasses
import logging

import pytest
from hypothesis import given
from hypothesis.strategies import integers, lists, permutations

from rtok.rules import node, reduction, rule, token, wrap_through
from rtok.runtime import (
    EndOfInput,
    NoApplicableAction,
    Parser,
    PredicateReducerMismatch,
    Reduced,
    Shifted,
    UnknownRuleIndex,
)


@dataclasses.dataclass(frozen=True)
class Int:
    value: int


@dataclasses.dataclass(frozen=True)
class Float:
    value: float


@dataclasses.dataclass(frozen=True)
class Op:
    op: str


@dataclasses.dataclass(frozen=True)
class Num:
    value: int | float


@dataclasses.dataclass(frozen=True)
class Add:
    left: "Num | Add"
    right: "Num | Add"


def arithmetic_parser(values) -> Parser:
    parser = Parser(values)
    parser.add_rules(
        wrap_through(Int, lambda t: Num(t.value)),
        wrap_through(Float, lambda t: Num(t.value)),
        rule(
            lambda op, right, left: Add(left, right),
            token(Op("+")),
            node((Num, Add)),
            node((Num, Add)),
            name="add",
        ),
    )
    return parser


def test_add():
    parser = arithmetic_parser([Int(1), Int(2), Op("+")])
    output = parser.run()

    assert output == [Add(Num(1), Num(2))]
    assert parser.stop is not None
    assert parser.stop.discarded == []


def test_step_by_step():
    parser = arithmetic_parser([Int(1), Int(2), Op("+")])

    assert parser.step()  # shift 1
    assert parser.stack == (Shifted(Int(1)),)
    assert parser.step()  # wrap 1
    assert parser.stack == (Reduced(Num(1)),)
    assert parser.step()  # shift 2
    assert parser.step()  # wrap 2
    assert parser.step()  # shift +
    assert parser.stack == (Reduced(Num(1)), Reduced(Num(2)), Shifted(Op("+")))
    assert parser.output == []
    assert parser.step()  # add
    assert parser.stack == (Reduced(Add(Num(1), Num(2))),)
    assert not parser.step()  # stop
    assert parser.stack == ()
    assert parser.output == [Add(Num(1), Num(2))]


def test_nested_add():
    parser = arithmetic_parser([Int(1), Float(2.5), Op("+"), Int(3), Op("+")])
    assert parser.run() == [Add(Add(Num(1), Num(2.5)), Num(3))]


def test_output_keeps_stack_order_and_drops_tokens():
    parser = arithmetic_parser([Int(1), Op("-"), Int(2), Op("*")])
    output = parser.run()

    assert output == [Num(1), Num(2)]
    assert parser.stop is not None
    assert parser.stop.discarded == [Op("-"), Op("*")]


def test_no_rules_discards_everything():
    parser: Parser[int, int] = Parser([1, 2, 3])
    assert parser.run() == []
    assert parser.stop is not None
    assert parser.stop.discarded == [1, 2, 3]


def test_stop_is_stable():
    parser = arithmetic_parser([Int(1), Int(2), Op("+")])
    output = parser.run()
    expected = list(output)

    for _ in range(5):
        assert not parser.step()

    assert parser.output is output
    assert parser.output == expected


def test_push_input_combines_with_stack():
    parser = arithmetic_parser([Int(1), Int(2)])
    while parser.pending > 0:
        parser.step()

    parser.push_input([Op("+")])
    assert parser.run() == [Add(Num(1), Num(2))]


def test_push_input_after_stop():
    parser = arithmetic_parser([Int(1)])
    assert parser.run() == [Num(1)]

    parser.push_input([Int(2), Int(3), Op("+")])
    assert parser.pending == 3
    assert parser.run() == [Add(Num(2), Num(3))]


def test_push_input_appends():
    parser: Parser[int, int] = Parser([1])
    parser.push_input([2, 3])
    parser.run()
    assert parser.stop is not None
    assert parser.stop.discarded == [1, 2, 3]


def test_shift_without_input():
    parser: Parser[int, int] = Parser()
    with pytest.raises(EndOfInput):
        parser.shift()


def test_unknown_rule_index():
    parser = arithmetic_parser([])
    with pytest.raises(UnknownRuleIndex) as info:
        parser.reduce(3)
    assert info.value.index == 3

    with pytest.raises(UnknownRuleIndex):
        parser.reduce(-1)


def test_reduction_needs_more_stack():
    parser: Parser[int, int] = Parser([1])
    parser.add_rule(
        lambda stack: len(stack) > 0,
        reduction(lambda a, b: a + b, token(), token()),
        name="greedy",
    )

    assert parser.run() == []
    assert parser.stop is not None
    assert parser.stop.discarded == [1]


def test_reduction_needs_more_stack_strict():
    parser: Parser[int, int] = Parser([1])
    parser.add_rule(
        lambda stack: len(stack) > 0,
        reduction(lambda a, b: a + b, token(), token()),
    )

    with pytest.raises(EndOfInput):
        parser.run(strict=True)

    assert parser.stack == (Shifted(1),)


def test_predicate_reducer_mismatch():
    parser: Parser[int, int] = Parser([1])
    parser.add_rule(
        lambda stack: len(stack) > 0,
        reduction(lambda n: n, node(), name="broken"),
        name="broken",
    )

    with pytest.raises(PredicateReducerMismatch) as info:
        parser.run()

    assert info.value.rule == "broken"
    assert info.value.position == 0
    assert info.value.entry == Shifted(1)
    # Nothing was popped.
    assert parser.stack == (Shifted(1),)


def test_reducer_must_return_parse_value():
    parser: Parser[int, int] = Parser([1])
    parser.add_rule(lambda stack: len(stack) > 0 and isinstance(stack[-1], Shifted), lambda stack: stack.pop().value)

    with pytest.raises(TypeError):
        parser.run()


def test_hand_written_rule():
    def is_pair(stack):
        match stack[-2:]:
            case [Shifted(int()), Shifted(int())]:
                return True
        return False

    def reduce_pair(stack):
        match stack[-2:]:
            case [Shifted(a), Shifted(b)]:
                del stack[-2:]
                return Reduced((a, b))
        raise PredicateReducerMismatch("pair", 0, stack[-1])

    parser: Parser[int, tuple] = Parser([1, 2, 3, 4, 5])
    parser.add_rule(is_pair, reduce_pair, name="pair")

    assert parser.run() == [(1, 2), (3, 4)]
    assert parser.stop is not None
    assert parser.stop.discarded == [5]


def test_no_applicable_action(monkeypatch):
    parser: Parser[int, int] = Parser([1])
    monkeypatch.setattr(parser, "determine_action", lambda: object())

    with pytest.raises(NoApplicableAction):
        parser.step()


def test_format_stack():
    parser: Parser[int, int] = Parser([1, 2])
    parser.add_rule(lambda stack: len(stack) == 1 and stack[-1] == Shifted(1), lambda stack: Reduced(stack.pop().value * 10))

    parser.step()
    parser.step()
    parser.step()
    assert parser.format_stack() == "stack: [10,2]"


def test_action_logging(caplog):
    parser = arithmetic_parser([Int(1)])
    with caplog.at_level(logging.INFO, logger="rtok.action"):
        parser.run()

    messages = [record.getMessage() for record in caplog.records if record.name == "rtok.action"]
    assert len(messages) == 3
    assert messages[0].rstrip().endswith("SHIFT")
    assert "REDUCE wrap Int" in messages[1]
    assert messages[2].rstrip().endswith("STOP")


@given(permutations(range(5)))
def test_first_registered_rule_wins(order):
    """Every rule matches; whichever was added first does the reducing."""
    parser: Parser[int, int] = Parser([0])
    for rule_id in order:
        parser.add_rules(wrap_through(int, lambda _, rule_id=rule_id: rule_id))

    assert parser.run() == [order[0]]


@given(lists(integers(min_value=1, max_value=60)), permutations([2, 3, 5, 7]))
def test_rule_priority_for_all_stack_states(values, divisors):
    """Each value is reduced by the first registered rule that accepts it, no
    matter how the rules are ordered."""
    parser: Parser[int, tuple[int, int]] = Parser(values)
    for d in divisors:
        parser.add_rules(
            rule(
                lambda v, d=d: (d, v),
                token(lambda v, d=d: v % d == 0),
            )
        )

    output = parser.run()

    expected = []
    discarded = []
    for v in values:
        for d in divisors:
            if v % d == 0:
                expected.append((d, v))
                break
        else:
            discarded.append(v)

    assert output == expected
    assert parser.stop is not None
    assert parser.stop.discarded == discarded
