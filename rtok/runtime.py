"""A shift-reduce engine driven by rules registered at runtime.

There are no tables here. The parser holds a queue of input values, a stack,
and an ordered list of `Rule`s. Each rule is a predicate over the stack and a
reducer that replaces some suffix of the stack with a single `Reduced` value.
Before every step the parser asks each rule, in the order they were added,
whether its predicate holds:

- If one does, the *first* one that does gets to reduce.
- Otherwise, if there is input left, the next input value is shifted onto the
  stack as a `Shifted` value.
- Otherwise we stop: the stack is drained, the `Reduced` values on it become
  the output (in stack order), and any `Shifted` values that never got reduced
  are dropped. The dropped values are kept in `stop.discarded` so you can see
  what got lost.

That is a greedy policy with no lookahead and no conflict detection. The
rules are trusted to be written so that it does the right thing.

The values on the stack are only ever `Shifted` or `Reduced`, so rules can be
written with `match` statements:

    def add_reducer(stack):
        match stack[-3:]:
            case [Reduced(left), Reduced(right), Shifted("+")]:
                del stack[-3:]
                return Reduced(("+", left, right))
        raise PredicateReducerMismatch("add", 0, stack[-1])

(`rtok.rules` has helpers that build the predicate and the reducer together
from one description of the stack, which is less typing and harder to get
wrong.)
"""

import collections
import logging
import typing
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Shifted[T]:
    """An input value that was shifted onto the stack and not reduced."""

    value: T

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class Reduced[N]:
    """A value produced by a reduction."""

    value: N

    def __str__(self):
        return str(self.value)


ParseValue = Shifted | Reduced

ParseStack = list[ParseValue]

Predicate = typing.Callable[[ParseStack], bool]
Reducer = typing.Callable[[ParseStack], ParseValue]


class ParseError(Exception):
    pass


class EndOfInput(ParseError):
    """A shift with nothing left to shift, or a reduction that wanted more of
    the stack than there is."""

    def __str__(self):
        return "Unexpected end of input"


class UnknownRuleIndex(ParseError):
    index: int

    def __init__(self, index: int):
        super().__init__(index)
        self.index = index

    def __str__(self):
        return f"No rule with index {self.index}"


class PredicateReducerMismatch(ParseError):
    """A reducer found something on the stack that its predicate promised would
    not be there. This is always a bug in the rule."""

    rule: str | None
    position: int
    entry: ParseValue

    def __init__(self, rule: str | None, position: int, entry: ParseValue):
        super().__init__(rule, position, entry)
        self.rule = rule
        self.position = position
        self.entry = entry

    def __str__(self):
        return (
            f"Rule {self.rule or '<unnamed>'} does not match {self.entry!r} "
            f"at stack position {self.position} (counting from the top)"
        )


class NoApplicableAction(ParseError):
    def __str__(self):
        return "No action could be determined"


@dataclass
class Rule:
    predicate: Predicate
    reducer: Reducer
    name: str | None = None

    def __str__(self):
        return self.name or "<unnamed>"


@dataclass
class Reduce:
    index: int


@dataclass
class Shift:
    pass


@dataclass
class Halt:
    pass


ParseAction = Reduce | Shift | Halt


@dataclass
class Stop[T, N]:
    """What the last drain of the stack produced."""

    output: list[N] = field(default_factory=list)
    discarded: list[T] = field(default_factory=list)


action_log = logging.getLogger("rtok.action")


class Parser[T, N]:
    """The shift-reduce engine.

    Input is given in the order it should be shifted, first value first. (It
    is not a reversed stack to pop from the end of; the parser keeps its own
    queue.)
    """

    rules: list[Rule]
    stop: Stop[T, N] | None

    def __init__(self, input: typing.Iterable[T] = ()):
        self._input: collections.deque[T] = collections.deque(input)
        self._stack: ParseStack = []
        self.rules = []
        self.stop = None

    @property
    def output(self) -> list[N]:
        """The reduced values from the last time the parser stopped."""
        if self.stop is None:
            return []
        return self.stop.output

    @property
    def stack(self) -> typing.Tuple[ParseValue, ...]:
        return tuple(self._stack)

    @property
    def pending(self) -> int:
        return len(self._input)

    def add_rule(self, predicate: Predicate, reducer: Reducer, name: str | None = None) -> Rule:
        """Add a rule. Rules are tried in the order they are added."""
        rule = Rule(predicate, reducer, name)
        self.rules.append(rule)
        return rule

    def add_rules(self, *rules: Rule):
        self.rules.extend(rules)

    def push_input(self, values: typing.Iterable[T]):
        """Queue more input behind whatever is still pending.

        The stack is left alone, so anything that was not reduced yet gets to
        combine with the new input.
        """
        self._input.extend(values)
        self.stop = None

    def determine_action(self) -> ParseAction:
        for index, rule in enumerate(self.rules):
            if rule.predicate(self._stack):
                return Reduce(index)

        if len(self._input) > 0:
            return Shift()

        return Halt()

    def shift(self):
        if len(self._input) == 0:
            raise EndOfInput()
        self._stack.append(Shifted(self._input.popleft()))

    def reduce(self, index: int):
        if index < 0 or index >= len(self.rules):
            raise UnknownRuleIndex(index)

        rule = self.rules[index]
        value = rule.reducer(self._stack)
        if not isinstance(value, (Shifted, Reduced)):
            raise TypeError(f"Rule {rule} produced {value!r}, which is not a Shifted or Reduced value")
        self._stack.append(value)

    def halt(self) -> Stop[T, N]:
        """Drain the stack into the output."""
        stop: Stop[T, N] = Stop()
        for entry in self._stack:
            match entry:
                case Reduced(value=value):
                    stop.output.append(value)

                case Shifted(value=value):
                    stop.discarded.append(value)

                case _:
                    typing.assert_never(entry)

        self._stack.clear()
        self.stop = stop
        return stop

    def step(self) -> bool:
        """Take one action. Returns False once the parser has stopped.

        Stepping a stopped parser does nothing until more input is pushed.
        """
        if self.stop is not None:
            return False

        action = self.determine_action()

        al = action_log
        if al.isEnabledFor(logging.INFO):
            al.info(
                "{stack: <30} {input: <15} {action: <5}".format(
                    stack=repr([str(s) for s in self._stack[-5:]]),
                    input=str(self._input[0]) if len(self._input) > 0 else "$",
                    action=self._describe(action),
                )
            )

        match action:
            case Reduce(index=index):
                self.reduce(index)
                return True

            case Shift():
                self.shift()
                return True

            case Halt():
                self.halt()
                return False

            case _:
                raise NoApplicableAction()

    def run(self, *, strict: bool = False) -> list[N]:
        """Step until the parser stops, and return the output.

        A reduction that runs out of stack (`EndOfInput`) ends the run the same
        way stopping does, unless `strict` is set, in which case it is raised.
        Any other `ParseError` is raised.
        """
        try:
            while self.step():
                pass
        except EndOfInput:
            if strict:
                raise
            action_log.info("Ran out of input during a reduction, stopping")
            self.halt()

        return self.output

    def format_stack(self) -> str:
        return "stack: [" + ",".join(str(entry) for entry in self._stack) + "]"

    def _describe(self, action: ParseAction) -> str:
        match action:
            case Reduce(index=index):
                return f"REDUCE {self.rules[index]}"
            case Shift():
                return "SHIFT"
            case Halt():
                return "STOP"
            case _:
                return repr(action)
