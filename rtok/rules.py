"""Helpers for writing parser rules.

A rule needs a predicate and a reducer that agree about what the top of the
stack looks like. Writing them by hand means writing that shape down twice,
so instead describe the shape once, as a list of patterns read from the top
of the stack downward, and let `rule` build both:

    add = rule(
        lambda op, right, left: Add(left, right),
        token("+"),
        node(Num),
        node(Num),
    )

`token(...)` matches a `Shifted` entry and `node(...)` a `Reduced` one. The
argument says what the value must be:

- nothing: anything at all,
- a class (or a tuple of classes): an instance of it,
- any other callable: something the callable returns True for,
- anything else: something equal to it.

Patterns can be combined with `|` to accept any of several alternatives in
one position, e.g. `node(Num) | token(int)`.

The builder function gets the matched *values* (not the stack entries), in
the same order as the patterns.
"""

import abc
import typing

from .runtime import (
    EndOfInput,
    ParseStack,
    ParseValue,
    Predicate,
    PredicateReducerMismatch,
    Reduced,
    Reducer,
    Rule,
    Shifted,
)


class Pattern(abc.ABC):
    """Matches a single stack entry."""

    @abc.abstractmethod
    def matches(self, entry: ParseValue) -> bool:
        raise NotImplementedError()

    def __or__(self, other: "Pattern") -> "Pattern":
        return AlternativePattern(self, other)


def _is_type_tuple(match: typing.Any) -> bool:
    return isinstance(match, tuple) and len(match) > 0 and all(isinstance(m, type) for m in match)


def _describe(match: typing.Any) -> str:
    if match is None:
        return ""
    if isinstance(match, type):
        return match.__name__
    if _is_type_tuple(match):
        return " | ".join(m.__name__ for m in match)
    if callable(match):
        return getattr(match, "__name__", repr(match))
    return repr(match)


def _value_test(match: typing.Any) -> typing.Callable[[typing.Any], bool]:
    if match is None:
        return lambda value: True
    if isinstance(match, type) or _is_type_tuple(match):
        return lambda value: isinstance(value, match)
    if callable(match):
        return lambda value: bool(match(value))
    return lambda value: value == match


class EntryPattern(Pattern):
    kind: type | typing.Tuple[type, ...]
    label: str

    def __init__(self, kind: type | typing.Tuple[type, ...], label: str, match: typing.Any):
        self.kind = kind
        self.label = label
        self.description = _describe(match)
        self._test = _value_test(match)

    def matches(self, entry: ParseValue) -> bool:
        return isinstance(entry, self.kind) and self._test(entry.value)

    def __repr__(self) -> str:
        return f"{self.label}({self.description})"


class AlternativePattern(Pattern):
    def __init__(self, left: Pattern, right: Pattern):
        self.left = left
        self.right = right

    def matches(self, entry: ParseValue) -> bool:
        return self.left.matches(entry) or self.right.matches(entry)

    def __repr__(self) -> str:
        return f"{self.left!r} | {self.right!r}"


def token(match: typing.Any = None) -> Pattern:
    """Match an input value that has not been reduced."""
    return EntryPattern(Shifted, "token", match)


def node(match: typing.Any = None) -> Pattern:
    """Match a value produced by a reduction."""
    return EntryPattern(Reduced, "node", match)


def any_(match: typing.Any = None) -> Pattern:
    """Match a value whether or not it has been reduced."""
    return EntryPattern((Shifted, Reduced), "any", match)


def expect(*patterns: Pattern) -> Predicate:
    """A predicate that holds when the top of the stack matches the patterns,
    the first pattern being the top."""

    def predicate(stack: ParseStack) -> bool:
        if len(stack) < len(patterns):
            return False
        return all(pattern.matches(entry) for pattern, entry in zip(patterns, reversed(stack)))

    return predicate


def reduction(
    build: typing.Callable[..., typing.Any],
    *patterns: Pattern,
    name: str | None = None,
) -> Reducer:
    """A reducer that pops one entry per pattern and pushes what `build`
    makes of them.

    Every entry is checked again before anything is popped. If one does not
    match, `PredicateReducerMismatch` is raised and the stack is left alone;
    if the stack is too short, it's `EndOfInput`.
    """
    count = len(patterns)

    def reducer(stack: ParseStack) -> ParseValue:
        if len(stack) < count:
            raise EndOfInput()

        entries = stack[len(stack) - count :]
        entries.reverse()
        for position, (pattern, entry) in enumerate(zip(patterns, entries)):
            if not pattern.matches(entry):
                raise PredicateReducerMismatch(name, position, entry)

        del stack[len(stack) - count :]
        return Reduced(build(*(entry.value for entry in entries)))

    return reducer


def rule(
    build: typing.Callable[..., typing.Any],
    *patterns: Pattern,
    name: str | None = None,
) -> Rule:
    """Make a rule out of a builder and the stack shape it reduces."""
    if len(patterns) == 0:
        # A predicate over nothing always holds, so the parser would never
        # stop reducing.
        raise ValueError("A rule needs at least one pattern")

    if name is None:
        name = " ".join(repr(p) for p in patterns)

    return Rule(
        predicate=expect(*patterns),
        reducer=reduction(build, *patterns, name=name),
        name=name,
    )


def wrap_through(
    match: typing.Any,
    convert: typing.Callable[[typing.Any], typing.Any] | None = None,
    *,
    name: str | None = None,
) -> Rule:
    """A rule that turns a single unreduced token straight into a node.

    This is for leaves like numbers and identifiers, which don't need any
    context to become part of the tree. Without `convert` the value is
    wrapped as-is.
    """
    if convert is None:
        convert = _identity
    if name is None:
        name = f"wrap {_describe(match) or 'token'}"
    return rule(convert, token(match), name=name)


def _identity(value):
    return value
