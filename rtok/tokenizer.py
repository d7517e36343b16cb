"""Regex driven tokenization.

A `Tokenizer` is an ordered list of `Matcher`s plus a `Priority` that decides
which matcher wins when more than one of them fires at the same position:

    tokenizer = Tokenizer.make(
        Priority.LONGEST,
        [
            (r"^(\\s+)", WHITESPACE),
            (r"^(\\d+)", INT),
            (r"^(\\d+\\.\\d+)", FLOAT),
        ],
    )
    tokens = tokenizer.tokenize("1 3.14")

Every matcher is run against the *remaining* input, so `^` anchors a pattern
at the cursor. Patterns that are not anchored are allowed to skip ahead; the
tokenizer does not care, it just uses the reported span. Anchoring is up to
whoever writes the patterns.

When no matcher fires the scan simply stops and you get the tokens found so
far. That is not an error! Use `Tokenizer.scan` if you need to know how much
of the input was left over.
"""

import bisect
import dataclasses
import enum
import logging
import re
import typing

TokenTypeId = typing.Hashable

scan_log = logging.getLogger("rtok.scan")


class Priority(enum.Enum):
    """How to pick between matchers that fire at the same position."""

    FIRST = "first"
    LONGEST = "longest"
    SHORTEST = "shortest"


class TokenizerError(ValueError):
    pattern: str
    to_type: TokenTypeId

    def __init__(self, pattern: str, to_type: TokenTypeId, message: str):
        super().__init__(pattern, to_type, message)
        self.pattern = pattern
        self.to_type = to_type
        self.message = message

    def __str__(self):
        return f"Invalid pattern {self.pattern!r} for token type {self.to_type!r}: {self.message}"


@dataclasses.dataclass(frozen=True)
class Matcher:
    pattern: re.Pattern[str]
    to_type: TokenTypeId

    @classmethod
    def compile(cls, pattern: str, to_type: TokenTypeId) -> "Matcher":
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise TokenizerError(pattern, to_type, str(e)) from e
        return cls(compiled, to_type)

    @property
    def width(self) -> int:
        """The number of parts every token from this matcher carries."""
        return self.pattern.groups + 1


Span = typing.Tuple[int, int]


@dataclasses.dataclass(frozen=True)
class Token:
    """A lexical unit: a type and the spans of its match in the source.

    `spans[0]` is the whole match and the rest are the capture groups, `None`
    where a group did not take part in the match. Tokens never copy the text;
    `parts` slices it out of `source` on demand.
    """

    typ: TokenTypeId
    source: str = dataclasses.field(repr=False)
    spans: typing.Tuple[Span | None, ...]

    @property
    def parts(self) -> typing.Tuple[str | None, ...]:
        return tuple(None if span is None else self.source[span[0] : span[1]] for span in self.spans)

    def part(self, index: int) -> str | None:
        span = self.spans[index]
        if span is None:
            return None
        return self.source[span[0] : span[1]]

    @property
    def text(self) -> str:
        start, end = self.spans[0]  # type: ignore[misc]
        return self.source[start:end]

    @property
    def start(self) -> int:
        return self.spans[0][0]  # type: ignore[index]

    @property
    def end(self) -> int:
        return self.spans[0][1]  # type: ignore[index]


@dataclasses.dataclass
class Scan:
    """The result of running a tokenizer over some text.

    `consumed` is the offset where scanning stopped. If it is short of the end
    of the source then no matcher fired there, and `remainder` is the text
    that was never looked at.

    Unanchored patterns can match past the cursor. The text they jump over
    belongs to no token; its spans are in `skipped`, in order.
    """

    source: str
    tokens: list[Token]
    consumed: int
    skipped: list[Span] = dataclasses.field(default_factory=list)

    @property
    def remainder(self) -> str:
        return self.source[self.consumed :]

    @property
    def complete(self) -> bool:
        return self.consumed == len(self.source)

    def lines(self) -> list[int]:
        """The offsets of line breaks in the source."""
        return [m.start() for m in re.finditer("\n", self.source)]

    def dump(self, *, start=None, end=None) -> list[str]:
        if start is None:
            start = 0
        if end is None:
            end = len(self.tokens)

        tokens = self.tokens[start:end]
        if len(tokens) == 0:
            return []

        lines = self.lines()
        max_type_name = max(len(_type_name(token.typ)) for token in tokens)
        max_offset_len = len(str(len(self.source)))

        prev_line = None
        result = []
        for token in tokens:
            line_index = bisect.bisect_left(lines, token.start)
            if line_index == 0:
                col_start = 0
            else:
                col_start = lines[line_index - 1] + 1
            column_index = token.start - col_start

            line_number = line_index + 1
            if line_number != prev_line:
                line_part = f"{line_number:4}"
                prev_line = line_number
            else:
                line_part = "   |"

            result.append(
                f"{token.start:{max_offset_len}} {line_part} {column_index:3} "
                f"{_type_name(token.typ):{max_type_name}} {repr(token.text)}"
            )
        return result


def _type_name(typ: TokenTypeId) -> str:
    if isinstance(typ, enum.Enum):
        return typ.name
    return str(typ)


class Tokenizer:
    matchers: typing.Tuple[Matcher, ...]
    priority: Priority

    def __init__(self, priority: Priority, matchers: typing.Iterable[Matcher] = ()):
        self.priority = priority
        self.matchers = tuple(matchers)

    @classmethod
    def make(
        cls,
        priority: Priority,
        matchers: typing.Iterable[typing.Tuple[str, TokenTypeId]],
    ) -> "Tokenizer":
        """Build a tokenizer from (pattern, type) pairs, in priority order.

        Raises `TokenizerError` if any of the patterns is not a valid regular
        expression.
        """
        return cls(priority, [Matcher.compile(pattern, to_type) for pattern, to_type in matchers])

    def _best_match(self, rest: str) -> typing.Tuple[Matcher, re.Match[str]] | None:
        best: typing.Tuple[Matcher, re.Match[str]] | None = None
        for matcher in self.matchers:
            found = matcher.pattern.search(rest)
            if found is None:
                continue

            if best is None:
                best = (matcher, found)
                if self.priority == Priority.FIRST:
                    break
                continue

            current_len = len(best[1].group(0))
            next_len = len(found.group(0))
            match self.priority:
                case Priority.LONGEST:
                    if current_len < next_len:
                        best = (matcher, found)

                case Priority.SHORTEST:
                    if current_len > next_len:
                        best = (matcher, found)

                case Priority.FIRST:
                    pass

                case _:
                    typing.assert_never(self.priority)

        return best

    def scan(self, source: str) -> Scan:
        """Tokenize the source and report where the scan ended.

        Every step matches against a fresh slice of the remaining input so
        that `^` anchors at the cursor. That copy makes a scan quadratic in
        the length of the input; fine for lines and small files, slow for
        big ones.
        """
        sl = scan_log
        tokens: list[Token] = []
        skipped: list[Span] = []
        cursor = 0
        while cursor < len(source):
            best = self._best_match(source[cursor:])
            if best is None:
                break

            matcher, found = best
            if found.end(0) == 0:
                # An empty match right at the cursor would never make progress.
                break

            spans = tuple(
                None if found.start(i) < 0 else (cursor + found.start(i), cursor + found.end(i))
                for i in range(matcher.width)
            )
            token = Token(typ=matcher.to_type, source=source, spans=spans)
            if sl.isEnabledFor(logging.DEBUG):
                sl.debug(f"{cursor}: {_type_name(token.typ)} {token.text!r}")

            if found.start(0) > 0:
                skipped.append((cursor, cursor + found.start(0)))

            tokens.append(token)
            cursor += found.end(0)

        if cursor < len(source):
            sl.info(f"No matcher fired at offset {cursor}, {len(source) - cursor} characters left")

        return Scan(source=source, tokens=tokens, consumed=cursor, skipped=skipped)

    def tokenize(self, source: str) -> list[Token]:
        """Tokenize the source, stopping early where no matcher fires."""
        return self.scan(source).tokens
