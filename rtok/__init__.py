"""A small lexing and parsing toolkit.

`Tokenizer` turns text into `Token`s using an ordered list of regular
expressions, `PostProcessor` turns those tokens into values, and `Parser` runs
a shift-reduce loop over the values with rules that you register at runtime.
"""

from .postproc import PostProcessor, PostprocessError, token_part
from .rules import any_, expect, node, reduction, rule, token, wrap_through
from .runtime import (
    EndOfInput,
    NoApplicableAction,
    ParseError,
    Parser,
    ParseValue,
    PredicateReducerMismatch,
    Reduced,
    Rule,
    Shifted,
    Stop,
    UnknownRuleIndex,
)
from .tokenizer import Matcher, Priority, Scan, Token, Tokenizer, TokenizerError

__all__ = [
    "EndOfInput",
    "Matcher",
    "NoApplicableAction",
    "ParseError",
    "ParseValue",
    "Parser",
    "PostProcessor",
    "PostprocessError",
    "PredicateReducerMismatch",
    "Priority",
    "Reduced",
    "Rule",
    "Scan",
    "Shifted",
    "Stop",
    "Token",
    "Tokenizer",
    "TokenizerError",
    "UnknownRuleIndex",
    "any_",
    "expect",
    "node",
    "reduction",
    "rule",
    "token",
    "token_part",
    "wrap_through",
]
