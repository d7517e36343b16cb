"""Turning tokens into values.

A `PostProcessor` maps each token type to one conversion function. The
function gets the whole `Token` and returns whatever value the parser should
see for it. Conversions are allowed to fail: raise `PostprocessError` yourself
(it is passed through as-is), or just let a `ValueError` escape, the way
`int()` and `float()` do on bad text, and it will be reported as a
`PostprocessError` against the token's type.
"""

import typing

from .tokenizer import Token, TokenTypeId


class PostprocessError(Exception):
    on_type: TokenTypeId
    message: str

    def __init__(self, on_type: TokenTypeId, message: str):
        super().__init__(on_type, message)
        self.on_type = on_type
        self.message = message

    def __str__(self):
        return f"{self.on_type!r}: {self.message}"

    def __eq__(self, other):
        if not isinstance(other, PostprocessError):
            return NotImplemented
        return self.on_type == other.on_type and self.message == other.message

    def __hash__(self):
        return hash((self.on_type, self.message))


def token_part(token: Token, index: int) -> str:
    """Get a part of a token, failing if it isn't there."""
    if index < len(token.spans):
        part = token.part(index)
        if part is not None:
            return part
    raise PostprocessError(token.typ, f"Failed to get token part: {index}")


class PostProcessor[V]:
    _fns: dict[TokenTypeId, typing.Callable[[Token], V]]

    def __init__(self):
        self._fns = {}

    def add_postprocfn(self, for_type: TokenTypeId, fn: typing.Callable[[Token], V]):
        """Register the conversion for a token type, replacing any previous
        one."""
        self._fns[for_type] = fn

    def __contains__(self, for_type: TokenTypeId) -> bool:
        return for_type in self._fns

    def run_on(self, token: Token) -> V:
        fn = self._fns.get(token.typ)
        if fn is None:
            raise PostprocessError(token.typ, "Failed to find postprocessor for token type")

        try:
            return fn(token)
        except PostprocessError:
            raise
        except ValueError as e:
            raise PostprocessError(token.typ, str(e)) from e

    def run_all(self, tokens: typing.Iterable[Token]) -> list[V]:
        """Convert every token, in order. The first failure is raised."""
        return [self.run_on(token) for token in tokens]
