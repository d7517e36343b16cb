import argparse
import logging
import sys

from .tokenizer import Priority, Tokenizer, TokenizerError


def _parse_matcher(value: str) -> tuple[str, str]:
    name, sep, pattern = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=REGEX, got {value!r}")
    return (pattern, name)


def main(args: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="rtok",
        description="Tokenize some text with a list of regular expressions and dump the tokens",
    )
    parser.add_argument(
        "source_path",
        nargs="?",
        default=None,
        help="Path to the file to tokenize (standard input if omitted)",
    )
    parser.add_argument(
        "--match",
        "-m",
        dest="matchers",
        action="append",
        type=_parse_matcher,
        default=[],
        metavar="NAME=REGEX",
        help="A token type and its pattern. Repeat for more; earlier ones win ties.",
    )
    parser.add_argument(
        "--priority",
        choices=[p.value for p in Priority],
        default=Priority.FIRST.value,
        help="How to choose between patterns that match at the same place",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log what the tokenizer is doing")

    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    try:
        tokenizer = Tokenizer.make(Priority(parsed.priority), parsed.matchers)
    except TokenizerError as e:
        print(f"rtok: {e}", file=sys.stderr)
        return 2

    if parsed.source_path is None:
        text = sys.stdin.read()
    else:
        with open(parsed.source_path, "r", encoding="utf-8") as f:
            text = f.read()

    scan = tokenizer.scan(text)
    for line in scan.dump():
        print(line)

    if not scan.complete:
        print(
            f"rtok: stopped at offset {scan.consumed}, unmatched: {scan.remainder[:40]!r}",
            file=sys.stderr,
        )
        return 1

    return 0


def console_main():
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    console_main()
