"""Line-at-a-time command line front end for the interpreter pipeline."""
import json
import logging
import sys
from typing import IO, Iterator, Optional

import typer

from errors import LoxError, SourceUnavailable
from evaluator import evaluate
from lexer import scan
from parser import parse

logger = logging.getLogger(__name__)

app = typer.Typer(help="Evaluate one Lox expression per input line.", add_completion=False)


def open_source(path: str) -> IO[str]:
    if path == "-":
        return sys.stdin
    try:
        return open(path, encoding="utf-8")
    except OSError as e:
        raise SourceUnavailable(path, e) from e

def lines(stream: IO[str], path: str, prompt: bool) -> Iterator[str]:
    while True:
        if prompt:
            typer.echo("> ", nl=False)
        try:
            line = stream.readline()
        except UnicodeDecodeError as e:
            raise SourceUnavailable(path, e) from e
        if not line:
            return
        yield line

def run_line(line: str, debug: bool = False) -> Optional[str]:
    """Evaluate one line; None when it holds only whitespace or comments."""
    tokens = scan(line)
    if not tokens:
        return None
    if debug:
        typer.echo(json.dumps([t.model_dump(mode="json") for t in tokens], indent=2))
    tree = parse(tokens)
    if debug:
        typer.echo(json.dumps(tree.model_dump(mode="json"), indent=2))
    return str(evaluate(tree))


@app.command()
def main(
    input: str = typer.Argument("-", help="Source file, or '-' for standard input"),
    debug: bool = typer.Option(False, "--debug", help="Echo tokens and tree as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        stream = open_source(input)
    except SourceUnavailable as e:
        typer.echo(f"error[{e.code}]: {e.msg}", err=True)
        raise typer.Exit(code=1)

    failures = 0
    try:
        for line in lines(stream, input, prompt=input == "-" and stream.isatty()):
            try:
                result = run_line(line, debug)
            except LoxError as e:
                failures += 1
                where = f" line {e.line}" if e.line is not None else ""
                typer.echo(f"error[{e.code}]{where}: {e.msg}", err=True)
                continue
            if result is not None:
                typer.echo(result)
    except SourceUnavailable as e:
        typer.echo(f"error[{e.code}]: {e.msg}", err=True)
        raise typer.Exit(code=1)
    finally:
        if stream is not sys.stdin:
            stream.close()
    logger.debug("input exhausted with %d failed lines", failures)
    if failures:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
