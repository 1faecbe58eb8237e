# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Shell quoting and typed command lines.

A command is held as a sequence of typed tokens until ``render()``; only
``render()`` produces shell text, and every configuration-derived value goes
through ``quote()`` exactly once on the way out.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple


def quote(value: str) -> str:
    """
    Quote a string for a POSIX shell.

    The result is always single-quoted; embedded single quotes become
    ``'\\''`` (close, escaped quote, reopen). The empty string maps to ``''``.

    Args:
        value: Untrusted string

    Returns:
        Shell-safe single token
    """
    if value == "":
        return "''"
    return "'" + value.replace("'", "'\\''") + "'"


@dataclass(frozen=True)
class _Token:
    kind: str  # flag | option | number | qualified | positional | env
    name: str | None = None
    values: Tuple[str, ...] = ()
    joined: bool = False

    def render(self) -> str:
        if self.kind == "flag":
            return self.name or ""
        if self.kind == "number":
            return self._attach(self.values[0])
        if self.kind == "qualified":
            return self._attach(".".join(quote(v) for v in self.values))
        if self.kind == "env":
            # Expanded by the shell at runtime; the name is a constant
            return self._attach(f'"${self.values[0]}"')
        if self.kind == "positional":
            return quote(self.values[0])
        return self._attach(quote(self.values[0]))

    def _attach(self, rendered: str) -> str:
        if self.joined:
            return f"{self.name}={rendered}"
        return f"{self.name} {rendered}"


class CommandLine:
    """
    Builder for one program invocation.

    Flag names come from code and are emitted as-is; values are quoted at
    render time. Methods return ``self`` so calls can be chained.

    Example:
        CommandLine("pg_dump").option("-h", host).number("-p", 5432).render()
    """

    def __init__(self, program: str):
        self.program = program
        self._tokens: List[_Token] = []

    def flag(self, name: str) -> "CommandLine":
        self._tokens.append(_Token("flag", name))
        return self

    def flag_if(self, condition: bool, name: str) -> "CommandLine":
        if condition:
            self.flag(name)
        return self

    def option(self, name: str, value: str, *, joined: bool = False) -> "CommandLine":
        self._tokens.append(_Token("option", name, (str(value),), joined))
        return self

    def options(
        self, name: str, values: Iterable[str], *, joined: bool = False
    ) -> "CommandLine":
        for value in values:
            self.option(name, value, joined=joined)
        return self

    def number(self, name: str, value: int, *, joined: bool = False) -> "CommandLine":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{name} expects an integer, got {value!r}")
        self._tokens.append(_Token("number", name, (str(value),), joined))
        return self

    def qualified(
        self, name: str, *parts: str, joined: bool = True
    ) -> "CommandLine":
        """Add ``name='a'.'b'``; each part is quoted on its own."""
        self._tokens.append(_Token("qualified", name, tuple(parts), joined))
        return self

    def env_reference(
        self, name: str, variable: str, *, joined: bool = True
    ) -> "CommandLine":
        """Reference an environment variable the shell expands at runtime."""
        if not variable.isidentifier():
            raise ValueError(f"Invalid environment variable name: {variable!r}")
        self._tokens.append(_Token("env", name, (variable,), joined))
        return self

    def positional(self, value: str) -> "CommandLine":
        self._tokens.append(_Token("positional", values=(str(value),)))
        return self

    def positionals(self, values: Iterable[str]) -> "CommandLine":
        for value in values:
            self.positional(value)
        return self

    def render(self) -> str:
        return " ".join([self.program] + [t.render() for t in self._tokens])

    def __str__(self) -> str:
        return self.render()


def pipe(*commands: CommandLine) -> str:
    """Join rendered commands into a single shell pipeline."""
    return " | ".join(command.render() for command in commands)
