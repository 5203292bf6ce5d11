"""Block-structured configuration files and command-line options.

A configuration file is a tree of named blocks::

    srt {
        worker_threads 1;
        server {
            listen 8080;
            app {
                app_player live;
            }
        }
    }

Each block name is registered with a factory and a table of ``ConfCmd``
entries.  The table says which keys the block accepts and how each value is
checked and stored.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from .common import remove_marks

OUT_OF_RANGE = "out of range"
NAME_NOT_EXISTS = "name not exist"
WRONG_TYPE = "wrong type"


class ConfError(Exception):
    """Raised when a configuration value, file or option is invalid."""


Setter = Callable[[str, "ConfCmd", Any], None]


@dataclass(frozen=True)
class ConfCmd:
    """One accepted key: its name, a description, a setter and its range.

    ``attr`` names the attribute the value is stored in; it defaults to
    ``name``.
    """

    name: str
    mark: str
    setter: Setter
    min: float
    max: float
    attr: str | None = None

    @property
    def target(self) -> str:
        return self.attr or self.name

    def set(self, value: str, conf: Any) -> None:
        """Check value and store it on conf."""
        self.setter(value, self, conf)


class ConfBlock:
    """A configuration block; blocks are linked as first child and siblings."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.sibling: ConfBlock | None = None
        self.child: ConfBlock | None = None

    def siblings(self) -> Iterator[ConfBlock]:
        """Yield this block and every block after it in its sibling chain."""
        block: ConfBlock | None = self
        while block is not None:
            yield block
            block = block.sibling

    def children(self) -> Iterator[ConfBlock]:
        """Yield the blocks directly nested in this one, in file order."""
        if self.child is not None:
            yield from self.child.siblings()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _leading_int(text: str) -> int:
    match = _INT_RE.match(text)
    return int(match.group(1)) if match else 0


def _leading_float(text: str) -> float:
    match = _FLOAT_RE.match(text)
    return float(match.group(1)) if match else 0.0


def set_int(value: str, cmd: ConfCmd, conf: Any) -> None:
    """Store the leading integer of value; non-numbers count as 0."""
    number = _leading_int(value)
    if number < cmd.min or number > cmd.max:
        raise ConfError(OUT_OF_RANGE)
    setattr(conf, cmd.target, number)


def set_string(value: str, cmd: ConfCmd, conf: Any) -> None:
    """Store value if its length lies within the range."""
    if len(value) < cmd.min or len(value) > cmd.max:
        raise ConfError(OUT_OF_RANGE)
    setattr(conf, cmd.target, value)


def set_double(value: str, cmd: ConfCmd, conf: Any) -> None:
    """Store the leading floating-point number of value."""
    number = _leading_float(value)
    if number < cmd.min or number > cmd.max:
        raise ConfError(OUT_OF_RANGE)
    setattr(conf, cmd.target, number)


def set_bool(value: str, cmd: ConfCmd, conf: Any) -> None:
    """Store True for 'true' and False for 'false'; anything else is an error."""
    if value == "true":
        setattr(conf, cmd.target, True)
    elif value == "false":
        setattr(conf, cmd.target, False)
    else:
        raise ConfError(WRONG_TYPE)


def find_cmd(name: str, cmds: Iterable[ConfCmd]) -> ConfCmd | None:
    """Return the command called name, or None."""
    return next((cmd for cmd in cmds if cmd.name == name), None)


def string_split(text: str, delim: str) -> list[str]:
    """Split text at any character of delim, dropping empty pieces."""
    if not text:
        return []
    if not delim:
        return [text]
    pattern = "[" + re.escape(delim) + "]+"
    return [piece for piece in re.split(pattern, text) if piece]


def block_count(block: ConfBlock | None) -> int:
    """Count block and the blocks in its sibling chain."""
    return 0 if block is None else sum(1 for _ in block.siblings())


def _clean_line(raw: str) -> str:
    line = raw.rstrip("\r\n")
    hash_pos = line.find("#")
    if hash_pos != -1:
        line = line[:hash_pos]
    return line.replace("\t", "").strip(" ")


class ConfRegistry:
    """Known block names, how to create them and which keys they accept."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Callable[[], ConfBlock], tuple[ConfCmd, ...]]] = {}

    def register(
        self, name: str, factory: Callable[[], ConfBlock], cmds: Sequence[ConfCmd]
    ) -> None:
        """Make block name available; a later registration replaces an earlier one."""
        self._entries[name] = (factory, tuple(cmds))

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def create(self, name: str) -> ConfBlock:
        """Create a fresh block for name."""
        try:
            factory, _ = self._entries[name]
        except KeyError:
            raise ConfError(f"name='{name}' not found") from None
        block = factory()
        block.name = name
        block.sibling = None
        block.child = None
        return block

    def parse(self, lines: Iterable[str]) -> ConfBlock:
        """Parse configuration text given as lines; return the first top block."""
        root = ConfBlock()
        self._parse_block(enumerate(lines, start=1), root, None, top=True)
        if root.child is None:
            raise ConfError("no configuration block found")
        return root.child

    def load(self, path: str | os.PathLike[str]) -> ConfBlock:
        """Parse the configuration file at path."""
        try:
            with open(path, encoding="utf-8") as handle:
                return self.parse(handle)
        except OSError as exc:
            raise ConfError(
                f"open conf file='{os.fspath(path)}' failed, please check if the file exist."
            ) from exc

    def _parse_block(
        self,
        numbered: Iterator[tuple[int, str]],
        parent: ConfBlock,
        cmds: tuple[ConfCmd, ...] | None,
        top: bool,
    ) -> None:
        last_child: ConfBlock | None = None
        previous = ""
        for lineno, raw in numbered:
            line = _clean_line(raw)
            if not line:
                continue
            flag = line[-1]
            if flag == ";":
                if cmds is None:
                    raise ConfError(f"line:{lineno}='{line}', not found block.")
                self._set_value(lineno, line[:-1].replace("\t", "").strip(" "), parent, cmds)
            elif flag == "{":
                name = line[:-1].replace("\t", "").strip(" ")
                if not name:
                    if not previous:
                        raise ConfError(f"line:{lineno}, no name found.")
                    name = previous
                    previous = ""
                try:
                    block = self.create(name)
                except ConfError:
                    raise ConfError(f"line:{lineno}, name='{name}' not found.") from None
                if last_child is None:
                    parent.child = block
                else:
                    last_child.sibling = block
                last_child = block
                self._parse_block(numbered, block, self._entries[name][1], top=False)
                line = name
            elif flag == "}":
                if line != "}":
                    raise ConfError(
                        f"line:{lineno}='{line}', end indicator '}}' with more info."
                    )
                if top:
                    raise ConfError(
                        f"line:{lineno}, unexpected '}}', please check count of '{{' and '}}'."
                    )
                return
            else:
                raise ConfError(
                    f"line:{lineno}='{line}', invalid end flag, except ';', '{{', '}}'."
                )
            previous = line
        if not top:
            raise ConfError(
                f"block '{parent.name}' not closed, please check count of '{{' and '}}'."
            )

    @staticmethod
    def _set_value(
        lineno: int, line: str, block: ConfBlock, cmds: tuple[ConfCmd, ...]
    ) -> None:
        space = line.find(" ")
        if space == -1:
            raise ConfError(f"line:{lineno}='{line}', no space separator.")
        name = line[:space]
        value = line[space + 1:].strip(" ")
        cmd = find_cmd(name, cmds)
        if cmd is None:
            raise ConfError(f"line:{lineno}='{line}', wrong name='{name}'.")
        try:
            cmd.set(value, block)
        except ConfError as exc:
            raise ConfError(
                f"line:{lineno}, set failed, {exc}, name='{name}', value='{value}'."
            ) from None


def _help_text(cmds: Sequence[ConfCmd]) -> str:
    lines = ["option help info:"]
    lines.extend(
        f"-{cmd.name}, {cmd.mark}, range: {cmd.min:.0f}-{cmd.max:.0f}." for cmd in cmds
    )
    return "\n".join(lines)


def parse_argv(argv: Sequence[str], options: Any, cmds: Sequence[ConfCmd]) -> Any:
    """Apply '-name value' pairs from argv (program name excluded) to options.

    A lone '-h' raises ConfError carrying the option help text.
    """
    args = list(argv)
    if len(args) == 1:
        single = remove_marks(args[0])
        if single == "-h":
            raise ConfError(_help_text(cmds))
        raise ConfError(f"wrong parameter, '{args[0]}'.")

    items = iter(args)
    for arg in items:
        if not arg:
            raise ConfError("wrong parameter, is ''.")
        text = remove_marks(arg)
        if not text.startswith("-"):
            raise ConfError(f"wrong parameter '{text}', the first character must be '-'.")
        name = text[1:]
        cmd = find_cmd(name, cmds)
        if cmd is None:
            raise ConfError(f"wrong parameter '{arg}'.")
        try:
            value = remove_marks(next(items))
        except StopIteration:
            raise ConfError(f"parameter '{name}' has no value.") from None
        try:
            cmd.set(value, options)
        except ConfError as exc:
            raise ConfError(
                f"parameter set failed, {exc}, name='{name}', value='{value}'."
            ) from None
    return options