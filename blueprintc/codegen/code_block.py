"""Indented line buffer used by both backends."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


@dataclass
class CodeBlock:
    """Manages code block generation."""

    indent: str = "    "
    indent_level: int = 0
    lines: list[str] = field(default_factory=list)

    @contextmanager
    def block(self, header: str = "", closer: str = "}") -> Iterator[None]:
        """Context manager for a braced block opened by ``header``."""
        self.add_line(f"{header} {{" if header else "{")
        self.indent_level += 1
        try:
            yield
        finally:
            self.indent_level -= 1
            self.add_line(closer)

    @contextmanager
    def indented(self) -> Iterator[None]:
        self.indent_level += 1
        try:
            yield
        finally:
            self.indent_level -= 1

    def add_line(self, line: str = "") -> None:
        """Add line with proper indentation. Consecutive blank lines collapse."""
        if not line:
            if self.lines and self.lines[-1]:
                self.lines.append("")
            return

        # Preprocessor lines stay flush left
        if line.startswith("#"):
            self.lines.append(line)
            return

        self.lines.append(f"{self.indent * self.indent_level}{line}")

    def add_lines(self, lines: list[str]) -> None:
        for line in lines:
            self.add_line(line)

    def mark(self) -> int:
        """Current length, for checking whether a nested walk emitted anything."""
        return len(self.lines)

    def truncate(self, mark: int) -> None:
        del self.lines[mark:]

    def get_code(self) -> str:
        """Get generated code."""
        return "\n".join(self.lines)
