"""Output formatting utilities for the CLI."""

from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)
err_console = Console(theme=_THEME, stderr=True)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with err_console.status(msg, spinner="dots"):
            yield

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        err_console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        err_console.print(f"[err]✗[/] {msg}")

    def samples_table(self, samples: Iterable[Any], title: str = "Samples") -> None:
        """
        Render collected samples, grouped by metric name.

        Expects objects with .descriptor (.name, .labels), .value and
        .label_values (like tcexporter.core.metrics.Sample).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Metric", style="ok", no_wrap=True)
        t.add_column("Labels", style="meta")
        t.add_column("Value", justify="right")

        for s in sorted(samples, key=lambda s: (s.descriptor.name, s.label_values)):
            labels = ", ".join(
                f"{k}={v}" for k, v in zip(s.descriptor.labels, s.label_values)
            )
            value = int(s.value) if float(s.value).is_integer() else s.value
            t.add_row(s.descriptor.name, labels, str(value))

        console.print(t)

    def summary_table(self, samples: Iterable[Any], title: str = "Summary") -> None:
        """Render the number of samples per metric name."""
        counts: dict[str, int] = defaultdict(int)
        for s in samples:
            counts[s.descriptor.name] += 1

        t = Table(title=title, show_lines=False)
        t.add_column("Metric", style="ok", no_wrap=True)
        t.add_column("Samples", justify="right")

        for name in sorted(counts):
            t.add_row(name, str(counts[name]))

        console.print(t)


out = Out()
