"""Shared Rich console for the split/join commands."""

from rich.console import Console

# Progress bars and status lines go through one console so they stay aligned.
console: Console = Console()
