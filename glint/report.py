# glint/report.py
import sys
from typing import List, TextIO

from .diagnostics import Diagnostic, Level

# --- ANSI Color Codes ---
COLOR_RESET = "\033[0m"
COLOR_YELLOW = "\033[33m"
COLOR_BRIGHT_RED = "\033[91m"
COLOR_BRIGHT_BLACK = "\033[90m" # Grey, for the summary line
BOLD = "\033[1m"

# --- Level to glyph/color mapping ---
LEVEL_STYLE = {
    Level.WARNING: ("⚠", COLOR_YELLOW),
    Level.ERROR: ("✖", BOLD + COLOR_BRIGHT_RED),
}

def format_diagnostic(diagnostic: Diagnostic, color: bool = True) -> str:
    """Render one diagnostic as '<glyph> <level>: <message>'."""
    glyph, style = LEVEL_STYLE[diagnostic.level]
    prefix = f"{glyph} {diagnostic.level.value}"
    if color:
        prefix = f"{style}{prefix}{COLOR_RESET}"
    return f"{prefix}: {diagnostic.message}"

def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"

def format_summary(diagnostics: List[Diagnostic], color: bool = True) -> str:
    warnings = sum(1 for d in diagnostics if d.level is Level.WARNING)
    errors = sum(1 for d in diagnostics if d.level is Level.ERROR)
    summary = f"{_plural(warnings, 'warning')}, {_plural(errors, 'error')}"
    if color:
        summary = f"{COLOR_BRIGHT_BLACK}{summary}{COLOR_RESET}"
    return summary

def print_report(diagnostics: List[Diagnostic], color: bool = True, file: TextIO = None):
    """Print every diagnostic followed by a summary line."""
    out = file if file is not None else sys.stdout
    for diagnostic in diagnostics:
        print(format_diagnostic(diagnostic, color), file=out)
    print(format_summary(diagnostics, color), file=out)
