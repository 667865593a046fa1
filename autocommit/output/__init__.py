"""Terminal Output Formatting Package

Colors and Unicode glyphs are decided per stream: stdout may be a pipe
while stderr is still a terminal.
"""

import os
import shutil
import sys
import textwrap
import threading
from dataclasses import dataclass


class Ansi:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'
    CLEAR_LINE = '\r\033[K'


# name -> (unicode, ascii)
GLYPHS = {
    'check': ('✓', '[OK]'),
    'cross': ('✗', '[X]'),
    'warn': ('⚠', '[!]'),
    'h': ('─', '-'),
    'v': ('│', '|'),
    'tl': ('┌', '+'),
    'tr': ('┐', '+'),
    'bl': ('└', '+'),
    'br': ('┘', '+'),
}

SPINNER_FRAMES = (
    ('⠋', '⠙', '⠹', '⠸', '⠼', '⠴', '⠦', '⠧', '⠇', '⠏'),
    ('-', '\\', '|', '/'),
)


def _is_tty(stream) -> bool:
    return hasattr(stream, 'isatty') and stream.isatty()


def _enable_windows_ansi() -> bool:
    try:
        import ctypes
        kernel32 = ctypes.windll.kernel32
        kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
        return True
    except (AttributeError, OSError):
        return False


@dataclass(frozen=True)
class Terminal:
    """What a given output stream can render."""
    color: bool
    unicode: bool

    @classmethod
    def detect(cls, stream) -> 'Terminal':
        if os.environ.get('NO_COLOR'):
            color = False
        elif os.environ.get('FORCE_COLOR'):
            color = True
        else:
            color = _is_tty(stream) and (sys.platform != 'win32' or _enable_windows_ansi())

        unicode = True
        if sys.platform == 'win32':
            try:
                '✓'.encode(getattr(stream, 'encoding', None) or 'utf-8')
            except (UnicodeEncodeError, LookupError):
                unicode = False
        return cls(color=color, unicode=unicode)

    def paint(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return f"{''.join(codes)}{text}{Ansi.RESET}"

    def glyph(self, name: str) -> str:
        fancy, plain = GLYPHS[name]
        return fancy if self.unicode else plain


STDOUT = Terminal.detect(sys.stdout)
STDERR = Terminal.detect(sys.stderr)


def _style(*codes: str):
    def apply(text: str, term: Terminal = STDOUT) -> str:
        return term.paint(text, *codes)
    return apply


success = _style(Ansi.GREEN)
error = _style(Ansi.RED)
warning = _style(Ansi.YELLOW)
info = _style(Ansi.CYAN)
dim = _style(Ansi.DIM)
bold = _style(Ansi.BOLD)
timing_line = _style(Ansi.BLUE)


def print_success(message: str) -> None:
    print(f"{success(STDOUT.glyph('check'))} {message}")


def print_error(message: str) -> None:
    print(f"{error(STDERR.glyph('cross'), STDERR)} {error(message, STDERR)}", file=sys.stderr)


def print_warning(message: str) -> None:
    print(f"{warning(STDERR.glyph('warn'), STDERR)} {warning(message, STDERR)}", file=sys.stderr)


def format_file_list(title: str, paths, max_shown: int = 8) -> list[str]:
    """Lines for a titled, collapsed list of paths. Empty when there are no paths."""
    if not paths:
        return []
    lines = [bold(title)]
    lines.extend(dim(f"  {path}") for path in paths[:max_shown])
    hidden = len(paths) - max_shown
    if hidden > 0:
        lines.append(dim(f"  ... and {hidden} more files"))
    return lines


def format_push_progress(progress) -> str:
    """One status line for a PushProgress report."""
    label = f"{progress.stage.capitalize()} objects:"
    if not progress.total:
        return f"{label} {progress.current}"
    percent = progress.current * 100 // progress.total
    return f"{label} {percent}% ({progress.current}/{progress.total})"


class ProgressPrinter:
    """Push progress observer that redraws one status line on a TTY."""

    def __init__(self, stream=None):
        self._stream = stream or sys.stdout
        self._active = False

    def __call__(self, progress) -> None:
        if not _is_tty(self._stream):
            return
        self._stream.write(Ansi.CLEAR_LINE + dim(format_push_progress(progress)))
        self._stream.flush()
        self._active = True

    def finish(self) -> None:
        if self._active:
            self._stream.write(Ansi.CLEAR_LINE)
            self._stream.flush()
            self._active = False


def render_box(text: str, term: Terminal = STDOUT, width: int | None = None) -> list[str]:
    """Frame `text` in a box, wrapping long lines to fit the terminal."""
    if width is None:
        width = shutil.get_terminal_size((80, 24)).columns
    inner = max(int(width * 0.8), 60) - 4  # "| " + " |"

    body = []
    for line in text.split('\n'):
        if len(line) <= inner:
            body.append(line)
            continue
        # Keep wrapped list items aligned under their bullet
        indent = '  ' if line.lstrip().startswith(('- ', '* ')) else ''
        body.extend(textwrap.wrap(line, width=inner, subsequent_indent=indent))

    span = max((len(line) for line in body), default=0)
    h, v = term.glyph('h'), term.glyph('v')
    edge = h * (span + 2)
    lines = [dim(term.glyph('tl') + edge + term.glyph('tr'), term)]
    lines.extend(f"{dim(v, term)} {line.ljust(span)} {dim(v, term)}" for line in body)
    lines.append(dim(term.glyph('bl') + edge + term.glyph('br'), term))
    return lines


def print_box(text: str) -> None:
    print('\n'.join(render_box(text)))


class Spinner:
    """Animated status line while a blocking call runs. Use as context manager.

    Does nothing when stdout is not a terminal.
    """

    def __init__(self, label: str = "", interval: float = 0.08):
        self.label = label
        self.interval = interval
        self._done = threading.Event()
        self._thread = None

    def _run(self):
        frames = SPINNER_FRAMES[0 if STDOUT.unicode else 1]
        tick = 0
        while not self._done.wait(0 if tick == 0 else self.interval):
            sys.stdout.write(f"{Ansi.CLEAR_LINE}{frames[tick % len(frames)]} {self.label}")
            sys.stdout.flush()
            tick += 1

    def __enter__(self):
        if _is_tty(sys.stdout):
            self._done.clear()
            self._thread = threading.Thread(target=self._run, daemon=True)
            self._thread.start()
        return self

    def __exit__(self, *exc_info):
        self._done.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
            sys.stdout.write(Ansi.CLEAR_LINE)
            sys.stdout.flush()
        return False


__all__ = [
    "Ansi", "Terminal", "STDOUT", "STDERR",
    "success", "error", "warning", "info", "dim", "bold", "timing_line",
    "print_success", "print_error", "print_warning",
    "format_file_list", "format_push_progress", "ProgressPrinter",
    "render_box", "print_box", "Spinner",
]
