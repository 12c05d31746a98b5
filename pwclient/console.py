"""
Coloured terminal output for the interactive client
"""
import sys
from typing import Optional, TextIO

COLORS = {
    "reset": "\033[0m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
}


class Console:
    """Renders menu, passwords and errors; colour only on a TTY"""

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None):
        self.stream = stream or sys.stdout
        self._color_enabled = self.stream.isatty() if color is None else color

    def menu(self, text: str) -> None:
        self._write(text, "yellow")

    def password(self, password: str) -> None:
        self._write(f"Password generated: {password}\n\n", "green")

    def bad_request(self, message: str) -> None:
        self._write(f"Bad request: {message}\n", "red")

    def warning(self, message: str) -> None:
        self._write(f"{message}\n", "red")

    def notice(self, message: str) -> None:
        self._write(f"{message}\n", "cyan")

    def info(self, message: str) -> None:
        self._write(f"{message}\n", "blue")

    def error(self, message: str) -> None:
        self._write(f"{message}\n", "magenta")

    def _write(self, message: str, color: str) -> None:
        self.stream.write(self._colorize(message, color))
        self.stream.flush()

    def _colorize(self, message: str, color: str) -> str:
        if not self._color_enabled or color not in COLORS:
            return message
        return f"{COLORS[color]}{message}{COLORS['reset']}"
