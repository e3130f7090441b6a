"""User interaction capability supplied by the caller."""

import sys
from abc import ABC, abstractmethod


class Interaction(ABC):
    """Prompts and result display, kept out of the login and request core."""

    @abstractmethod
    def prompt_for_input(self, prompt: str, placeholder: str | None = None) -> str | None:
        pass

    @abstractmethod
    def present_result(self, text: str) -> None:
        pass

    @abstractmethod
    def show_error(self, message: str) -> None:
        pass


class ConsoleInteraction(Interaction):
    """Interaction on stdin/stdout."""

    def __init__(self, stdin=None, stdout=None, stderr=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    def prompt_for_input(self, prompt: str, placeholder: str | None = None) -> str | None:
        hint = f" [{placeholder}]" if placeholder else ""
        self.stdout.write(f"{prompt}{hint}: ")
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        value = line.strip()
        return value or None

    def present_result(self, text: str) -> None:
        self.stdout.write(f"{text}\n")
        self.stdout.flush()

    def show_error(self, message: str) -> None:
        self.stderr.write(f"✗ {message}\n")
        self.stderr.flush()
