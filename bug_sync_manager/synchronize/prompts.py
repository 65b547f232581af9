"""Interactive prompts used by the sync and management workflows."""

from abc import ABC, abstractmethod
from typing import Callable

import typer

from bug_sync_manager.exceptions import UserCancelledError

CANCEL_CHOICE = 0


class PrompterBase(ABC):
    """Base ABC for asking the user questions and reporting progress.

    Workflows only talk to the user through a prompter, so they can run against
    a terminal or against scripted answers in tests.
    """

    @abstractmethod
    def select(self, message: str, options: list[str]) -> int:
        """Ask the user to pick one option and return its index.

        Raises:
            UserCancelledError: If the user cancels the selection.
        """
        pass

    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        pass

    @abstractmethod
    def text(self, message: str, default: str = "", validate: Callable[[str], str | None] | None = None) -> str:
        """Ask for free text.

        Args:
            message: The question.
            default: Value used when the user just presses enter.
            validate: Optional callable returning an error message for invalid input,
                or ``None`` when the input is acceptable.
        """
        pass

    @abstractmethod
    def multiline(self, message: str) -> str:
        """Ask for several lines of text; two empty lines in a row end the input."""
        pass

    @abstractmethod
    def info(self, message: str) -> None:
        pass

    @abstractmethod
    def success(self, message: str) -> None:
        pass

    @abstractmethod
    def warning(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass


class TyperPrompter(PrompterBase):
    """Prompter backed by ``typer.prompt`` and ``typer.confirm``."""

    def select(self, message: str, options: list[str]) -> int:
        """Print numbered options and read a choice; ``0`` cancels."""
        if not options:
            raise UserCancelledError(f"Nothing to select for: {message}")
        typer.echo(f"\n{message}:")
        for number, option in enumerate(options, start=1):
            typer.echo(f"  {number}) {option}")
        typer.echo(f"  {CANCEL_CHOICE}) Cancel")
        while True:
            try:
                choice = typer.prompt("Choice", type=int)
            except typer.Abort:
                raise UserCancelledError(message) from None
            if CANCEL_CHOICE <= choice <= len(options):
                break
            self.error(f"Enter a number between {CANCEL_CHOICE} and {len(options)}")
        if choice == CANCEL_CHOICE:
            raise UserCancelledError(message)
        return choice - 1

    def confirm(self, message: str, default: bool = False) -> bool:
        try:
            return typer.confirm(message, default=default)
        except typer.Abort:
            raise UserCancelledError(message) from None

    def text(self, message: str, default: str = "", validate: Callable[[str], str | None] | None = None) -> str:
        while True:
            try:
                value = typer.prompt(message, default=default, show_default=bool(default)).strip()
            except typer.Abort:
                raise UserCancelledError(message) from None
            problem = validate(value) if validate is not None else None
            if problem is None:
                return value
            self.error(problem)

    def multiline(self, message: str) -> str:
        typer.echo(f"\n{message}")
        typer.echo("Enter text line by line. Press Enter on an empty line twice to finish.")
        lines: list[str] = []
        while True:
            try:
                line = typer.prompt("", default="", show_default=False, prompt_suffix="▸ ")
            except typer.Abort:
                raise UserCancelledError(message) from None
            if line == "" and lines and lines[-1] == "":
                lines.pop()
                break
            lines.append(line)
        return "\n".join(lines).strip("\n")

    def info(self, message: str) -> None:
        typer.echo(message)

    def success(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.GREEN)

    def warning(self, message: str) -> None:
        typer.secho(f"Warning: {message}", fg=typer.colors.YELLOW, err=True)

    def error(self, message: str) -> None:
        typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
