import asyncio
import inspect
import json
import logging
from typing import Optional

import typer
from dotenv import load_dotenv
from InquirerPy import inquirer

from sandwich_scanner.app.interface.tasks import TASKS


load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = typer.Typer()
scanner_app = typer.Typer(help="cli for scanning sandwich trades.")
app.add_typer(scanner_app, name="scanner")


def _prompt_task() -> str:
    return inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()


def _prompt_before() -> Optional[int]:
    before_str = inquirer.text(
        message="Before block (inclusive, empty = latest):",
        default="",
        validate=lambda s: not s.strip() or s.strip().isdigit(),
        invalid_message="Block number must be a non-negative integer",
    ).execute()
    return int(before_str) if before_str.strip() else None


@scanner_app.command("run")
def run(
    task_name: Optional[str] = typer.Option(None, "--task", help="Task name; prompted when omitted."),
    chain: Optional[str] = typer.Option(None, "--chain", help="Chain id from the chains config."),
    pair_address: Optional[str] = typer.Option(None, "--pair", help="Pair contract address."),
    before: Optional[int] = typer.Option(None, "--before", min=0, help="Newest block to report."),
    no_wait: bool = typer.Option(False, "--no-wait", help="Do not wait for a started scan job."),
) -> None:
    """Run one task; any option left out is asked for interactively."""
    interactive = task_name is None or chain is None or pair_address is None

    if task_name is None:
        task_name = _prompt_task()
    if task_name not in TASKS:
        raise typer.BadParameter(f"unknown task {task_name!r}, expected one of {sorted(TASKS)}")

    if chain is None:
        chain = inquirer.text(message="Chain (e.g. ethereum):", default="ethereum").execute()
    if pair_address is None:
        pair_address = inquirer.text(message="Pair address (0x...):").execute()

    task = TASKS[task_name]
    params = inspect.signature(task).parameters
    kwargs: dict[str, object] = {"chain": chain, "pair_address": pair_address}

    if "before" in params:
        kwargs["before"] = _prompt_before() if before is None and interactive else before
    if "wait" in params:
        kwargs["wait"] = not no_wait

    response = asyncio.run(task(**kwargs))  # type: ignore
    typer.echo(json.dumps(response.to_dict(), indent=2))

    if response.error_message:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    LOGO = r"""
      --- Sandwich Scanner CLI ---
    """
    typer.echo(LOGO)
    app()
