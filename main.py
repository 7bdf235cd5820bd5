# main.py
import argparse
import asyncio
import sys
from pathlib import Path

import structlog
from rich.markup import escape
from rich.prompt import Confirm

from core.document_store import FileBackupStore, FileDocumentStore, read_text_exact
from core.exceptions import (
    AutoApplyUnavailableError,
    NoBackupError,
    ProoflineError,
    WholeDocumentParseError,
)
from core.logging_config import setup_proofline_logging
from core.oracle_client import CorrectionOracleClient
from orchestration.correction_session import CorrectionSession
from processing import diff_engine
from processing.apply_coordinator import ApplyCoordinator
from ui.feedback_report import format_feedback_text
from ui.rich_display import RichDisplayManager

logger = structlog.get_logger(__name__)


def _coordinator_for(note_path: Path) -> ApplyCoordinator:
    data_dir = note_path.resolve().parent
    return ApplyCoordinator(FileDocumentStore(data_dir), FileBackupStore(data_dir))


def _read_note(note_path: Path) -> str:
    return read_text_exact(note_path)


async def _review(args: argparse.Namespace, display: RichDisplayManager) -> int:
    note_path = Path(args.file)
    content = _read_note(note_path)
    oracle = CorrectionOracleClient()
    session = CorrectionSession(oracle, _coordinator_for(note_path), on_progress=display.show_progress)
    note_id = note_path.name

    try:
        if args.command == "improve":
            result = await session.improve_writing(note_id, content)
        else:
            result = await session.analyze(note_id, content)
    finally:
        await oracle.aclose()

    display.show_result(result)
    if getattr(args, "report", None):
        Path(args.report).write_text(format_feedback_text(result), encoding="utf-8", newline="")
        display.console.print(f"Review written to {escape(args.report)}.")

    if result.can_preview_diff:
        display.show_diff(session.preview_diff(result))
    elif getattr(args, "output", None) and result.has_changes:
        Path(args.output).write_text(result.corrected_text, encoding="utf-8", newline="")
        display.console.print(f"Suggested text written to {escape(args.output)} for manual review.")

    if not args.apply:
        return 0

    if result.can_auto_apply and not args.yes and not Confirm.ask("Apply these changes?", console=display.console):
        display.console.print("Changes discarded.")
        return 0

    try:
        outcome = session.apply(result)
    except AutoApplyUnavailableError as e:
        display.console.print(f"[yellow]{escape(e.message)}[/yellow]")
        return 1

    if outcome.warning:
        display.console.print(f"[bold yellow]Warning: {escape(outcome.warning)}[/bold yellow]")
    else:
        display.console.print("Changes applied. Backup saved - you can restore from backup if needed.")
    return 0


def _restore(args: argparse.Namespace, display: RichDisplayManager) -> int:
    note_path = Path(args.file)
    coordinator = _coordinator_for(note_path)
    try:
        coordinator.restore_backup(note_path.name)
    except NoBackupError:
        display.console.print(f"[yellow]No backup available for {escape(note_path.name)}.[/yellow]")
        return 1
    display.console.print(f"Restored {escape(note_path.name)} from backup.")
    return 0


def _diff(args: argparse.Namespace, display: RichDisplayManager) -> int:
    original = _read_note(Path(args.file))
    corrected = _read_note(Path(args.corrected_file))
    lines = diff_engine.diff(original, corrected)
    if args.plain:
        display.show_plain_diff(lines)
    else:
        display.show_diff(lines)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proofline",
        description="Grammar and clarity review for long notes, with diff preview and backup/restore.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Check grammar and spelling of a note")
    check.add_argument("file", help="Path to the note")
    check.add_argument("--apply", action="store_true", help="Apply the corrected text after review")
    check.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    check.add_argument(
        "--output",
        default=None,
        help="Write suggested text here when one-click apply is unavailable",
    )
    check.add_argument("--report", default=None, help="Save the review as plain text")

    improve = subparsers.add_parser("improve", help="Rewrite a note for clarity")
    improve.add_argument("file", help="Path to the note")
    improve.add_argument("--apply", action="store_true", help="Apply the rewrite after review")
    improve.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    restore = subparsers.add_parser("restore", help="Restore a note from its latest backup")
    restore.add_argument("file", help="Path to the note")

    diff = subparsers.add_parser("diff", help="Show the line/word diff between two files")
    diff.add_argument("file", help="Original text")
    diff.add_argument("corrected_file", help="Corrected text")
    diff.add_argument("--plain", action="store_true", help="Print an unstyled diff suitable for copying")

    return parser


def main(argv: list[str] | None = None) -> int:
    setup_proofline_logging()
    args = build_parser().parse_args(argv)
    display = RichDisplayManager()

    try:
        if args.command in ("check", "improve"):
            return asyncio.run(_review(args, display))
        if args.command == "restore":
            return _restore(args, display)
        return _diff(args, display)
    except KeyboardInterrupt:
        logger.info("Proofline shutting down due to KeyboardInterrupt...")
        return 130
    except WholeDocumentParseError as e:
        display.console.print(f"[red]Error: {escape(e.message)}[/red]")
        return 2
    except ProoflineError as e:
        display.console.print(f"[red]Error: {escape(e.message)}[/red]")
        return 1
    except OSError as e:
        display.console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
