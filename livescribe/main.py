"""Main application entry point for LiveScribe."""

import sys
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from . import __version__
from .config import LiveScribeConfig
from .recognition.base import AbstractRecognitionEngine
from .services.workspace import Workspace

logger = logging.getLogger(__name__)


def setup_logging(config: LiveScribeConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/livescribe.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("LiveScribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def create_engine(config: LiveScribeConfig) -> Optional[AbstractRecognitionEngine]:
    """Build the Google streaming engine from config.

    Returns:
        The engine, or None when the Google client libraries are missing
    """
    try:
        from .recognition.google_backend import GoogleStreamingEngine
    except ImportError as e:
        logger.error(f"Google Speech client unavailable: {e}")
        return None

    return GoogleStreamingEngine(
        credentials_path=config.get_google_credentials_path(),
        language=config.get('recognition.default_language', 'pt-BR'),
        sample_rate=config.get('audio.sample_rate', 16000),
        chunk_size=config.get('audio.chunk_size', 1024),
        channels=config.get('audio.channels', 1),
        use_enhanced=config.get('google_cloud.use_enhanced_model', True),
        enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
        model=config.get('google_cloud.model', 'latest_long'),
    )


def print_history(workspace: Workspace, console: Console) -> None:
    entries = workspace.list_history()
    if not entries:
        console.print("History is empty", style="yellow")
        return

    table = Table(title="Transcript history", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Date", style="white", no_wrap=True)
    table.add_column("Content", style="dim")
    for entry in entries:
        preview = entry.content if len(entry.content) <= 80 else entry.content[:77] + "..."
        table.add_row(str(entry.id), entry.date, preview)
    console.print(table)


def run_history_command(args: argparse.Namespace, workspace: Workspace, console: Console) -> int:
    """Run a non-interactive history command. Returns the process exit code."""
    if args.history:
        print_history(workspace, console)
        return 0

    if args.show is not None:
        entry = workspace.history.get(args.show)
        if entry is None:
            console.print(f"No transcript with id {args.show}", style="bold red")
            return 1
        console.print(f"[bold]{entry.date}[/bold]")
        console.print(entry.content, markup=False)
        return 0

    if args.delete is not None:
        if not workspace.delete_history_item(args.delete):
            console.print(f"No transcript with id {args.delete}", style="bold red")
            return 1
        console.print(f"Deleted transcript {args.delete}", style="green")
        return 0

    workspace.clear_history()
    console.print("History cleared", style="green")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="LiveScribe - Live speech-to-text transcription",
        epilog="Keys: SPACE=Start/Stop, p=Pause/Resume, l=Language, h=History, 1-9=Load entry, d=Delete latest, q=Quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for livescribe.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--lang",
        type=str,
        help="Recognition language, e.g. pt-BR or en-US (overrides config)"
    )

    history = parser.add_mutually_exclusive_group()
    history.add_argument("--history", action="store_true", help="Print the transcript history and exit")
    history.add_argument("--show", type=int, metavar="ID", help="Print one history entry and exit")
    history.add_argument("--delete", type=int, metavar="ID", help="Delete one history entry and exit")
    history.add_argument("--clear-history", action="store_true", help="Delete all history entries and exit")

    parser.add_argument(
        "--version",
        action="version",
        version=f"LiveScribe v{__version__}"
    )
    return parser


def main() -> None:
    """Main entry point for LiveScribe."""
    args = build_parser().parse_args()
    console = Console()

    try:
        config = LiveScribeConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"Configuration error: {e}", style="bold red")
        sys.exit(2)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))
    if args.lang:
        config.set('recognition.default_language', args.lang)

    history_command = args.history or args.show is not None or args.delete is not None or args.clear_history
    engine = None if history_command else create_engine(config)

    workspace = Workspace(config, engine)
    try:
        if history_command:
            sys.exit(run_history_command(args, workspace, console))

        # Imported here so history commands work without a terminal
        from .ui.transcription_screen import TranscriptionScreen
        TranscriptionScreen(workspace).run()
    except KeyboardInterrupt:
        console.print("\nGoodbye!")
    except Exception as e:
        console.print(f"Error: {e}", style="bold red")
        logger.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        workspace.shutdown()


if __name__ == "__main__":
    main()
