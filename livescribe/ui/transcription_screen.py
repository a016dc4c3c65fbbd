"""Terminal-based live transcription screen."""

import threading
import time
import logging
from typing import Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.audio import AudioStats
from ..models.events import SNAPSHOT_TOPIC
from ..models.session import SessionSnapshot, SessionState
from ..recognition.errors import EngineUnsupportedError
from ..services.workspace import Workspace
from .editor import edit_text
from .keyboard_input import KeyboardInputHandler

logger = logging.getLogger(__name__)

HISTORY_ROWS = 9
LEVEL_BARS = 10


class TranscriptionScreen:
    """Rich terminal interface over a Workspace."""

    def __init__(self, workspace: Workspace):
        """Initialize transcription screen.

        Args:
            workspace: Workspace driving sessions, document and history
        """
        self.workspace = workspace
        self.console = Console()
        self.languages = workspace.languages or [workspace.snapshot().language]
        self.language = workspace.snapshot().language
        self.show_history = True
        self.notice = ""

        self._lock = threading.Lock()
        self._snapshot: SessionSnapshot = workspace.snapshot()
        self.input_handler: Optional[KeyboardInputHandler] = None
        self.live: Optional[Live] = None
        self.editing = False
        self.running = False

        pub.subscribe(self._on_snapshot, SNAPSHOT_TOPIC)
        logger.info("TranscriptionScreen initialized")

    def _on_snapshot(self, snapshot: SessionSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    @property
    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot

    def create_layout(self) -> Layout:
        """Create the main UI layout."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main", ratio=1),
            Layout(name="error", size=3, visible=False),
            Layout(name="footer", size=3)
        )
        layout["main"].split_row(
            Layout(name="text", ratio=2),
            Layout(name="history", ratio=1)
        )
        layout["text"].split_column(
            Layout(name="live", ratio=1),
            Layout(name="document", ratio=1)
        )
        return layout

    @staticmethod
    def format_level(stats: Optional[AudioStats]) -> Text:
        """Microphone level meter for the header; empty when not capturing."""
        if stats is None:
            return Text("")
        filled = min(LEVEL_BARS, round(stats.peak_level * LEVEL_BARS))
        return Text.assemble(
            "  |  Mic: ",
            ("█" * filled, "green"),
            ("░" * (LEVEL_BARS - filled), "bright_black"),
        )

    def update_header(self, layout: Layout, snapshot: SessionSnapshot) -> None:
        if snapshot.paused:
            status_text, status_style = "PAUSED", "bold yellow"
        elif snapshot.listening:
            status_text, status_style = "LISTENING", "bold red"
        elif snapshot.state is SessionState.ERROR_HALTED:
            status_text, status_style = "HALTED", "bold magenta"
        else:
            status_text, status_style = "IDLE", "bold white"

        pulse = ("  ●  speaking", "bold green") if snapshot.speaking_active else ("", "")
        header_text = Text.assemble(
            ("LiveScribe", "bold blue"), "  |  ",
            (status_text, status_style), "  |  ",
            f"Language: {self.language}",
            self.format_level(self.workspace.audio_stats()),
            pulse,
        )
        layout["header"].update(Panel(Align.center(header_text), style="bright_blue"))

    def update_live_panel(self, layout: Layout, snapshot: SessionSnapshot) -> None:
        if not snapshot.supported:
            body = Text("Speech recognition is not available in this environment.", style="bold red")
        elif snapshot.live_text:
            committed = snapshot.final_text
            interim = snapshot.live_text[len(committed):] if snapshot.live_text.startswith(committed) else ""
            body = Text.assemble((committed or snapshot.live_text, "white"), (interim, "dim italic"))
        else:
            body = Text("Press SPACE to start listening", style="dim white italic")
        layout["live"].update(Panel(body, title="Live transcript", border_style="blue"))

    def update_document_panel(self, layout: Layout) -> None:
        text = self.workspace.document.text
        body = Text(text) if text else Text("(empty)", style="dim")
        layout["document"].update(Panel(body, title="Document (E to edit)", border_style="green"))

    def update_history_panel(self, layout: Layout) -> None:
        layout["history"].visible = self.show_history
        if not self.show_history:
            return

        table = Table(show_header=True, header_style="bold magenta", expand=True)
        table.add_column("#", style="cyan", width=2)
        table.add_column("Date", style="white", no_wrap=True)
        table.add_column("Preview", style="dim")
        for number, entry in enumerate(self.workspace.list_history()[:HISTORY_ROWS], start=1):
            table.add_row(str(number), entry.date, entry.content[:40])
        layout["history"].update(Panel(table, title="History", border_style="magenta"))

    def update_error_panel(self, layout: Layout, snapshot: SessionSnapshot) -> None:
        message = snapshot.error or self.notice
        layout["error"].visible = bool(message)
        if message:
            layout["error"].update(Panel(Text(message, style="bold red"), border_style="red"))

    def update_footer(self, layout: Layout) -> None:
        controls = Text.assemble(
            ("SPACE", "bold green"), " Start/Stop  ",
            ("P", "bold yellow"), " Pause/Resume  ",
            ("L", "bold blue"), " Language  ",
            ("H", "bold magenta"), " History  ",
            ("1-9", "bold cyan"), " Load entry  ",
            ("D", "bold red"), " Delete latest  ",
            ("E", "bold green"), " Edit document  ",
            ("Q", "bold red"), " Quit"
        )
        layout["footer"].update(Panel(Align.center(controls), style="bright_black"))

    def update_display(self, layout: Layout) -> None:
        snapshot = self.snapshot
        self.update_header(layout, snapshot)
        self.update_live_panel(layout, snapshot)
        self.update_document_panel(layout)
        self.update_history_panel(layout)
        self.update_error_panel(layout, snapshot)
        self.update_footer(layout)

    def cycle_language(self) -> None:
        if self.snapshot.listening:
            self.notice = "Stop listening before changing the language."
            return
        index = self.languages.index(self.language) if self.language in self.languages else -1
        self.language = self.languages[(index + 1) % len(self.languages)]
        logger.info(f"Language switched to {self.language}")

    def edit_document(self) -> None:
        """Suspend the screen and edit the document in an external editor."""
        if self.snapshot.listening:
            self.notice = "Stop listening before editing the document."
            return

        self.editing = True
        if self.live:
            self.live.stop()
        try:
            edited = edit_text(self.workspace.document.text)
        finally:
            if self.live:
                self.live.start(refresh=True)
            self.editing = False

        if edited is None:
            self.notice = "The editor could not be started (set $EDITOR)."
        else:
            self.workspace.edit_document(edited)

    def handle_key_input(self, key: str) -> bool:
        """Handle keyboard input. Returns True to continue, False to quit."""
        self.notice = ""
        try:
            if key == 'q':
                logger.info("Quit key pressed")
                self.running = False
                return False
            elif key in (' ', '\n', '\r'):
                self.workspace.toggle_recording(self.language)
            elif key == 'p':
                self.workspace.toggle_pause()
            elif key == 'l':
                self.cycle_language()
            elif key == 'e':
                self.edit_document()
            elif key == 'h':
                self.show_history = not self.show_history
            elif key == 'd':
                entries = self.workspace.list_history()
                if entries:
                    self.workspace.delete_history_item(entries[0].id)
            elif key.isdigit() and key != '0':
                entries = self.workspace.list_history()
                position = int(key) - 1
                if position < len(entries):
                    self.workspace.view_history_item(entries[position].id)
            else:
                logger.debug(f"Unhandled key: {key!r}")
        except EngineUnsupportedError as e:
            self.notice = str(e)
        except Exception as e:
            logger.error(f"Error handling key input: {e}", exc_info=True)
            self.notice = f"Error: {e}"
        return True

    def run(self) -> None:
        """Run the transcription screen until quit."""
        self.running = True
        layout = self.create_layout()
        self.input_handler = KeyboardInputHandler(self.handle_key_input)
        self.input_handler.start()

        try:
            with Live(layout, console=self.console, refresh_per_second=10, screen=True) as live:
                self.live = live
                while self.running and not self.input_handler.finished.is_set():
                    if not self.editing:
                        self.update_display(layout)
                    time.sleep(0.1)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        self.running = False
        if self.input_handler:
            self.input_handler.stop()
        try:
            pub.unsubscribe(self._on_snapshot, SNAPSHOT_TOPIC)
        except Exception as e:
            logger.error(f"Error unsubscribing screen: {e}")
        self.console.print("LiveScribe session ended", style="bold blue")
        logger.info("TranscriptionScreen cleanup completed")
