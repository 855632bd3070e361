"""File watching: per-content change feeds and the auto-rebuild watch mode."""

import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from . import ids
from .assets import SUPPORTED_ATTACHMENT_EXTENSIONS
from .build import MARKDOWN_SUFFIXES
from .build import build as do_build
from .config import Config

CHANGE_EVENT_TYPES = {"created", "modified", "moved", "deleted"}


@dataclass(frozen=True)
class ChangeEvent:
    content_id: str
    path: Path
    event_type: str


class _SourceFileHandler(FileSystemEventHandler):
    """Forward events touching one file to its ChangeFeed."""

    def __init__(self, feed: "ChangeFeed"):
        super().__init__()
        self.feed = feed

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory or event.event_type not in CHANGE_EVENT_TYPES:
            return
        paths = [event.src_path]
        if event.event_type == "moved":
            paths.append(event.dest_path)
        if any(os.path.abspath(os.fsdecode(p)) == self.feed.watched_path for p in paths):
            self.feed.emit(event.event_type)


class ChangeFeed:
    """Subscribable stream of "source file changed" events for one content id.

    Events are only emitted for filesystem changes that happen after start();
    the current state of the file is never replayed. A stopped feed cannot be
    started again.
    """

    def __init__(self, content_id: str, path: Path):
        self.content_id = content_id
        self.path = path
        self.watched_path = os.path.abspath(path)
        self._subscribers: list[Callable[[ChangeEvent], None]] = []
        self._lock = threading.Lock()
        self._observer: Observer | None = None
        self._stopped = False

    def subscribe(self, callback: Callable[[ChangeEvent], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, event_type: str) -> None:
        event = ChangeEvent(self.content_id, self.path, event_type)
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(event)

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> "ChangeFeed":
        if self._stopped:
            raise RuntimeError(f"Change feed for {self.content_id} cannot be restarted")
        if self._observer is None:
            observer = Observer()
            observer.schedule(_SourceFileHandler(self), str(self.path.parent), recursive=False)
            observer.start()
            self._observer = observer
        return self

    def stop(self) -> None:
        self._stopped = True
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def __enter__(self) -> "ChangeFeed":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()


def content_watcher(content_id: str, content_root: Path) -> ChangeFeed:
    """Change feed for the source file behind ``content_id`` (not yet started)."""
    path = content_root / ids.normalize_content_path(ids.id_to_path(content_id))
    return ChangeFeed(content_id, path)


class PicturaEventHandler(FileSystemEventHandler):
    """Collect relevant changes in the project and trigger debounced rebuilds."""

    def __init__(
        self,
        config: Config,
        rebuild_callback,
        debounce_seconds: float = 0.2,
    ):
        super().__init__()
        self.config = config
        self.rebuild_callback = rebuild_callback
        self.debounce_seconds = debounce_seconds
        self.pending_changes: list[str] = []
        self.rebuild_lock = threading.Lock()
        self._debounce_timer: threading.Timer | None = None

        self.relevant_extensions = (
            {".html", ".toml"}
            | MARKDOWN_SUFFIXES
            | set(config.images.extensions)
            | SUPPORTED_ATTACHMENT_EXTENSIONS
        )

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in CHANGE_EVENT_TYPES:
            return

        src_path = os.fsdecode(event.src_path)
        normalized_path = src_path.replace("\\", "/")

        if (
            "/.git/" in normalized_path
            or "/.pictura/build/" in normalized_path
            or "/.pictura/cache/" in normalized_path
        ):
            return

        for folder in self.config.build.ignored_folders:
            if f"/{folder}/" in normalized_path:
                return

        if Path(src_path).suffix.lower() not in self.relevant_extensions:
            return

        with self.rebuild_lock:
            if src_path not in self.pending_changes:
                self.pending_changes.append(src_path)

            # Restart the debounce window
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()

            self._debounce_timer = threading.Timer(self.debounce_seconds, self.process_changes)
            self._debounce_timer.daemon = True
            self._debounce_timer.start()

    def process_changes(self):
        """Rebuild once for all pending changes."""
        with self.rebuild_lock:
            if not self.pending_changes:
                return
            changes = self.pending_changes.copy()
            self.pending_changes.clear()

        # Config and template edits invalidate every page
        needs_full_rebuild = any(
            Path(changed).suffix.lower() in {".html", ".toml"} for changed in changes
        )
        self.rebuild_callback(force=needs_full_rebuild)


def watch(config: Config, port: int = 8000, verbose: bool = False) -> None:
    """Build, serve the build directory and rebuild on every change."""
    from .logging import error, info, setup_logging
    from .resources import start_dev_server

    setup_logging(verbose=verbose)

    project_path = config.project_path
    if not project_path:
        error("No project path configured")
        return

    info("Watch mode: Building initial site...")
    info("=" * 60)
    do_build(config=config, force_rebuild=True)

    server_process = None
    try:
        server_process = start_dev_server(config.get_build_dir(), port, background=True)
        info("=" * 60)
        info(f"Server started: http://localhost:{port}")
    except OSError as e:
        error(f"Could not start server: {e}")
        info("Continuing in watch-only mode (no server)")

    info("Watching for changes... (Press Ctrl+C to stop)")
    info("=" * 60)

    def rebuild_callback(force: bool = False):
        timestamp = datetime.now().strftime("%H:%M:%S")
        info(f"\n[{timestamp}] Rebuilding...")
        start_time = time.time()
        do_build(config=config, force_rebuild=force)
        info(f"[{timestamp}] Rebuild complete ({time.time() - start_time:.2f}s)")

    handler = PicturaEventHandler(config, rebuild_callback)
    observer = Observer()
    observer.schedule(handler, str(project_path), recursive=True)
    observer.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        info("\nStopping watch mode...")
        observer.stop()
        if server_process:
            server_process.terminate()
            server_process.wait()
        info("Watch mode stopped.")

    observer.join()
