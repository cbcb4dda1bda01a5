"""
Filesystem watching for the regeneration trigger.

Bridges watchdog change events to ConfigurationFileGenerator.handle_change.
The generator does its own base-name filtering; this module only drops
directory events and forwards paths in delivery order.
"""

import logging
import time
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from cspforge.generation import ConfigurationFileGenerator

logger = logging.getLogger(__name__)


class ChangeEventHandler(FileSystemEventHandler):
    """
    Forwards changed file paths to a generator.

    A move forwards its destination path, which covers editors that save
    to a temporary file and rename it over the original.
    """

    def __init__(self, generator: ConfigurationFileGenerator) -> None:
        super().__init__()
        self.generator = generator

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._forward(event, event.dest_path)

    def _forward(self, event: FileSystemEvent, path: str | bytes | None = None) -> None:
        if event.is_directory:
            return
        if path is None:
            path = event.src_path
        if isinstance(path, bytes):
            path = path.decode()
        self.generator.handle_change(path)


def watch(
    generator: ConfigurationFileGenerator,
    directory: Path | str = ".",
    poll_interval: float = 1.0,
) -> None:
    """
    Generate once, then regenerate on relevant changes until interrupted.

    Args:
        generator: The generator to drive
        directory: Directory watched recursively
        poll_interval: Seconds between liveness checks of the observer
    """
    generator.start()

    observer = Observer()
    observer.schedule(ChangeEventHandler(generator), str(directory), recursive=True)
    observer.start()
    logger.info("Watching %s for CSP configuration changes", directory)

    try:
        while observer.is_alive():
            time.sleep(poll_interval)
    except KeyboardInterrupt:
        logger.info("Stopping watcher")
    finally:
        observer.stop()
        observer.join()
