"""
igotifier Watch Registrar.

Enrolls a file or a directory tree with the notification source.
Requires Python 3.11+.
"""

import os
import stat
from collections.abc import Iterator
from pathlib import Path

from watcher.exceptions import PathError, SubscriptionError
from watcher.models import TargetKind, WatchTarget, is_hidden
from watcher.source import NotificationSource
from utils.logger import get_logger

logger = get_logger(__name__)


def iter_watch_directories(root: Path) -> Iterator[Path]:
    """
    Lazily yield every directory of a tree that should be watched.

    The root is always yielded first, even if its own name is hidden.
    Hidden subdirectories are skipped together with their whole subtree.
    Symlinked directories are not followed. Order is top-down and sorted.

    Args:
        root: Directory to traverse

    Raises:
        PathError: If the root itself cannot be listed
        SubscriptionError: If a subdirectory cannot be accessed
    """

    def _raise(error: OSError) -> None:
        failed = Path(error.filename) if error.filename else root
        reason = error.strerror or str(error)
        if failed == root:
            raise PathError(root, reason) from error
        raise SubscriptionError(failed, reason) from error

    for dirpath, dirnames, _ in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(name for name in dirnames if not is_hidden(name))
        yield Path(dirpath)


def register_targets(root_path: Path | str, source: NotificationSource) -> set[WatchTarget]:
    """
    Determine the watch targets under root_path and subscribe each one.

    A non-directory root yields a single file target. A directory root
    yields the root plus every non-hidden subdirectory. Registration fails
    fast: the first error aborts it.

    Args:
        root_path: File or directory to watch
        source: Notification source receiving the subscriptions

    Returns:
        Set of subscribed watch targets

    Raises:
        PathError: If the root is missing or inaccessible
        SubscriptionError: If a subdirectory cannot be accessed or any
            target cannot be subscribed
    """
    root = Path(root_path).absolute()

    try:
        info = root.stat()
    except OSError as e:
        raise PathError(root, e.strerror or str(e)) from e

    if not stat.S_ISDIR(info.st_mode):
        source.subscribe(root)
        return {WatchTarget(path=root, kind=TargetKind.FILE)}

    targets: set[WatchTarget] = set()
    for directory in iter_watch_directories(root):
        source.subscribe(directory)
        targets.add(WatchTarget(path=directory, kind=TargetKind.DIRECTORY))

    logger.debug("Registered directories", root=str(root), count=len(targets))
    return targets
