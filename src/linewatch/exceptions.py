"""Custom exceptions for the linewatch package."""


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class WatcherAlreadyRunningError(WatcherError):
    """Watcher is already running."""
    pass


class ScanError(WatcherError):
    """Watched directory could not be listed."""
    pass


class ProbeError(WatcherError):
    """A single file could not be probed."""
    pass


class LockTimeoutError(ProbeError):
    """File stayed locked for longer than the lock-wait budget."""
    pass
