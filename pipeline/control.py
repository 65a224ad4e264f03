import os
import fcntl
import json
import time
import logging
from typing import Optional, Dict

logger = logging.getLogger(__name__)

LOCK_FILE_PATH = "/tmp/placement_scheduler.lock"


class PipelineController:
    """
    Non-blocking, host-wide exclusive lock around a scheduler cycle.

    Overlapping cron/CLI/HTTP triggers on the same host skip instead of
    running a second flush/discover concurrently.
    """
    def __init__(self, lock_file: str = LOCK_FILE_PATH):
        self.lock_file = lock_file
        self.file_handle = None

    def _open_file(self):
        if not self.file_handle:
            self.file_handle = open(self.lock_file, "a+")

    def acquire_lock(self, source: str, metadata: Optional[Dict] = None) -> bool:
        """
        Attempt to acquire the exclusive lock.

        Args:
            source: Identifier of the trigger ('cli', 'http', 'cron')
            metadata: Additional info to store (e.g., request id)

        Returns:
            True if lock acquired, False otherwise.
        """
        try:
            self._open_file()
            fcntl.flock(self.file_handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            # Lock is held by another process
            self._close()
            return False
        except OSError as e:
            logger.error(f"Error acquiring scheduler lock {self.lock_file}: {e}")
            self._close()
            return False

        self.file_handle.truncate(0)
        self.file_handle.seek(0)
        info = {
            "source": source,
            "pid": os.getpid(),
            "timestamp": time.time(),
            **(metadata or {})
        }
        json.dump(info, self.file_handle)
        self.file_handle.flush()
        return True

    def _close(self):
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def release_lock(self):
        """Release the lock and clear the owner info."""
        if not self.file_handle:
            return
        try:
            self.file_handle.truncate(0)
            self.file_handle.seek(0)
            fcntl.flock(self.file_handle, fcntl.LOCK_UN)
        except OSError as e:
            logger.error(f"Error releasing scheduler lock: {e}")
        finally:
            self._close()

    def get_lock_info(self) -> Optional[Dict]:
        """
        Read information about the current lock owner.
        Returns None if file doesn't exist or is empty/corrupt.
        """
        if not os.path.exists(self.lock_file):
            return None

        try:
            with open(self.lock_file, "r") as f:
                content = f.read().strip()
        except OSError as e:
            logger.warning(f"Could not read lock info: {e}")
            return None
        if not content:
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            logger.warning(f"Corrupt lock info in {self.lock_file}")
            return None
