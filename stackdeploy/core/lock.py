"""Project-level deployment lock"""

import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from stackdeploy.exceptions import DeploymentLockError


class DeploymentLock:
    """
    Exclusive lock file guarding one project root.

    The file is created with O_CREAT | O_EXCL so only one deployment can hold
    it; it records the holder's pid and start time. A stale lock (left by a
    killed process) must be removed by hand.
    """

    def __init__(self, lock_path: Path):
        self.lock_path = Path(lock_path)
        self.acquired = False

    def acquire(self) -> None:
        """
        Acquire the lock.

        Raises:
            DeploymentLockError: If another run holds it
        """
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise DeploymentLockError(str(self.lock_path), self.holder())

        with os.fdopen(fd, "w") as f:
            f.write(f"pid={os.getpid()} started={datetime.now().isoformat()}\n")
        self.acquired = True

    def release(self) -> None:
        """Release the lock if this instance holds it."""
        if self.acquired:
            self.lock_path.unlink(missing_ok=True)
            self.acquired = False

    def holder(self) -> Optional[str]:
        """Describe the current holder, if the lock file is readable."""
        try:
            return self.lock_path.read_text().strip() or None
        except OSError:
            return None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        self.release()
        return False
