"""
Credential Store

Key/value env file holding generated production credentials.
Contract: create-if-absent, never overwrite. Secrets generated on the first
production run are reused by every later run.
"""

import base64
import os
import secrets as py_secrets
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, List

from dotenv import dotenv_values

from stackdeploy.constants import SECRET_BYTES, SECRET_FILE_PERMISSIONS


def generate_secret(nbytes: int = SECRET_BYTES) -> str:
    """Cryptographically strong random value, base64-encoded."""
    return base64.b64encode(py_secrets.token_bytes(nbytes)).decode("ascii")


class CredentialStore:
    """Env-file backed credential store"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Dict[str, str]:
        """Load all values (empty if the file does not exist)."""
        if not self.exists():
            return {}
        return {k: v for k, v in dotenv_values(self.path).items() if v is not None}

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.load().get(key, default)

    def create(self, values: Dict[str, str], title: str = "Environment Variables") -> bool:
        """
        Write the store if it does not exist yet.

        The file is opened with O_EXCL so an existing store is never
        truncated, even if it appeared after the caller checked.

        Args:
            values: Variables to persist, in order
            title: Header comment

        Returns:
            True if the file was created, False if it already existed
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        try:
            fd = os.open(
                self.path,
                os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                SECRET_FILE_PERMISSIONS,
            )
        except FileExistsError:
            return False

        lines: List[str] = []
        lines.append(f"# {title}")
        lines.append(f"# Generated: {datetime.now().isoformat(timespec='seconds')}")
        lines.append("# WARNING: This file contains sensitive information")
        lines.append("# Keep this file secure and never commit to version control")
        for key, value in values.items():
            lines.append(f"{key}={value}")

        with os.fdopen(fd, "w") as f:
            f.write("\n".join(lines) + "\n")

        # umask may have widened the mode passed to os.open
        self.path.chmod(SECRET_FILE_PERMISSIONS)
        return True

    def __repr__(self) -> str:
        return f"CredentialStore(path={self.path})"
