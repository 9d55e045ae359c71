"""Local file operations for the session record and configuration."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from cf.credentials import decrypt_password, encrypt_password
from cf.exceptions import SessionFileError
from cf.models import Config, CookieRecord, LastSubmission, Session

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://codeforces.com"
DEFAULT_TIMEOUT = 30.0

DEFAULT_CONFIG = Config(
    host=DEFAULT_HOST,
    proxy="",
    session_path="",
    timeout=DEFAULT_TIMEOUT,
)


def session_to_dict(session: Session) -> dict[str, Any]:
    last = session.last_submission
    return {
        "cookies": [
            {
                "name": c.name,
                "value": c.value,
                "domain": c.domain,
                "path": c.path,
                "expires": c.expires,
                "secure": c.secure,
                "host_only": c.host_only,
            }
            for c in session.cookies
        ],
        "handle": session.handle,
        "handle_or_email": session.handle_or_email,
        "password": encrypt_password(session.handle_or_email, session.password),
        "ftaa": session.ftaa,
        "bfaa": session.bfaa,
        "last_submission": (
            {
                "contest_id": last.contest_id,
                "problem_id": last.problem_id,
                "submission_id": last.submission_id,
                "verdict": last.verdict,
            }
            if last
            else None
        ),
    }


def session_from_dict(data: dict[str, Any]) -> Session:
    handle_or_email = data.get("handle_or_email", "")

    cookies = [
        CookieRecord(
            name=c["name"],
            value=c.get("value", ""),
            domain=c["domain"],
            path=c.get("path", "/"),
            expires=c.get("expires"),
            secure=c.get("secure", False),
            host_only=c.get("host_only", True),
        )
        for c in data.get("cookies") or []
    ]

    last = data.get("last_submission")
    last_submission = None
    if last:
        last_submission = LastSubmission(
            contest_id=str(last.get("contest_id", "")),
            problem_id=str(last.get("problem_id", "")),
            submission_id=str(last.get("submission_id", "")),
            verdict=last.get("verdict", ""),
        )

    return Session(
        cookies=cookies,
        handle=data.get("handle", ""),
        handle_or_email=handle_or_email,
        password=decrypt_password(handle_or_email, data.get("password", "")),
        ftaa=data.get("ftaa", ""),
        bfaa=data.get("bfaa", ""),
        last_submission=last_submission,
    )


class Storage:
    """Manages the session file and configuration under ~/.cf."""

    def __init__(self, base_path: Path | None = None) -> None:
        self.base_path = base_path or Path.home() / ".cf"
        self.config_path = self.base_path / "config.json"
        self.default_session_path = self.base_path / "session.json"

    def _ensure_dirs(self) -> None:
        """Create base directory if it doesn't exist."""
        self.base_path.mkdir(parents=True, exist_ok=True)

    def session_file(self, config: Config) -> Path:
        """Resolve the session file for a config."""
        if config.session_path:
            return Path(config.session_path).expanduser()
        return self.default_session_path

    def load_session(self, path: Path) -> Optional[Session]:
        """Load a session from disk. Returns None if missing or unreadable."""
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", path, e)
            return None

        if not isinstance(data, dict):
            logger.warning("Ignoring session file %s: not a JSON object", path)
            return None

        try:
            return session_from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring malformed session file %s: %s", path, e)
            return None

    def save_session(self, session: Session, path: Path) -> None:
        """Write the session to disk, replacing the old file in one step."""
        content = json.dumps(session_to_dict(session), indent=2, sort_keys=True)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SessionFileError(f"Cannot save session to {path}: {e}") from e

    def get_config(self) -> Config:
        """Load config from config.json."""
        if not self.config_path.exists():
            return DEFAULT_CONFIG

        data = json.loads(self.config_path.read_text(encoding="utf-8"))
        return Config(
            host=data.get("host") or DEFAULT_CONFIG.host,
            proxy=data.get("proxy", DEFAULT_CONFIG.proxy),
            session_path=data.get("session_path", DEFAULT_CONFIG.session_path),
            timeout=float(data.get("timeout", DEFAULT_CONFIG.timeout)),
        )

    def save_config(self, config: Config) -> None:
        """Save config to config.json."""
        self._ensure_dirs()
        data = {
            "host": config.host,
            "proxy": config.proxy,
            "session_path": config.session_path,
            "timeout": config.timeout,
        }
        self.config_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
