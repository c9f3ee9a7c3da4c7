"""Loading advisory API keys from a dotenv file."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_FILE_VARIABLE = "WAYFARER_ENV_FILE"


def _locate_env_file(env_file: str | Path | None, base_dir: Path) -> Path | None:
    """Pick the dotenv file: explicit argument, then WAYFARER_ENV_FILE, then ./.env."""
    candidate = env_file or os.environ.get(ENV_FILE_VARIABLE)
    if candidate:
        path = Path(candidate).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        return path.resolve()

    default = (base_dir / ".env").resolve()
    return default if default.exists() else None


def _check_permissions(path: Path) -> None:
    """Refuse dotenv files that other users could read or swap out."""
    if os.name == "nt":
        return

    if path.is_symlink():
        raise PermissionError(f"Refusing to load dotenv symlink: {path}")

    info = path.stat()
    if hasattr(os, "getuid") and info.st_uid != os.getuid():
        raise PermissionError(f"Refusing to load dotenv owned by another user: {path}")

    if info.st_mode & (stat.S_IRWXG | stat.S_IRWXO):
        raise PermissionError(
            f"Insecure dotenv permissions for {path}. Restrict access with chmod 600."
        )


def load_environment_secrets(
    env_file: str | Path | None = None,
    *,
    override: bool = False,
    strict: bool = True,
    base_dir: Path | None = None,
) -> Path | None:
    """Load ANTHROPIC_API_KEY / OPENAI_API_KEY style secrets into the environment.

    Args:
        env_file: Optional dotenv path. Falls back to `WAYFARER_ENV_FILE`,
            then `.env` in the base directory.
        override: Whether dotenv values replace variables already set.
        strict: Raise when an explicitly named file is missing.
        base_dir: Directory used to resolve relative paths (default: cwd).

    Returns:
        The loaded file, or None when there was nothing to load.
    """
    root = (base_dir or Path.cwd()).resolve()
    path = _locate_env_file(env_file, root)
    if path is None:
        return None

    if not path.exists():
        if strict:
            raise FileNotFoundError(f"Dotenv file not found: {path}")
        return None
    if not path.is_file():
        raise ValueError(f"Dotenv path is not a regular file: {path}")

    _check_permissions(path)
    load_dotenv(dotenv_path=str(path), override=override)
    logger.debug(f"[BOOT] Loaded secrets from {path}")
    return path
