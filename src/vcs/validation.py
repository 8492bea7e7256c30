"""Input checks shared by the engine operations."""

import re

from vcs.errors import ValidationError

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._/-]+$")


def require_encodable(value: str, field_name: str) -> str:
    """Reject text the store cannot hold, such as lone surrogates."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValidationError(f"{field_name} is not valid UTF-8 text: {e.reason}") from e
    return value


def require_owner_id(owner_id: str | None) -> str:
    """Return the owner id, or raise ValidationError when it is missing."""
    if owner_id is None or not str(owner_id).strip():
        raise ValidationError("owner_id is required")
    return require_encodable(str(owner_id).strip(), "owner_id")


def require_text(value: str | None, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return require_encodable(str(value).strip(), field_name)


def validate_name(value: str | None, field_name: str) -> str:
    """Validate a repository or branch name.

    Names use letters, digits and ``. _ / -``; they may not start with ``/``
    or ``-`` and may not contain ``..``.
    """
    name = require_text(value, field_name)
    if not _NAME_PATTERN.match(name):
        raise ValidationError(f"{field_name} contains invalid characters: {name!r}")
    if name.startswith(("/", "-")) or name.endswith("/") or ".." in name:
        raise ValidationError(f"{field_name} is not a valid name: {name!r}")
    return name


def normalize_path(path: str | None) -> str:
    """Normalise a working-tree path to ``dir/sub/file`` form.

    Backslashes become slashes; empty and ``.`` segments are dropped.

    Raises:
        ValidationError: If the path is empty or contains a ``..`` segment
    """
    raw = require_text(path, "path").replace("\\", "/")
    parts = [part for part in raw.split("/") if part not in ("", ".")]
    if not parts:
        raise ValidationError(f"path is empty after normalisation: {path!r}")
    if ".." in parts:
        raise ValidationError(f"path may not leave the repository: {path!r}")
    return "/".join(parts)
