"""Release notes resolution"""

import os
from pathlib import Path
from typing import Optional

from appdistro.constants import ENV_RELEASE_NOTES
from appdistro.exceptions import ConfigurationError
from appdistro.models import DistributionSettings, TargetConfig
from appdistro.utils import get_last_commit_message


def _read_notes_file(path_value: str, root_dir: Path) -> str:
    path = Path(os.path.expanduser(path_value))
    if not path.is_absolute():
        path = root_dir / path
    if not path.is_file():
        raise ConfigurationError(f"Release notes file not found: {path}")
    return path.read_text().strip()


def ci_context_line() -> Optional[str]:
    """Short 'ref @ sha' line when running inside GitHub Actions."""
    sha = os.environ.get("GITHUB_SHA", "")
    ref = os.environ.get("GITHUB_REF_NAME", "")
    if not sha:
        return None
    if ref:
        return f"{ref} @ {sha[:7]}"
    return sha[:7]


def resolve_release_notes(
    target: TargetConfig,
    settings: DistributionSettings,
    root_dir: Path,
    text: Optional[str] = None,
    notes_file: Optional[str] = None,
    include_ci_context: bool = True,
) -> str:
    """
    Pick the release notes for a target.

    First non-empty source wins: ``text``, ``notes_file``, FIREBASE_RELEASE_NOTES,
    target notes, global notes, global notes file, last commit message.
    """
    notes = ""
    candidates = [
        lambda: text,
        lambda: _read_notes_file(notes_file, root_dir) if notes_file else None,
        lambda: os.environ.get(ENV_RELEASE_NOTES),
        lambda: target.release_notes,
        lambda: settings.release_notes,
        lambda: (
            _read_notes_file(settings.release_notes_file, root_dir)
            if settings.release_notes_file
            else None
        ),
        lambda: get_last_commit_message(root_dir),
    ]
    for candidate in candidates:
        value = candidate()
        if value and value.strip():
            notes = value.strip()
            break

    if include_ci_context:
        context = ci_context_line()
        if context and context not in notes:
            notes = f"{notes}\n\n{context}" if notes else context

    return notes
