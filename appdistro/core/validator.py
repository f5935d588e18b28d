"""Validation helpers for app IDs, tester lists and whole configurations"""

import re
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple, Union

from appdistro.constants import APP_ID_PATTERN, TESTER_EMAIL_PATTERN
from appdistro.exceptions import InvalidAppIdError
from appdistro.models import Platform, ValidationResult

if TYPE_CHECKING:
    from appdistro.core.config_loader import AppDistroConfig

_APP_ID_RE = re.compile(APP_ID_PATTERN)
_EMAIL_RE = re.compile(TESTER_EMAIL_PATTERN)


def parse_list(value: Union[None, str, Iterable[str]]) -> List[str]:
    """
    Parse a comma-separated string or a list into clean entries.

    Entries are stripped, empty ones dropped, and duplicates removed
    keeping the first occurrence.
    """
    if value is None:
        return []

    if isinstance(value, str):
        raw = value.split(",")
    else:
        raw = []
        for item in value:
            raw.extend(str(item).split(","))

    seen: List[str] = []
    for item in raw:
        item = item.strip()
        if item and item not in seen:
            seen.append(item)
    return seen


def parse_app_id(app_id: str) -> Tuple[str, str]:
    """
    Split an app ID into (project_number, platform).

    Raises:
        ValueError: If the app ID is malformed
    """
    match = _APP_ID_RE.match(app_id.strip())
    if not match:
        raise ValueError(
            "expected format 1:<project-number>:<android|ios>:<hex-id>"
        )
    return match.group(1), match.group(2)


def validate_app_id(app_id: str, platform: Platform) -> ValidationResult:
    """
    Validate an app ID against the target platform.

    Args:
        app_id: App identifier from the distribution console
        platform: Platform of the target using it

    Returns:
        ValidationResult with an error if the ID is empty, malformed,
        or registered for another platform
    """
    result = ValidationResult()

    if not app_id or not app_id.strip():
        result.add_error(f"{platform.value}: app ID is not set")
        return result

    try:
        _, id_platform = parse_app_id(app_id)
    except ValueError as e:
        result.add_error(f"{platform.value}: invalid app ID '{app_id}' ({e})")
        return result

    if id_platform != platform.value:
        result.add_error(
            f"{platform.value}: app ID '{app_id}' belongs to a {id_platform} app"
        )

    return result


def require_app_id(app_id: str, platform: Platform) -> str:
    """Return the project number of a valid app ID or raise InvalidAppIdError."""
    result = validate_app_id(app_id, platform)
    if result.has_errors:
        raise InvalidAppIdError(app_id, platform.value, result.errors[0])
    project_number, _ = parse_app_id(app_id)
    return project_number


def validate_testers(testers: Iterable[str]) -> ValidationResult:
    """Check that every tester looks like an e-mail address."""
    result = ValidationResult()
    for tester in testers:
        if not _EMAIL_RE.match(tester):
            result.add_error(f"Invalid tester e-mail: '{tester}'")
    return result


def validate_config(
    config: "AppDistroConfig", platforms: Optional[List[Platform]] = None
) -> ValidationResult:
    """
    Validate every (or the selected) target of a configuration.

    Args:
        config: Loaded configuration
        platforms: Restrict validation to these platforms

    Returns:
        ValidationResult collecting errors and warnings across targets
    """
    result = ValidationResult()
    settings = config.distribution

    result.merge(validate_testers(settings.testers))

    for target in config.targets.values():
        if platforms and target.platform not in platforms:
            continue

        result.merge(validate_app_id(target.app_id, target.platform))

        if not target.artifact:
            result.add_error(f"{target.name}: artifact path is not set")
        elif not any(
            target.artifact.endswith(suffix) or target.artifact.endswith("*")
            for suffix in target.platform.artifact_suffixes
        ):
            result.add_warning(
                f"{target.name}: artifact '{target.artifact}' does not end with "
                f"{' or '.join(target.platform.artifact_suffixes)}"
            )

        if not target.build_command:
            result.add_warning(
                f"{target.name}: no build command, existing artifact will be uploaded"
            )

        if target.testers is not None:
            result.merge(validate_testers(target.testers))

        if not target.effective_groups(settings) and not target.effective_testers(
            settings
        ):
            result.add_warning(
                f"{target.name}: no groups or testers, release will be uploaded only"
            )

    return result
