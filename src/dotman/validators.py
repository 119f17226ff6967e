"""
Input validation for pair names and places.

Names double as directory names under the store root, so they are held to
the rules of a single path component.
"""

from pathlib import PurePath


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Pair name")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_pair_name(
    name: str, registry_file: str | None = None
) -> tuple[bool, str]:
    """
    Validate a managed pair name.

    Args:
        name: The pair name to validate
        registry_file: Registry file name living in the store root; a pair
            may not shadow it.

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot contain path separators
        - Cannot be '.' or '..'
        - Cannot equal the registry file name
    """
    if not name or not name.strip():
        return (
            False,
            format_validation_error("Pair name", "cannot be empty"),
        )

    if name != name.strip():
        return (
            False,
            format_validation_error(
                "Pair name",
                "cannot have leading or trailing whitespace",
            ),
        )

    if "/" in name or "\\" in name or len(PurePath(name).parts) != 1:
        return (
            False,
            format_validation_error(
                "Pair name", f"'{name}' must be a single path component"
            ),
        )

    if name in (".", ".."):
        return (
            False,
            format_validation_error("Pair name", f"cannot be '{name}'"),
        )

    if registry_file is not None and name == registry_file:
        return (
            False,
            format_validation_error(
                "Pair name",
                f"'{name}' collides with the registry file",
            ),
        )

    if "\x00" in name:
        return (
            False,
            format_validation_error("Pair name", "cannot contain NUL"),
        )

    return (True, "")
