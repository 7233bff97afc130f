"""Error message formatting for CLI output.

Some exceptions (bare ``PermissionError()``, ``TimeoutError()``) render as
an empty string; these helpers always produce something a user can act on.
"""

from __future__ import annotations

from rich.markup import escape as _escape_markup

FRIENDLY_MESSAGES: dict[type, str] = {
    PermissionError: "Permission denied. Check the ownership and mode of the repository directories.",
    TimeoutError: "Filesystem operation timed out.",
    KeyboardInterrupt: "Operation interrupted by user.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a non-empty display message.

    Examples:
        >>> format_error_message(PermissionError())
        'PermissionError: Permission denied. Check the ownership and mode of the repository directories.'

        >>> format_error_message(ValueError("bad root"), include_type=False)
        'bad root'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for interpolation into Rich markup strings."""
    return _escape_markup(str(value))
