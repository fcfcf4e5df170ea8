"""Small helpers shared across the SDK."""

from __future__ import annotations

import importlib
import re
import secrets

DEFAULT_PASSWORD_LENGTH = 15
DEFAULT_PASSWORD_CHARLIST = "0-9a-zA-Z!@#$%^&*_=+()[]{};:,.<>?~"

_CHAR_RANGE_PATTERN = re.compile(r".-.", re.DOTALL)


# =============================================================================
# Passwords
# =============================================================================


def generate_password(length: int = DEFAULT_PASSWORD_LENGTH, charlist: str = DEFAULT_PASSWORD_CHARLIST) -> str:
    """Generate a random password.

    Args:
        length: Number of characters
        charlist: Allowed characters; ``a-z`` style ranges are expanded

    Returns:
        Password drawn with ``secrets``. Falls back to the defaults when
        length is below 1 or fewer than 2 distinct characters are allowed.

    Example:
        >>> len(generate_password(20, "a-f0-9"))
        20
    """
    characters = sorted(set(_expand_ranges(charlist)))

    if length < 1 or len(characters) < 2:
        return generate_password()

    return "".join(secrets.choice(characters) for _ in range(length))


def _expand_ranges(charlist: str) -> str:
    def expand(match: re.Match) -> str:
        start, end = sorted((ord(match.group(0)[0]), ord(match.group(0)[2])))
        return "".join(chr(code) for code in range(start, end + 1))

    return _CHAR_RANGE_PATTERN.sub(expand, charlist)


# =============================================================================
# Class paths
# =============================================================================


def class_path(cls: type) -> str:
    """Get the importable ``module:QualName`` path of a class."""
    return f"{cls.__module__}:{cls.__qualname__}"


def resolve_class(path: str) -> type:
    """Import a class from a ``module:QualName`` or ``module.Name`` path.

    Raises:
        ImportError: If the module cannot be imported
        AttributeError: If the module has no such attribute
        TypeError: If the path does not name a class
    """
    if ":" in path:
        module_name, qualname = path.split(":", 1)
    elif "." in path:
        module_name, qualname = path.rsplit(".", 1)
    else:
        raise ImportError(f"{path!r} is not a module:ClassName path")

    target = importlib.import_module(module_name)
    for attribute in qualname.split("."):
        target = getattr(target, attribute)

    if not isinstance(target, type):
        raise TypeError(f"{path!r} does not name a class")

    return target
