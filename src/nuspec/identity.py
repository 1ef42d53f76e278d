"""Current user lookup for the authors/owners fields.

The display-name lookup is an optional platform capability. When it is
unavailable or returns nothing, the plain login name is used instead.
"""
from __future__ import annotations

import getpass
import logging
import os
import re
import sys
from typing import Optional

logger = logging.getLogger(__name__)

_NAME_DISPLAY = 3
_LAST_FIRST_RE = re.compile(r"\s*(\S+)\s*,\s*(\S+)\s*")


def _swap_last_first(name: str) -> str:
    """``Doe, Jane`` -> ``Jane Doe``."""
    return _LAST_FIRST_RE.sub(r"\2 \1", name).strip()


def _windows_display_name() -> Optional[str]:
    import ctypes  # pylint: disable=import-outside-toplevel

    size = ctypes.c_ulong(1024)
    buffer = ctypes.create_unicode_buffer(size.value)
    get_user_name_ex = ctypes.windll.secur32.GetUserNameExW  # type: ignore[attr-defined]
    if get_user_name_ex(_NAME_DISPLAY, buffer, ctypes.byref(size)) == 0:
        return None
    return buffer.value


def _posix_display_name() -> Optional[str]:
    import pwd  # pylint: disable=import-outside-toplevel

    entry = pwd.getpwuid(os.geteuid())
    # GECOS: "Full Name,Room,Work phone,Home phone,Other"
    return entry.pw_gecos.split(",")[0] if entry.pw_gecos else None


def lookup_display_name() -> Optional[str]:
    """Return the platform display name of the current user, or None."""
    try:
        if sys.platform == "win32":
            name = _windows_display_name()
            name = _swap_last_first(name) if name else None
        else:
            name = _posix_display_name()
    except (OSError, KeyError, AttributeError, ImportError) as e:
        logger.debug("Display name lookup unavailable: %s", e)
        return None
    if not name or not name.strip():
        return None
    return name.strip()


def login_name() -> str:
    """Effective user name, falling back to the environment."""
    try:
        name = getpass.getuser()
    except (OSError, KeyError, ImportError):
        name = ""
    return name or os.environ.get("USER") or os.environ.get("USERNAME") or ""


def current_user(use_display_name: bool = True) -> str:
    """Resolve the identity written into empty authors/owners fields."""
    if use_display_name:
        name = lookup_display_name()
        if name:
            return name
    return login_name()
