"""Default language provider: derives an accept-language tag from the process locale."""
import os
from typing import Optional

LOCALE_ENV_VARS = ("LANGUAGE", "LC_ALL", "LC_MESSAGES", "LANG")


def to_language_tag(locale_name: str) -> Optional[str]:
    # en_GB.UTF-8@euro -> en-gb
    name = locale_name.split(".", 1)[0].split("@", 1)[0].strip()
    if not name or name in ("C", "POSIX"):
        return None
    return name.replace("_", "-").lower()


def system_language() -> Optional[str]:
    """
    Return the user's preferred language as a lowercase tag, or None when the
    environment expresses no preference.
    """
    for var in LOCALE_ENV_VARS:
        value = os.environ.get(var)
        if not value:
            continue
        # LANGUAGE may hold a priority list such as "fr_FR:en"
        first = value.split(":", 1)[0]
        return to_language_tag(first)
    return None
