"""Owner id to account name resolution."""

import logging
import pwd
from collections.abc import Callable

from pylpm.models import UNKNOWN_OWNER

logger = logging.getLogger(__name__)


def parse_uid(text: str | None) -> int | None:
    """Convert a uid token to an int, or None when it is not a valid uid."""
    if text is None:
        return None
    try:
        uid = int(text.strip())
    except ValueError:
        return None
    return uid if uid >= 0 else None


def _lookup_passwd(uid: int) -> str:
    return pwd.getpwuid(uid).pw_name


class IdentityResolver:
    """
    Best-effort uid to name lookup with a per-build memo.

    Failures never propagate; they resolve to "unknown".
    """

    def __init__(self, lookup: Callable[[int], str] = _lookup_passwd) -> None:
        self._lookup = lookup
        self._cache: dict[int, str] = {}

    def clear(self) -> None:
        """Forget memoised names so account changes are picked up."""
        self._cache.clear()

    def resolve(self, uid: int | None) -> str:
        """Return the account name for uid, or "unknown"."""
        if uid is None:
            return UNKNOWN_OWNER
        if uid in self._cache:
            return self._cache[uid]

        try:
            name = self._lookup(uid) or UNKNOWN_OWNER
        except (KeyError, OverflowError, OSError) as exc:
            logger.debug("Cannot resolve uid %d: %s", uid, exc)
            name = UNKNOWN_OWNER

        self._cache[uid] = name
        return name

    def resolve_text(self, text: str | None) -> str:
        """Resolve a raw uid token as found in the status record."""
        return self.resolve(parse_uid(text))
