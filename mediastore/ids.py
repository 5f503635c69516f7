"""
Identifiers for uploaded files.

Ids are ULIDs: 26 characters of Crockford base32, starting with the creation time in milliseconds,
so sorting ids sorts files by upload time. Within one process ids are strictly increasing, also when
several are generated in the same millisecond.
"""

import threading

from ulid import ULID

_lock = threading.Lock()
_last: ULID | None = None


def new_id() -> str:
    global _last
    with _lock:
        ulid = ULID()
        if _last is not None and int(ulid) <= int(_last):
            # same millisecond (or the clock went back): continue counting from the last id
            ulid = ULID.from_int(int(_last) + 1)
        _last = ulid
        return str(ulid)
