"""Owner id to display name resolution."""

import pwd


class OwnerLookup:
    """Cached uid -> user name lookup; unknown uids are shown numerically."""

    def __init__(self) -> None:
        self._names: dict[int, str] = {}

    def __call__(self, uid: int) -> str:
        name = self._names.get(uid)
        if name is None:
            try:
                name = pwd.getpwuid(uid).pw_name
            except KeyError:
                name = str(uid)
            self._names[uid] = name
        return name
