"""Variable storage for a single interpreter session."""


class Environment:
    """Mutable name to string store.

    There is no scoping and no type coercion: every value is a string and
    the last write wins.
    """

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def set(self, name: str, value: str) -> None:
        """Create or overwrite a variable."""
        self._values[name] = value

    def get(self, name: str) -> str | None:
        """Return the variable's value, or None if it was never set."""
        return self._values.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def as_dict(self) -> dict[str, str]:
        """Return a copy of every variable."""
        return dict(self._values)
