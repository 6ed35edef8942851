"""Fehlerarten für die Auflösung von Playbook-Abhängigkeiten."""


class ResolverError(Exception):
    """Basisklasse aller Auflösungsfehler."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path

    def wrap(self, context: str) -> "ResolverError":
        """Gleiche Fehlerart, Nachricht um den Kontext der aktuellen Ebene ergänzt."""
        return self.__class__(f"{context}: {self}", path=self.path)


class NotFoundError(ResolverError):
    """Datei, Verzeichnis oder Rolle existiert nicht."""


class MalformedInputError(ResolverError):
    """YAML ungültig oder Struktur passt nicht zum erwarteten Schema."""


class StorageIOError(ResolverError):
    """Sonstiger Lese-, Listen- oder Stat-Fehler."""
