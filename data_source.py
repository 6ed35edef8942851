"""Data Source Module - Lesezugriff auf Playbooks, Rollen und Task-Dateien.

Der Resolver kennt nur das ``DataSource``-Protokoll. ``FileSource`` liest von
der lokalen Platte, ``MemorySource`` hält Dateien im Speicher für Tests.
"""

import os
from typing import Protocol

from resolver_errors import NotFoundError, StorageIOError


class DataSource(Protocol):
    """Gemeinsame Schnittstelle für das Laden von Daten."""

    def read_file(self, path: str) -> bytes:
        ...

    def list_dir(self, path: str) -> list[str]:
        ...

    def exists(self, path: str) -> bool:
        ...


class FileSource:
    """Dateizugriff auf der lokalen Platte."""

    def read_file(self, path: str) -> bytes:
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError as e:
            raise NotFoundError(f"Datei existiert nicht: {path}", path=path) from e
        except OSError as e:
            raise StorageIOError(f"Konnte Datei nicht lesen: {path} - {e}", path=path) from e

    def list_dir(self, path: str) -> list[str]:
        """Namen der direkten Einträge, alphabetisch sortiert."""
        try:
            return sorted(os.listdir(path))
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(f"Verzeichnis existiert nicht: {path}", path=path) from e
        except OSError as e:
            raise StorageIOError(f"Konnte Verzeichnis nicht lesen: {path} - {e}", path=path) from e

    def exists(self, path: str) -> bool:
        try:
            os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            raise StorageIOError(f"Konnte Pfad nicht prüfen: {path} - {e}", path=path) from e
        return True


class MemorySource:
    """In-Memory-Dateisystem für deterministische Tests.

    Verzeichnisse entstehen implizit über ``set_file``. Mit ``fail_on`` lässt
    sich für einen Pfad ein unerwarteter I/O-Fehler erzwingen.
    """

    def __init__(self):
        self._files: dict[str, bytes] = {}
        self._dirs: dict[str, list[str]] = {}
        self._failures: dict[str, str] = {}

    def set_file(self, path: str, content: bytes | str = b"") -> None:
        """Legt eine Datei samt aller Elternverzeichnisse an."""
        path = os.path.normpath(path)
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._files[path] = content
        self._register_parents(path)

    def set_dir(self, path: str) -> None:
        """Legt ein (leeres) Verzeichnis an."""
        path = os.path.normpath(path)
        self._dirs.setdefault(path, [])
        self._register_parents(path)

    def fail_on(self, path: str, message: str = "unexpected_error") -> None:
        """Jeder Zugriff auf ``path`` wirft ab jetzt ``StorageIOError``."""
        self._failures[os.path.normpath(path)] = message

    def clear(self) -> None:
        self._files.clear()
        self._dirs.clear()
        self._failures.clear()

    def _register_parents(self, path: str) -> None:
        child = path
        while True:
            parent = os.path.dirname(child) or "."
            if parent == child:
                break
            children = self._dirs.setdefault(parent, [])
            name = os.path.basename(child)
            if name not in children:
                children.append(name)
            if parent in (".", os.sep):
                break
            child = parent

    def _check_failure(self, path: str) -> None:
        message = self._failures.get(path)
        if message is not None:
            raise StorageIOError(f"{message}: {path}", path=path)

    def read_file(self, path: str) -> bytes:
        path = os.path.normpath(path)
        self._check_failure(path)
        if path in self._files:
            return self._files[path]
        if path in self._dirs:
            raise StorageIOError(f"Ist ein Verzeichnis: {path}", path=path)
        raise NotFoundError(f"Datei existiert nicht: {path}", path=path)

    def list_dir(self, path: str) -> list[str]:
        """Namen der direkten Einträge in Anlege-Reihenfolge."""
        path = os.path.normpath(path)
        self._check_failure(path)
        if path not in self._dirs:
            raise NotFoundError(f"Verzeichnis existiert nicht: {path}", path=path)
        return list(self._dirs[path])

    def exists(self, path: str) -> bool:
        path = os.path.normpath(path)
        self._check_failure(path)
        return path in self._files or path in self._dirs
