"""Impact Matcher Module - Prüft, ob geänderte Dateien ein Playbook betreffen."""

import logging

from data_source import DataSource
from playbook_resolver import resolve_playbook

logger = logging.getLogger(__name__)


def match_path(dependency: str, changed_files: list[str]) -> bool:
    """True, wenn ``dependency`` ein String-Präfix einer geänderten Datei ist.

    Reiner ``startswith``-Vergleich: keine Pfadsegmente, keine Normalisierung.
    """
    for changed in changed_files:
        if changed.startswith(dependency):
            return True
    return False


def match_playbook(
    playbook_path: str,
    changed_files: list[str],
    repo_root: str,
    source: DataSource
) -> bool:
    """Löst das Playbook auf und bricht beim ersten Treffer ab."""
    deps = resolve_playbook(playbook_path, repo_root, source)
    for dep in deps:
        if match_path(dep, changed_files):
            logger.debug(f"{playbook_path} betroffen über {dep}")
            return True
    return False


def find_impacted_playbooks(
    playbooks: list[str],
    changed_files: list[str],
    repo_root: str,
    source: DataSource
) -> list[str]:
    """Liefert die betroffenen Playbooks in Eingabereihenfolge.

    Der erste Auflösungsfehler bricht den gesamten Lauf ab.
    """
    logger.info(f"Vergleiche mit [{len(changed_files)}] Dateien")
    logger.info(f"Prüfe [{len(playbooks)}] Playbooks: {', '.join(playbooks)}")

    impacted = []
    for playbook in playbooks:
        if match_playbook(playbook, changed_files, repo_root, source):
            impacted.append(playbook)
    return impacted
