"""Git Changes Module - Ermittelt geänderte Dateien über ``git diff --name-only``."""

import logging
import os
import tempfile

import git

from resolver_errors import StorageIOError

logger = logging.getLogger(__name__)


def open_repository(repo_input: str) -> git.Repo:
    """Öffnet ein lokales Repository oder klont eine URL in ein Temp-Verzeichnis."""
    try:
        if os.path.exists(repo_input):
            return git.Repo(os.path.abspath(repo_input))

        repo_path = tempfile.mkdtemp()
        logger.info(f"Klone {repo_input} nach {repo_path}")
        repo = git.Repo.clone_from(repo_input, repo_path)
        try:
            repo.git.checkout("main")
        except git.GitCommandError:
            repo.git.checkout("master")
        return repo
    except (git.InvalidGitRepositoryError, git.NoSuchPathError, git.GitCommandError) as e:
        raise StorageIOError(f"Kein nutzbares Git-Repository: {repo_input} - {e}", path=repo_input) from e


def changed_files(repo: git.Repo, before: str, after: str | None = None) -> list[str]:
    """Dateinamen aus ``git diff --name-only before [after]``, relativ zum Repo.

    Ohne ``after`` wird gegen den Arbeitsbaum verglichen. Mit ``-z`` kommen
    Pfade mit Nicht-ASCII-Zeichen unmaskiert zurück (kein core.quotepath).
    """
    refs = [before] if after is None else [before, after]
    try:
        output = repo.git.diff(*refs, name_only=True, z=True)
    except git.GitCommandError as e:
        raise StorageIOError(f"git diff fehlgeschlagen für {' '.join(refs)}: {e}") from e

    files = [name for name in output.split("\0") if name.strip()]
    logger.debug(f"git diff {' '.join(refs)}: {len(files)} Dateien")
    return files
