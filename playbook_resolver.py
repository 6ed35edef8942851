"""Playbook Resolver Module - Ermittelt die Dateiabhängigkeiten eines Playbooks.

Ein Playbook hängt von seinen Rollen-Verzeichnissen ab und von allen Task-Dateien,
die über ``include_tasks``, ``import_tasks`` oder ``include`` von außerhalb des
``tasks/``-Verzeichnisses der Rolle eingebunden werden. Includes werden immer
relativ zum ``tasks/``-Verzeichnis der Rolle aufgelöst, auch in verschachtelten
Dateien.
"""

import logging
import os

import yaml

from data_source import DataSource
from resolver_errors import MalformedInputError, NotFoundError, ResolverError

logger = logging.getLogger(__name__)

INCLUDE_KEYS = ("include_tasks", "import_tasks", "include")


def _load_yaml_list(path: str, source: DataSource, kind: str) -> list:
    """Liest eine YAML-Datei, deren Wurzel eine Liste sein muss."""
    content = source.read_file(path)
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise MalformedInputError(f"Ungültiges YAML in {path}: {e}", path=path) from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedInputError(
            f"{kind} ist keine Liste: {path} ({type(data).__name__})", path=path
        )
    return data


def _role_names(play: dict, pb_path: str) -> list[str]:
    """Extrahiert die Rollennamen eines Plays in Deklarationsreihenfolge."""
    roles = play.get("roles") or []
    if not isinstance(roles, list):
        raise MalformedInputError(f"'roles' ist keine Liste in {pb_path}", path=pb_path)

    names = []
    for role in roles:
        if isinstance(role, dict):
            role_name = role.get("role") or role.get("name")
        else:
            role_name = role
        if not role_name or not isinstance(role_name, str):
            raise MalformedInputError(
                f"Ungültige Rollen-Referenz in {pb_path}: {role!r}", path=pb_path
            )
        names.append(role_name)
    return names


def _include_target(task: dict, key: str, task_path: str) -> str | None:
    """Liefert den Dateinamen eines Includes (String- oder ``file:``-Form)."""
    value = task.get(key)
    if isinstance(value, dict):
        value = value.get("file")
    if not value:
        return None
    if not isinstance(value, str):
        raise MalformedInputError(
            f"Ungültiger Wert für {key} in {task_path}: {value!r}", path=task_path
        )
    return value


def search_role_path(name: str, base_dir: str, source: DataSource) -> str:
    """Sucht eine Rolle unter ``base_dir/name`` und danach unter ``base_dir/roles/name``.

    Pfade aus DEFAULT_ROLES_PATH werden nicht berücksichtigt.
    """
    search_paths = [base_dir, os.path.join(base_dir, "roles")]
    for search_path in search_paths:
        role_path = os.path.normpath(os.path.join(search_path, name))
        if source.exists(role_path):
            return role_path
    raise NotFoundError(f"Rolle {name} nicht gefunden in {search_paths}", path=name)


def resolve_task(
    task_name: str,
    task_root: str,
    source: DataSource,
    chain: tuple[str, ...] = ()
) -> list[str]:
    """Löst eine Task-Datei samt aller verschachtelten Includes auf.

    Nur Dateien außerhalb von ``task_root`` werden als Abhängigkeit aufgenommen,
    alles darin ist bereits durch das Rollen-Verzeichnis abgedeckt. ``chain``
    enthält die gerade expandierten Dateien; ein erneuter Besuch ist ein Zyklus.
    """
    task_root = os.path.normpath(task_root)
    task_path = os.path.normpath(os.path.join(task_root, task_name))
    if task_path in chain:
        cycle = " -> ".join(chain + (task_path,))
        raise MalformedInputError(f"Zyklisches Include: {cycle}", path=task_path)

    deps = []
    if (os.path.dirname(task_path) or ".") != task_root:
        deps.append(task_path)

    tasks = _load_yaml_list(task_path, source, "Task-Datei")
    chain = chain + (task_path,)

    for task in tasks:
        # leerer Listeneintrag ("-") ist ein Task ohne Felder
        if task is None:
            continue
        if not isinstance(task, dict):
            raise MalformedInputError(
                f"Ungültiger Task in {task_path}: {task!r}", path=task_path
            )
        # Alle drei Varianten werden gleich behandelt, in fester Reihenfolge
        for key in INCLUDE_KEYS:
            include_file = _include_target(task, key, task_path)
            if include_file is None:
                continue
            try:
                deps.extend(resolve_task(include_file, task_root, source, chain))
            except ResolverError as e:
                raise e.wrap(f"{key}={include_file} in {task_path}") from e

    return deps


def resolve_role(name: str, base_dir: str, source: DataSource) -> list[str]:
    """Liefert das Rollen-Verzeichnis gefolgt von den externen Task-Abhängigkeiten."""
    role_path = search_role_path(name, base_dir, source)
    deps = [role_path]

    task_root = os.path.join(role_path, "tasks")
    try:
        task_files = source.list_dir(task_root)
    except NotFoundError:
        logger.debug(f"Rolle {name} hat kein tasks/-Verzeichnis: {task_root}")
        return deps
    except ResolverError as e:
        raise e.wrap(f"Task-Verzeichnis {task_root}") from e

    for task_file in task_files:
        try:
            deps.extend(resolve_task(task_file, task_root, source))
        except ResolverError as e:
            raise e.wrap(f"Task-Datei {task_file} in {task_root}") from e

    return deps


def resolve_playbook(playbook_path: str, repo_root: str, source: DataSource) -> list[str]:
    """Ermittelt alle Abhängigkeiten eines Playbooks (Reihenfolge erhalten, mit Duplikaten).

    Jeder Fehler bricht die gesamte Auflösung ab, es gibt keine Teilergebnisse.
    """
    pb_path = os.path.join(repo_root, playbook_path)
    logger.debug(f"Parse Playbook '{pb_path}'")

    plays = _load_yaml_list(pb_path, source, "Playbook")
    playbook_root = os.path.normpath(os.path.dirname(pb_path))

    deps = []
    for play in plays:
        if play is None:
            continue
        if not isinstance(play, dict):
            raise MalformedInputError(f"Ungültiger Play in {pb_path}: {play!r}", path=pb_path)
        for role_name in _role_names(play, pb_path):
            try:
                deps.extend(resolve_role(role_name, playbook_root, source))
            except ResolverError as e:
                raise e.wrap(f"Rolle {role_name} in {pb_path}") from e

    logger.debug(f"Abhängigkeiten von {pb_path}: {deps}")
    return deps
