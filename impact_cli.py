"""Kommandozeile für playbook-impact.

Gibt die durch eine Änderung betroffenen Playbooks kommagetrennt aus, z.B.::

    playbook-impact --files "$(git diff $BEFORE $AFTER --name-only)" \\
        --playbooks site.yml,db.yml
"""

import logging
import os
import sys

import click

from data_source import FileSource
from git_changes import changed_files, open_repository
from impact_matcher import find_impacted_playbooks
from resolver_errors import ResolverError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(filename)s:%(lineno)d %(levelname)s %(message)s"


def configure_logging(debug: bool) -> None:
    """Ohne ``--debug`` werden nur Warnungen ausgegeben."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%Y/%m/%d %H:%M:%S",
        stream=sys.stderr,
    )


def split_changed_files(files_in: str, repo_dir: str) -> list[str]:
    """Zeilenweise Liste in Pfade unterhalb von ``repo_dir`` umwandeln."""
    return [
        os.path.join(repo_dir, name.strip())
        for name in files_in.split("\n")
        if name.strip()
    ]


def split_playbooks(playbooks_in: str) -> list[str]:
    return [name.strip() for name in playbooks_in.split(",") if name.strip()]


@click.command()
@click.option(
    "--files",
    "files_in",
    envvar="PLAYBOOK_IMPACT_FILES",
    help="Geänderte Dateien, eine pro Zeile (z.B. aus 'git diff $BEFORE $AFTER --name-only')",
)
@click.option(
    "--playbooks",
    "playbooks_in",
    envvar="PLAYBOOK_IMPACT_PLAYBOOKS",
    help="Kommagetrennte Liste der zu prüfenden Playbooks",
)
@click.option(
    "--repo-dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Wurzel des Repositorys (Standard: aktuelles Verzeichnis)",
)
@click.option("--before", help="Git-Referenz; statt --files wird 'git diff --name-only' genutzt")
@click.option("--after", help="Zweite Git-Referenz zu --before (Standard: Arbeitsbaum)")
@click.option("--debug", is_flag=True, help="Ausführliches Logging aktivieren")
@click.pass_context
def main(ctx, files_in, playbooks_in, repo_dir, before, after, debug):
    """Ermittelt, welche Playbooks von geänderten Dateien betroffen sind."""
    if not playbooks_in or not (files_in or before):
        click.echo(ctx.get_help(), err=True)
        ctx.exit(1)

    configure_logging(debug)
    repo_dir = os.path.abspath(repo_dir or os.getcwd())
    logger.debug(f"Repository: {repo_dir}")

    try:
        if files_in:
            diff_files = split_changed_files(files_in, repo_dir)
        else:
            repo = open_repository(repo_dir)
            diff_files = [
                os.path.join(repo_dir, name)
                for name in changed_files(repo, before, after)
            ]
        impacted = find_impacted_playbooks(
            split_playbooks(playbooks_in), diff_files, repo_dir, FileSource()
        )
    except ResolverError as e:
        click.echo(f"Fehler: {e}", err=True)
        ctx.exit(1)

    click.echo(",".join(impacted))


if __name__ == "__main__":
    main()
