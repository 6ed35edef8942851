import logging
import os
import shutil
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from data_source import FileSource
from git_changes import changed_files, open_repository
from impact_matcher import find_impacted_playbooks
from playbook_resolver import resolve_playbook
from resolver_errors import MalformedInputError, NotFoundError, ResolverError, StorageIOError

logger = logging.getLogger(__name__)

app = FastAPI()

ERROR_STATUS = {
    NotFoundError: 404,
    MalformedInputError: 422,
    StorageIOError: 500,
}


class ImpactRequest(BaseModel):
    repo_path: str
    playbooks: List[str]
    changed_files: Optional[List[str]] = None
    before: Optional[str] = None
    after: Optional[str] = None


@app.exception_handler(ResolverError)
async def resolver_error_handler(request: Request, exc: ResolverError):
    logger.warning(f"Auflösung fehlgeschlagen: {exc}")
    status = ERROR_STATUS.get(type(exc), 500)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.post("/impact")
def impact(body: ImpactRequest):
    if body.changed_files is None and not body.before:
        raise HTTPException(status_code=422, detail="changed_files oder before angeben")

    if body.changed_files is not None:
        return _impact(body.repo_path, body.changed_files, body.playbooks)

    # Remote-URLs werden geklont, die Auflösung läuft dann im Klon
    cloned = not os.path.exists(body.repo_path)
    repo = open_repository(body.repo_path)
    try:
        names = changed_files(repo, body.before, body.after)
        return _impact(repo.working_tree_dir, names, body.playbooks)
    finally:
        repo.close()
        if cloned:
            logger.info(f"Entferne Klon {repo.working_tree_dir}")
            shutil.rmtree(repo.working_tree_dir, ignore_errors=True)


def _impact(repo_root: str, names: List[str], playbooks: List[str]) -> dict:
    repo_root = os.path.abspath(repo_root)
    diff_files = [os.path.join(repo_root, name) for name in names if name.strip()]
    impacted = find_impacted_playbooks(playbooks, diff_files, repo_root, FileSource())
    return {"impacted": impacted, "changed_files": diff_files}


@app.get("/dependencies")
def dependencies(repo_path: str, playbook: str):
    repo_root = os.path.abspath(repo_path)
    deps = resolve_playbook(playbook, repo_root, FileSource())
    return {"playbook": playbook, "dependencies": deps}
