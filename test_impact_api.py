"""Tests für impact_api.py (HTTP-API)."""

import os
import shutil
import tempfile

import git
import pytest
import yaml
from fastapi.testclient import TestClient

from impact_api import app

client = TestClient(app)


@pytest.fixture
def tmp_dir():
    """Erstellt ein temporäres Verzeichnis und räumt es danach auf."""
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d)


def _write_yaml(path, data):
    """Hilfsfunktion: Schreibt YAML-Daten in eine Datei."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f)


def _write_text(path, text):
    """Hilfsfunktion: Schreibt Text in eine Datei."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


@pytest.fixture
def ansible_repo(tmp_dir):
    _write_yaml(os.path.join(tmp_dir, "site.yml"), [{"hosts": "all", "roles": [{"role": "r1"}, {"role": "r2"}]}])
    _write_yaml(os.path.join(tmp_dir, "other.yml"), [{"hosts": "all", "roles": [{"role": "r3"}]}])
    for name in ["r1", "r2", "r3"]:
        os.makedirs(os.path.join(tmp_dir, "roles", name))
    return tmp_dir


# ============================================================
# POST /impact
# ============================================================

class TestImpact:
    def test_changed_files_in_body(self, ansible_repo):
        response = client.post("/impact", json={
            "repo_path": ansible_repo,
            "playbooks": ["site.yml", "other.yml"],
            "changed_files": ["roles/r1/t1.yml"],
        })
        assert response.status_code == 200
        data = response.json()
        assert data["impacted"] == ["site.yml"]
        assert data["changed_files"] == [os.path.join(ansible_repo, "roles/r1/t1.yml")]

    def test_nothing_impacted(self, ansible_repo):
        response = client.post("/impact", json={
            "repo_path": ansible_repo,
            "playbooks": ["site.yml"],
            "changed_files": ["roles/r4/t3.yml"],
        })
        assert response.status_code == 200
        assert response.json()["impacted"] == []

    def test_changed_files_from_git(self, ansible_repo):
        repo = git.Repo.init(ansible_repo)
        with repo.config_writer() as cw:
            cw.set_value("user", "name", "Test")
            cw.set_value("user", "email", "test@example.com")
        _write_text(os.path.join(ansible_repo, "roles", "r3", "defaults", "main.yml"), "a: 1\n")
        repo.git.add(A=True)
        repo.git.commit("-m", "initial")
        _write_text(os.path.join(ansible_repo, "roles", "r3", "defaults", "main.yml"), "a: 2\n")

        response = client.post("/impact", json={
            "repo_path": ansible_repo,
            "playbooks": ["site.yml", "other.yml"],
            "before": "HEAD",
        })
        assert response.status_code == 200
        assert response.json()["impacted"] == ["other.yml"]

    def test_remote_clone_removed_afterwards(self, ansible_repo):
        repo = git.Repo.init(ansible_repo)
        with repo.config_writer() as cw:
            cw.set_value("user", "name", "Test")
            cw.set_value("user", "email", "test@example.com")
        _write_text(os.path.join(ansible_repo, "roles", "r1", "defaults", "main.yml"), "a: 1\n")
        # leere Rollen-Verzeichnisse landen sonst nicht im Klon
        for name in ["r2", "r3"]:
            _write_text(os.path.join(ansible_repo, "roles", name, ".gitkeep"), "")
        repo.git.add(A=True)
        repo.git.commit("-m", "initial")
        _write_text(os.path.join(ansible_repo, "roles", "r1", "defaults", "main.yml"), "a: 2\n")
        repo.git.add(A=True)
        repo.git.commit("-m", "change r1")
        repo.git.branch("-M", "main")

        response = client.post("/impact", json={
            "repo_path": f"file://{ansible_repo}",
            "playbooks": ["site.yml", "other.yml"],
            "before": "HEAD~1",
            "after": "HEAD",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["impacted"] == ["site.yml"]
        changed = data["changed_files"][0]
        assert changed.endswith(os.path.join("roles", "r1", "defaults", "main.yml"))
        clone_root = changed[: -len("/roles/r1/defaults/main.yml")]
        assert clone_root != ansible_repo
        assert not os.path.exists(clone_root)

    def test_missing_changed_files_and_before(self, ansible_repo):
        response = client.post("/impact", json={"repo_path": ansible_repo, "playbooks": ["site.yml"]})
        assert response.status_code == 422

    def test_role_not_found(self, ansible_repo):
        _write_yaml(os.path.join(ansible_repo, "broken.yml"), [{"roles": [{"role": "nope"}]}])
        response = client.post("/impact", json={
            "repo_path": ansible_repo,
            "playbooks": ["broken.yml"],
            "changed_files": ["roles/r1/t1.yml"],
        })
        assert response.status_code == 404
        assert "nope" in response.json()["detail"]

    def test_malformed_playbook(self, ansible_repo):
        _write_text(os.path.join(ansible_repo, "malformed.yml"), "abcde")
        response = client.post("/impact", json={
            "repo_path": ansible_repo,
            "playbooks": ["malformed.yml"],
            "changed_files": ["roles/r1/t1.yml"],
        })
        assert response.status_code == 422

    def test_unreadable_task_dir_entry(self, ansible_repo):
        # Verzeichnis in tasks/ kann nicht als Task-Datei gelesen werden
        os.makedirs(os.path.join(ansible_repo, "roles", "r1", "tasks", "subdir"))
        response = client.post("/impact", json={
            "repo_path": ansible_repo,
            "playbooks": ["site.yml"],
            "changed_files": ["roles/r1/t1.yml"],
        })
        assert response.status_code == 500


# ============================================================
# GET /dependencies
# ============================================================

class TestDependencies:
    def test_dependencies(self, ansible_repo):
        response = client.get("/dependencies", params={"repo_path": ansible_repo, "playbook": "site.yml"})
        assert response.status_code == 200
        assert response.json() == {
            "playbook": "site.yml",
            "dependencies": [
                os.path.join(ansible_repo, "roles", "r1"),
                os.path.join(ansible_repo, "roles", "r2"),
            ],
        }

    def test_missing_playbook(self, ansible_repo):
        response = client.get("/dependencies", params={"repo_path": ansible_repo, "playbook": "nope.yml"})
        assert response.status_code == 404
