from unittest.mock import AsyncMock, patch

import pytest

from agent_console.core.frontmatter import FrontMatterError
from agent_console.schemas import SkillResource
from agent_console.services import skills as skill_service
from agent_console.services.importer import ImportFailure, check_domain, fetch_markdown

SKILL_MD = """---
name: PDF Tools
description: Extract text and tables from PDF files
---

# PDF Tools
"""


def test_save_skill_writes_layout(tmp_path):
    result = skill_service.save_skill(
        tmp_path, "pdf-tools.md", SKILL_MD,
        resources=[SkillResource(file_name="notes.md", content="extra")],
    )
    assert result["skillName"] == "pdf-tools"
    assert result["name"] == "PDF Tools"
    assert (tmp_path / "pdf-tools" / "SKILL.md").read_text() == SKILL_MD
    assert (tmp_path / "pdf-tools" / "resources" / "notes.md").read_text() == "extra"
    assert result["resources"] == ["notes.md"]


@pytest.mark.parametrize("content", [
    "# No front-matter at all",
    "---\nname: only-name\n---\nbody",
    "---\ndescription: only description\n---\nbody",
    f"---\nname: {'x' * 65}\ndescription: ok\n---\n",
])
def test_save_skill_rejects_bad_front_matter_without_writing(tmp_path, content):
    with pytest.raises(FrontMatterError):
        skill_service.save_skill(tmp_path, "broken", content)
    assert list(tmp_path.iterdir()) == []


def test_skill_names_cannot_escape_base(tmp_path):
    with pytest.raises(skill_service.InvalidSkillName):
        skill_service.save_skill(tmp_path, "../evil", SKILL_MD)


# --- routes ---

def test_save_skill_route(client, admin_headers, workspace):
    response = client.post(
        "/api/skills/save",
        json={"fileName": "pdf-tools", "content": SKILL_MD, "resources": [{"fileName": "a.txt", "content": "A"}]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == 'Skill "PDF Tools" saved successfully!'
    assert (workspace["projects"] / "skills" / "pdf-tools" / "resources" / "a.txt").exists()

    listing = client.get("/api/skills", headers=admin_headers).json()
    assert listing["count"] == 1
    assert listing["skills"][0]["name"] == "PDF Tools"
    assert listing["skills"][0]["resources"] == ["a.txt"]


def test_save_skill_route_missing_description_is_400(client, admin_headers, workspace):
    response = client.post(
        "/api/skills/save",
        json={"fileName": "broken", "content": "---\nname: Broken\n---\nbody"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == 'YAML frontmatter must include "description" field'
    assert not (workspace["projects"] / "skills" / "broken").exists()


@pytest.mark.parametrize("resource_name", [".", "..", "nested/.."])
def test_save_skill_rejects_dot_resource_names(client, admin_headers, workspace, resource_name):
    response = client.post(
        "/api/skills/save",
        json={"fileName": "pdf-tools", "content": SKILL_MD, "resources": [{"fileName": resource_name, "content": "A"}]},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert not (workspace["projects"] / "skills" / "pdf-tools").exists()


def test_save_skill_too_long_name(client, admin_headers):
    content = f"---\nname: {'n' * 70}\ndescription: fine\n---\n"
    response = client.post("/api/skills/save", json={"fileName": "long", "content": content}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Name must be 64 characters or less"


def test_deploy_skill(client, admin_headers, workspace):
    client.post("/api/skills/save", json={"fileName": "pdf-tools", "content": SKILL_MD}, headers=admin_headers)
    project = workspace["projects"] / "webapp"
    project.mkdir()

    response = client.post(
        "/api/skills/deploy", json={"skillName": "pdf-tools", "projectPath": str(project)}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["destPath"] == str(project / ".claude" / "skills" / "pdf-tools")
    assert (project / ".claude" / "skills" / "pdf-tools" / "SKILL.md").exists()

    project_skills = client.get("/api/skills", params={"projectPath": str(project)}, headers=admin_headers).json()
    assert [s["id"] for s in project_skills["skills"]] == ["pdf-tools"]


def test_deploy_missing_skill(client, admin_headers, workspace):
    project = workspace["projects"] / "webapp"
    project.mkdir()
    response = client.post(
        "/api/skills/deploy", json={"skillName": "ghost", "projectPath": str(project)}, headers=admin_headers
    )
    assert response.status_code == 404


def test_import_skill_from_url(client, admin_headers):
    with patch("agent_console.api.skills.fetch_markdown", AsyncMock(return_value=SKILL_MD)) as fetch:
        response = client.post(
            "/api/skills/import-url",
            json={"url": "https://raw.githubusercontent.com/org/repo/main/SKILL.md"},
            headers=admin_headers,
        )
    assert response.status_code == 200
    assert response.json()["fileName"] == "pdf-tools"
    assert response.json()["skillName"] == "PDF Tools"
    fetch.assert_awaited_once()


def test_import_skill_failure_status_is_forwarded(client, admin_headers):
    with patch("agent_console.api.skills.fetch_markdown", AsyncMock(side_effect=ImportFailure(504, "Request timeout"))):
        response = client.post("/api/skills/import-url", json={"url": "https://github.com/x"}, headers=admin_headers)
    assert response.status_code == 504
    assert response.json() == {"error": "Request timeout"}


# --- importer ---

def test_check_domain():
    allowed = ["github.com", "raw.githubusercontent.com"]
    assert check_domain("https://gist.github.com/a", allowed) == "gist.github.com"
    with pytest.raises(ImportFailure) as exc:
        check_domain("https://evil.example.com/x.md", allowed)
    assert exc.value.status_code == 403
    with pytest.raises(ImportFailure) as exc:
        check_domain("ftp://github.com/x.md", allowed)
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_zip_urls_are_rejected_before_fetching():
    with patch("agent_console.services.importer.httpx.AsyncClient") as http:
        with pytest.raises(ImportFailure) as exc:
            await fetch_markdown("https://github.com/org/repo/archive/main.zip", ["github.com"], 5, 1000)
    assert exc.value.status_code == 400
    http.assert_not_called()
