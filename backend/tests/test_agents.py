import os
import stat

import pytest

from agent_console.services import agents as agent_service

AGENT_MD = """---
name: reviewer
description: Reviews pull requests for style and correctness
---

You are a meticulous code reviewer.
"""


def _mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)


def test_save_agent_created_then_updated(client, admin_headers, workspace):
    payload = {"fileName": "reviewer.md", "content": AGENT_MD}
    first = client.post("/api/agents/save", json=payload, headers=admin_headers).json()
    assert first["message"] == "Agent created successfully"

    second = client.post("/api/agents/save", json=payload, headers=admin_headers).json()
    assert second["message"] == "Agent updated successfully"

    path = workspace["projects"] / "agents" / "reviewer.md"
    assert second["filePath"] == str(path)
    assert _mode(path) == 0o644


@pytest.mark.parametrize("file_name", ["reviewer.txt", "../reviewer.md", "has space.md"])
def test_save_agent_rejects_bad_file_names(client, admin_headers, file_name):
    response = client.post("/api/agents/save", json={"fileName": file_name, "content": AGENT_MD}, headers=admin_headers)
    assert response.status_code == 400


def test_save_agent_rejects_oversized_content(client, admin_headers):
    response = client.post(
        "/api/agents/save", json={"fileName": "big.md", "content": "x" * 100001}, headers=admin_headers
    )
    assert response.status_code == 400


def test_list_agents(client, admin_headers):
    client.post("/api/agents/save", json={"fileName": "reviewer.md", "content": AGENT_MD}, headers=admin_headers)
    client.post("/api/agents/save", json={"fileName": "plain.md", "content": "no front-matter"}, headers=admin_headers)

    body = client.get("/api/agents", headers=admin_headers).json()
    assert body["count"] == 2
    by_id = {agent["id"]: agent for agent in body["agents"]}
    assert by_id["reviewer"]["description"] == "Reviews pull requests for style and correctness"
    assert by_id["plain"]["name"] == "plain"


def test_deploy_agent_conflicts_and_overwrite(client, admin_headers, workspace):
    client.post("/api/agents/save", json={"fileName": "reviewer.md", "content": AGENT_MD}, headers=admin_headers)
    project = workspace["projects"] / "webapp"
    project.mkdir()
    payload = {"agentFileName": "reviewer.md", "projectPath": str(project)}

    first = client.post("/api/agents/deploy", json=payload, headers=admin_headers)
    assert first.status_code == 200
    target = project / ".claude" / "agents" / "reviewer.md"
    assert first.json()["targetPath"] == str(target)
    assert first.json()["overwritten"] is False
    assert _mode(target) == 0o644

    conflict = client.post("/api/agents/deploy", json=payload, headers=admin_headers)
    assert conflict.status_code == 409

    forced = client.post("/api/agents/deploy", json={**payload, "overwrite": True}, headers=admin_headers)
    assert forced.status_code == 200
    assert forced.json()["overwritten"] is True


def test_deploy_missing_agent(client, admin_headers, workspace):
    project = workspace["projects"] / "webapp"
    project.mkdir()
    response = client.post(
        "/api/agents/deploy", json={"agentFileName": "ghost.md", "projectPath": str(project)}, headers=admin_headers
    )
    assert response.status_code == 404


def test_deploy_agent_service_rejects_traversal(tmp_path):
    with pytest.raises(agent_service.InvalidAgentName):
        agent_service.deploy_agent(tmp_path, "../../etc/passwd", tmp_path)


def test_projects_listing(client, admin_headers, workspace):
    projects = workspace["projects"]
    (projects / "webapp" / ".claude" / "agents").mkdir(parents=True)
    (projects / "api").mkdir()
    (projects / ".hidden").mkdir()
    (projects / "node_modules").mkdir()

    body = client.get("/api/projects", headers=admin_headers).json()
    assert [p["name"] for p in body["projects"]] == ["api", "webapp"]
    flags = {p["name"]: (p["hasAgentsFolder"], p["hasSkillsFolder"]) for p in body["projects"]}
    assert flags == {"api": (False, False), "webapp": (True, False)}
    assert body["masterAgentsPath"] == str(projects / "agents")
