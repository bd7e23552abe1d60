"""Workflow file loading (YAML / JSON) and settings."""

import json

import pytest

from minizap.config import MinizapConfig, load_workflow_file, parse_workflow
from minizap.exceptions import WorkflowValidationError

LEAD_FLOW = """
id: wf-leads
user_id: user-42
name: New lead
triggers:
  - type: webhook
actions:
  - type: email
    config:
      provider: smtp
      to: "{{trigger.email}}"
  - type: delay
"""


# ── Files ────────────────────────────────────────────────────────────────────


def test_load_yaml(tmp_path):
    path = tmp_path / "lead.yaml"
    path.write_text(LEAD_FLOW)

    workflow = load_workflow_file(path)

    assert workflow.id == "wf-leads"
    assert workflow.user_id == "user-42"
    assert [t.type for t in workflow.configuration.triggers] == ["webhook"]
    assert [a.type for a in workflow.configuration.actions] == ["email", "delay"]
    assert workflow.configuration.actions[0].config["to"] == "{{trigger.email}}"
    assert workflow.configuration.actions[1].config == {}


def test_load_json_with_configuration_envelope(tmp_path):
    path = tmp_path / "stored.json"
    path.write_text(json.dumps({
        "name": "Stored",
        "configuration": {
            "triggers": [{"type": "manual"}],
            "actions": [{"type": "notification", "config": {"message": "hi"}}],
        },
    }))

    workflow = load_workflow_file(path)

    assert workflow.user_id == "local"
    assert workflow.is_active is True
    assert workflow.configuration.actions[0].config == {"message": "hi"}


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_workflow_file(tmp_path / "nope.yaml")


def test_unsupported_suffix(tmp_path):
    path = tmp_path / "flow.txt"
    path.write_text(LEAD_FLOW)
    with pytest.raises(WorkflowValidationError, match="Unsupported workflow file type"):
        load_workflow_file(path)


def test_unparseable_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("name: [unclosed")
    with pytest.raises(WorkflowValidationError, match="Could not parse broken.yaml"):
        load_workflow_file(path)


# ── Validation ───────────────────────────────────────────────────────────────


def test_violations_name_each_problem():
    with pytest.raises(WorkflowValidationError) as exc_info:
        parse_workflow({"actions": [{"config": {}}, {"type": ""}]})

    violations = exc_info.value.violations
    assert any(v.startswith("name:") for v in violations)
    assert any(v.startswith("actions.0.type:") for v in violations)
    assert any(v.startswith("actions.1.type:") for v in violations)


def test_non_mapping_document_is_rejected():
    with pytest.raises(WorkflowValidationError) as exc_info:
        parse_workflow(["not", "a", "workflow"])
    assert exc_info.value.violations


def test_unknown_types_pass_validation():
    workflow = parse_workflow({
        "name": "Later",
        "triggers": [{"type": "carrier_pigeon"}],
        "actions": [{"type": "fax", "config": None}],
    })
    assert workflow.configuration.triggers[0].type == "carrier_pigeon"
    assert workflow.configuration.actions[0].config == {}


def test_type_names_keep_their_case():
    workflow = parse_workflow({
        "name": "Cased",
        "triggers": [{"type": "WEBHOOK"}, {"type": "Carrier_Pigeon"}],
        "actions": [{"type": "  postToSlack "}],
    })
    assert [t.type for t in workflow.configuration.triggers] == ["WEBHOOK", "Carrier_Pigeon"]
    assert workflow.configuration.actions[0].type == "postToSlack"


def test_generated_ids_are_unique():
    first = parse_workflow({"name": "a"})
    second = parse_workflow({"name": "a"})
    assert first.id != second.id


# ── Settings ─────────────────────────────────────────────────────────────────


def test_settings_read_prefixed_env(monkeypatch):
    monkeypatch.setenv("MINIZAP_ACTION_TIMEOUT_MS", "1500")
    monkeypatch.setenv("MINIZAP_HTTP_USER_AGENT", "probe/2")
    cfg = MinizapConfig(_env_file=None)
    assert cfg.action_timeout_ms == 1500
    assert cfg.http_user_agent == "probe/2"
    assert cfg.delay_default_ms == 1000
