import json

import pytest

from fxns.errors import DefinitionError
from fxns.tools import (
    CalculationConfig,
    ConditionConfig,
    FormField,
    LogicStep,
    OutputConfig,
    StepGraph,
    draft_from_dict,
    draft_to_dict,
    dumps_draft,
    loads_draft,
    publish_issues,
    structural_issues,
    validate_draft,
)
from fxns.tools.codec import step_from_dict, step_to_dict

from support import pricing_draft, tip_draft


def _calc(step_id, formula="1", next_step_id=None):
    return LogicStep(step_id, "calculation", CalculationConfig(formula), next_step_id=next_step_id)


def test_draft_round_trip_preserves_order_and_fields():
    wire = pricing_draft()
    wire["inputConfig"].append(
        {
            "id": "tier",
            "type": "select",
            "label": "Tier",
            "options": [{"label": "Gold", "value": "gold"}, "silver"],
            "validation": {"minLength": 1},
        }
    )
    draft = draft_from_dict(wire)
    assert [s.id for s in draft.logic_config] == ["check", "premium", "standard"]
    assert draft.input_config[1].option_values == ["gold", "silver"]

    again = draft_from_dict(json.loads(dumps_draft(draft)))
    assert draft_to_dict(again) == draft_to_dict(draft)
    assert [f.id for f in again.input_config] == ["amount", "tier"]
    assert again.logic_config[1].next_step_id == "$end"


def test_step_wire_uses_camel_case():
    step = step_from_dict(
        {
            "id": "lookup",
            "type": "api_call",
            "config": {"url": "https://api.example.com/{q}", "method": "post", "timeoutSeconds": 2},
            "continueOnError": True,
        }
    )
    assert step.config.method == "POST"
    assert step.config.timeout_seconds == 2
    data = step_to_dict(step)
    assert data["config"]["timeoutSeconds"] == 2
    assert data["continueOnError"] is True


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "s", "type": "loop", "config": {}},
        {"id": "s", "type": "calculation", "config": {}},
        {"id": "s", "type": "condition", "config": {"expression": "true"}},
        {"id": "s", "type": "api_call", "config": {"url": "https://x.test", "timeoutSeconds": 0}},
        {"id": "s", "type": "transform", "config": {"operation": "explode", "source": "a"}},
        {"type": "calculation", "config": {"formula": "1"}},
    ],
)
def test_malformed_steps_are_rejected(payload):
    with pytest.raises(DefinitionError):
        step_from_dict(payload)


def test_step_type_must_match_config():
    with pytest.raises(DefinitionError):
        LogicStep("s", "condition", CalculationConfig("1"))


def test_loads_draft_reports_bad_json():
    with pytest.raises(DefinitionError):
        loads_draft("{not json")


def test_graph_fallthrough_and_end():
    steps = [_calc("a"), _calc("b", next_step_id="$end"), _calc("c")]
    graph = StepGraph(steps)
    assert graph.first_id == "a"
    assert graph.fallthrough(steps[0]) == "b"
    assert graph.fallthrough(steps[1]) is None
    assert graph.fallthrough(steps[2]) is None


def test_cycles_are_reported():
    steps = [_calc("a", next_step_id="b"), _calc("b", next_step_id="a")]
    issues = structural_issues([], steps)
    assert any("cycle" in issue for issue in issues)


def test_structural_issues_cover_ids_and_targets():
    fields = [FormField("amount", "number", "Amount"), FormField("amount", "number", "Again")]
    steps = [
        _calc("amount"),
        _calc("$bad"),
        LogicStep("check", "condition", ConditionConfig("true", then_step_id="missing")),
        _calc("self", next_step_id="self"),
    ]
    issues = structural_issues(fields, steps)
    text = "\n".join(issues)
    assert "Field id 'amount' is used more than once." in text
    assert "collides with a field id" in text
    assert "must not start with '$'" in text
    assert "unknown step 'missing'" in text
    assert "points to itself" in text


def test_step_limit_is_enforced():
    steps = [_calc(f"s{i}") for i in range(4)]
    assert any("at most 3 steps" in issue for issue in structural_issues([], steps, max_steps=3))


def test_publish_issues_catch_formula_and_output_problems():
    draft = draft_from_dict(tip_draft())
    assert publish_issues(draft.input_config, draft.logic_config, draft.output_config) == []

    broken = [_calc("tip", formula="subtotal *")]
    issues = publish_issues(draft.input_config, broken, OutputConfig(format="table", source_step_id="gone"))
    assert len(issues) == 3


def test_publish_accepts_nested_transform_sources():
    wire = {
        "id": "profile",
        "name": "Profile lookup",
        "inputConfig": [{"id": "user", "type": "text", "label": "User", "required": True}],
        "logicConfig": [
            {"id": "lookup", "type": "api_call", "config": {"url": "https://api.example.com/users/{{user}}"}},
            {"id": "name", "type": "transform", "config": {"operation": "uppercase", "source": "lookup.data.name"}},
        ],
        "outputConfig": {"format": "text"},
    }
    draft = draft_from_dict(wire)
    assert publish_issues(draft.input_config, draft.logic_config, draft.output_config) == []

    wire["logicConfig"][1]["config"]["source"] = "missing.data.name"
    draft = draft_from_dict(wire)
    assert publish_issues(draft.input_config, draft.logic_config, draft.output_config) == [
        "Step 'name' transforms unknown value 'missing.data.name'."
    ]


def test_validate_draft_raises_with_all_issues():
    wire = tip_draft()
    wire["logicConfig"][0]["nextStepId"] = "nowhere"
    with pytest.raises(DefinitionError) as excinfo:
        validate_draft(draft_from_dict(wire))
    assert excinfo.value.issues
    assert excinfo.value.to_payload()["issues"] == excinfo.value.issues
