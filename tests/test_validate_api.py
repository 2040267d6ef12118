"""Contract tests for bulkplan.api.validate() and bulkplan.api.plan()."""

import json

import pytest

from bulkplan.api import ImportPlan, ValidationResult, load_items, plan, validate
from bulkplan.codes import ValidationCode
from bulkplan.kernel.errors import CycleDetectedError
from bulkplan.kernel.models import ImportItem


VALID_BATCH = [
    {"legacy_id": "1", "name": "Root"},
    {"legacy_id": "2", "legacy_parent_id": "1", "name": "Child"},
    {"name": "NoLegacy"},
]


def _write_json(path, data) -> None:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def test_validate_ok():
    result = validate(VALID_BATCH)
    assert isinstance(result, ValidationResult)
    assert result.ok is True
    assert result.errors == []
    assert result.warnings == []


def test_validate_duplicate():
    result = validate([{"legacy_id": "A", "name": "a"}, {"legacy_id": "a", "name": "b"}])
    assert result.ok is False
    assert [e.code for e in result.errors] == [ValidationCode.DUPLICATE_LEGACY_ID.value]
    assert result.errors[0].item_names == ["a", "b"]


def test_validate_dangling():
    result = validate([{"legacy_id": "x", "name": "X", "legacy_parent_id": "missing"}])
    assert result.ok is False
    issue = result.errors[0]
    assert issue.code == ValidationCode.DANGLING_REFERENCE.value
    assert issue.element_id == "x"
    assert issue.missing_id == "missing"


def test_validate_cycle():
    result = validate([
        {"legacy_id": "A", "legacy_parent_id": "B"},
        {"legacy_id": "B", "legacy_parent_id": "A"},
    ])
    assert result.ok is False
    issue = result.errors[0]
    assert issue.code == ValidationCode.CYCLE_DETECTED.value
    assert issue.cycle_path == ["A", "B"]


def test_validate_reports_dangling_and_cycle_together():
    result = validate([
        {"legacy_id": "A", "legacy_parent_id": "B"},
        {"legacy_id": "B", "legacy_parent_id": "A"},
        {"legacy_id": "C", "dependencies": ["gone"]},
    ])
    assert {e.code for e in result.errors} == {
        ValidationCode.DANGLING_REFERENCE.value,
        ValidationCode.CYCLE_DETECTED.value,
    }


def test_validate_warns_about_unordered_references():
    result = validate([
        {"legacy_id": "1", "name": "Root"},
        {"name": "Loose", "dependencies": ["1"]},
    ])
    assert result.ok is True
    assert [w.code for w in result.warnings] == [ValidationCode.UNORDERED_REFERENCE.value]
    assert result.warnings[0].element_id == "Loose"


def test_validate_invalid_structure():
    result = validate([{"name": "x", "unexpected": True}])
    assert result.ok is False
    assert result.errors[0].code == ValidationCode.INVALID_STRUCTURE.value


def test_validate_missing_file(tmp_path):
    result = validate(tmp_path / "nope.json")
    assert result.ok is False
    assert result.errors[0].code == ValidationCode.INVALID_STRUCTURE.value


def test_load_items_from_json_shapes(tmp_path):
    list_path = tmp_path / "list.json"
    wrapped_path = tmp_path / "wrapped.json"
    bad_path = tmp_path / "bad.json"
    _write_json(list_path, VALID_BATCH)
    _write_json(wrapped_path, {"items": VALID_BATCH})
    _write_json(bad_path, {"rows": VALID_BATCH})

    assert len(load_items(list_path)) == 3
    assert len(load_items(str(wrapped_path))) == 3
    with pytest.raises(ValueError):
        load_items(bad_path)


def test_load_items_accepts_models_and_dicts():
    items = load_items([ImportItem(name="a"), {"name": "b"}])
    assert [i.name for i in items] == ["a", "b"]


def test_plan_orders_and_counts():
    result = plan(VALID_BATCH)
    assert isinstance(result, ImportPlan)
    assert result.names == ["NoLegacy", "Root", "Child"]
    assert result.counts == {"total": 3, "legacy": 2, "unconstrained": 1, "deferred": 0}


def test_plan_raises_kernel_errors():
    with pytest.raises(CycleDetectedError):
        plan([{"legacy_id": "x", "dependencies": ["x"]}])


def test_validate_does_not_mutate_input():
    batch = [dict(row) for row in VALID_BATCH]
    validate(batch)
    assert batch == VALID_BATCH


def test_prepare_rows_into_items(registry, run):
    from bulkplan.api import prepare

    items = prepare(
        [{"name": "Post", "bulkUploadLegacyId": "p", "tags|stringArray": "a,b"}],
        registry=registry,
        run=run,
        source_name="posts.csv",
    )
    assert items[0].legacy_id == "p"
    assert items[0].properties == {"tags": '["a", "b"]'}
    assert items[0].source_name == "posts.csv"


def test_non_object_entries_are_rejected(tmp_path):
    path = tmp_path / "items.json"
    _write_json(path, [{"name": "ok"}, "not-an-item"])
    with pytest.raises(ValueError, match="Item 1 must be an object"):
        plan(path)
    result = validate(path)
    assert result.ok is False
    assert result.errors[0].code == ValidationCode.INVALID_STRUCTURE.value


def test_guids_survive_json_round_trip():
    guid = "3f2504e0-4f89-11d3-9a0c-0305e82c3301"
    result = plan([{"name": "A", "content_guid": guid, "parent_guid": ""}])
    dumped = result.items[0].model_dump(mode="json")
    assert dumped["content_guid"] == guid
    assert dumped["parent_guid"] is None
    assert load_items([dumped])[0].content_guid == result.items[0].content_guid
