import pytest
from pydantic import ValidationError

from labflow.db import schemas


def _assay(**overrides):
    data = {
        "title": "PCR amplification",
        "description": "Amplify the target region of the sample.",
        "protocol": "Mix reagents and run the thermocycler program.",
        "estimated_time": "2 hours",
    }
    data.update(overrides)
    return data


def test_workflow_title_minimum_length():
    with pytest.raises(ValidationError, match="Title must be at least 3 characters"):
        schemas.WorkflowCreate(title="ab")


def test_workflow_choices_are_normalized():
    wf = schemas.WorkflowCreate(title="Cell culture", difficulty=" Advanced ", status="PUBLISHED")
    assert wf.difficulty == "advanced"
    assert wf.status == "published"


def test_workflow_rejects_unknown_difficulty():
    with pytest.raises(ValidationError, match="difficulty must be one of"):
        schemas.WorkflowCreate(title="Cell culture", difficulty="expert")


def test_workflow_update_allows_partial_payloads():
    update = schemas.WorkflowUpdate(category="Genomics")
    assert update.model_dump(exclude_unset=True) == {"category": "Genomics"}


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("title", "ab", "Title must be at least 3 characters"),
        ("description", "too short", "Description must be at least 10 characters"),
        ("protocol", "short", "Protocol must be at least 10 characters"),
        ("estimated_time", "  ", "Estimated time is required"),
    ],
)
def test_assay_field_rules(field, value, message):
    with pytest.raises(ValidationError, match=message):
        schemas.AssayCreate(**_assay(**{field: value}))


def test_assay_material_requires_name_quantity_unit():
    with pytest.raises(ValidationError, match="Unit is required"):
        schemas.AssayCreate(**_assay(materials=[{"name": "Buffer", "quantity": "10", "unit": ""}]))


def test_choice_parameters_need_options():
    with pytest.raises(ValidationError, match="select parameters require at least one option"):
        schemas.AssayParameter(name="Dye", description="Stain colour", type="select")
    param = schemas.AssayParameter(name="Dye", description="Stain colour", type="radio", options=["red", "blue"])
    assert param.options == ["red", "blue"]


def test_parameter_bounds_must_be_ordered():
    with pytest.raises(ValidationError, match="min must not exceed max"):
        schemas.AssayParameter(name="Temp", description="Incubation", type="number", min=40, max=30)


def test_parameter_type_must_be_known():
    with pytest.raises(ValidationError, match="type must be one of"):
        schemas.AssayParameter(name="Temp", description="Incubation", type="slider")


def test_material_and_parameter_ids_are_generated():
    assay = schemas.AssayCreate(
        **_assay(
            materials=[{"name": "Buffer", "quantity": "10", "unit": "mL"}],
            parameters=[{"name": "Samples", "description": "Sample count", "type": "number", "default_value": 4}],
        )
    )
    assert assay.materials[0].id is not None
    assert assay.parameters[0].default_value == 4


def test_step_requires_title():
    with pytest.raises(ValidationError, match="Title is required"):
        schemas.StepCreate(title="")


def test_project_status_validated():
    with pytest.raises(ValidationError, match="status must be one of"):
        schemas.ProjectCreate(title="Lab move", status="paused")


def test_run_update_status_validated():
    assert schemas.UserWorkflowUpdate(status="Completed").status == "completed"
    with pytest.raises(ValidationError):
        schemas.UserWorkflowUpdate(status="paused")


def test_display_name_bounds():
    assert schemas.UserUpdate(display_name="  Ada ").display_name == "Ada"
    with pytest.raises(ValidationError):
        schemas.UserUpdate(display_name=" ")
    with pytest.raises(ValidationError):
        schemas.UserUpdate(display_name="x" * 81)
