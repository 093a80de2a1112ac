import pytest

from labflow.services.progress import WorkflowStartError, first_position, next_position

ORDER = ["a1", "a2", "a3"]
STEPS = {"a1": ["s1", "s2"], "a2": [], "a3": ["s3"]}


def test_first_position_is_first_step_of_first_assay():
    assert first_position(ORDER, STEPS) == ("a1", "s1")


def test_first_position_without_assays():
    with pytest.raises(WorkflowStartError, match="No assays found for workflow"):
        first_position([], {})


def test_first_position_when_first_assay_has_no_steps():
    with pytest.raises(WorkflowStartError, match="No steps found for first assay"):
        first_position(["a2", "a1"], STEPS)


def test_next_position_within_assay():
    assert next_position(ORDER, STEPS, "a1", "s1") == ("a1", "s2")


def test_next_position_skips_empty_assays():
    assert next_position(ORDER, STEPS, "a1", "s2") == ("a3", "s3")


def test_next_position_after_last_step_is_none():
    assert next_position(ORDER, STEPS, "a3", "s3") is None


def test_next_position_from_unknown_assay_restarts():
    assert next_position(ORDER, STEPS, "gone", "s9") == ("a1", "s1")


def test_next_position_from_missing_step_moves_to_next_assay():
    assert next_position(ORDER, STEPS, "a1", "deleted") == ("a3", "s3")
