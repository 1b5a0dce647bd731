# tests/test_document_model.py
"""Tests for the snapshot holder (mindmap_core/document_model.py)."""
import pytest

from mindmap_core.document_model import DocumentModel
from mindmap_core.errors import Forbidden, NotFound
from mindmap_core.mutations import AddChild, DeleteSubtree, RenameNode


def test_new_model_has_root():
    model = DocumentModel.new("Plans")
    assert model.root_id is not None
    assert model.document.name == "Plans"
    assert not model.is_dirty


def test_apply_swaps_snapshot_and_returns_result(sample_document):
    model = DocumentModel(sample_document)
    before = model.document

    removed = model.apply(DeleteSubtree("A"))

    assert removed == 2
    assert model.document is not before
    assert len(before.nodes) == 4  # old snapshot untouched
    assert model.is_dirty


def test_failed_mutation_keeps_snapshot(sample_document):
    model = DocumentModel(sample_document)
    before = model.document

    with pytest.raises(Forbidden):
        model.apply(DeleteSubtree("R"))
    with pytest.raises(NotFound):
        model.apply(AddChild("missing"))

    assert model.document is before
    assert not model.is_dirty


def test_noop_does_not_dirty_or_notify(sample_document):
    model = DocumentModel(sample_document)
    seen = []
    model.on_change(seen.append)

    assert model.apply(RenameNode("A", "  ")) is False
    assert not model.is_dirty
    assert seen == []


def test_change_callbacks_receive_snapshot(sample_document):
    model = DocumentModel(sample_document)
    seen = []
    model.on_change(seen.append)

    model.apply(RenameNode("A", "Apple"))

    assert seen[-1].get_node("A").label == "Apple"


def test_failing_callback_does_not_abort_mutation(sample_document):
    model = DocumentModel(sample_document)

    def broken(document):
        raise RuntimeError("render crashed")

    model.on_change(broken)
    model.apply(RenameNode("A", "Apple"))

    assert model.get_node("A").label == "Apple"


def test_children_of(sample_document):
    model = DocumentModel(sample_document)
    assert {n.id for n in model.children_of("R")} == {"A", "B"}
    assert model.children_of("C") == []


def test_load_and_mark_saved(sample_document):
    model = DocumentModel.new()
    model.apply(AddChild(model.root_id))
    assert model.is_dirty

    model.load(sample_document)
    assert not model.is_dirty
    assert model.get_node("C") is not None

    model.apply(RenameNode("C", "Code"))
    model.mark_saved()
    assert not model.is_dirty
    assert model.get_state()["document"]["name"] == "Sample"
