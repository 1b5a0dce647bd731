# tests/test_validation.py
"""Tests for structural validation (mindmap_core/validation.py)."""
import pytest

from mindmap_core.errors import ValidationFailed
from mindmap_core.models import Document, Edge, Node
from mindmap_core.validation import (
    IssueSeverity,
    ensure_valid,
    validate_document,
    validation_summary,
)


def _errors(doc):
    return [i for i in validate_document(doc) if i.severity == IssueSeverity.ERROR]


def test_sample_document_is_clean(sample_document):
    assert validate_document(sample_document) == []


def test_empty_document_is_info_only():
    issues = validate_document(Document())
    assert [i.severity for i in issues] == [IssueSeverity.INFO]
    assert validation_summary(issues)["valid"] is True


def test_dangling_edge_is_error(sample_document):
    doc = sample_document.model_copy(update={
        "edges": sample_document.edges + (Edge(id="bad", source="A", target="ghost"),)
    })
    errors = _errors(doc)
    assert len(errors) == 1
    assert errors[0].edge_id == "bad"


def test_duplicate_ids_are_errors(sample_document):
    doc = sample_document.model_copy(update={
        "nodes": sample_document.nodes + (Node(id="A", label="Again"),),
        "edges": sample_document.edges + (Edge(id="e1", source="R", target="B"),),
    })
    messages = [i.message for i in _errors(doc)]
    assert "Node id used 2 times" in messages
    assert "Edge id used 2 times" in messages


def test_root_count(sample_document):
    no_root = Document(nodes=(Node(id="x"),))
    assert any("no root" in i.message for i in _errors(no_root))

    two_roots = sample_document.model_copy(update={
        "nodes": sample_document.nodes + (Node(id="R2", is_root=True),)
    })
    assert any("more than one root" in i.message for i in _errors(two_roots))


def test_self_loop_and_duplicate_edge_are_warnings(sample_document):
    doc = sample_document.model_copy(update={
        "edges": sample_document.edges + (
            Edge(id="loop", source="B", target="B"),
            Edge(id="dup", source="R", target="A"),
        )
    })
    issues = validate_document(doc)
    summary = validation_summary(issues)

    assert summary["errors"] == 0
    assert summary["warnings"] == 2


def test_unreachable_node_is_warning(sample_document):
    doc = sample_document.model_copy(update={
        "nodes": sample_document.nodes + (Node(id="island", label="Island"),)
    })
    issues = validate_document(doc)
    assert issues[0].node_id == "island"
    assert issues[0].to_dict()["type"] == "warning"


def test_ensure_valid_raises(sample_document):
    assert ensure_valid(sample_document) is sample_document
    with pytest.raises(ValidationFailed):
        ensure_valid(Document(nodes=(Node(id="x"),)))
