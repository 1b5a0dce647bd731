"""
Document validation - Check mind maps for structural issues.

Used by the persistence adapter when hydrating a document, by the REST server
before storing one, and by the CLI `validate` command.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .errors import ValidationFailed
from .mutations import descendants

if TYPE_CHECKING:
    from .models import Document


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invariant violation, the document is unusable
    WARNING = "warning"  # Allowed, but probably not intended
    INFO = "info"


@dataclass
class ValidationIssue:
    """A single validation issue found in a document."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.edge_id:
            result["edge_id"] = self.edge_id
        return result


def validate_document(document: "Document") -> list[ValidationIssue]:
    """
    Validate a document and return a list of issues.

    Checks for:
    - Duplicate node or edge ids - ERROR
    - Edges whose source/target doesn't exist - ERROR
    - Missing root, or more than one root - ERROR
    - Self-referencing edges - WARNING
    - Duplicate edges (same source->target) - WARNING
    - Nodes not reachable from the root - WARNING
    - Empty document - INFO
    """
    issues: list[ValidationIssue] = []

    nodes = document.nodes
    edges = document.edges

    if not nodes:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Document has no nodes"
        ))

    for node_id, count in Counter(n.id for n in nodes).items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Node id used {count} times",
                node_id=node_id
            ))
    for edge_id, count in Counter(e.id for e in edges).items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge id used {count} times",
                edge_id=edge_id
            ))

    node_ids = {n.id for n in nodes}
    for edge in edges:
        if edge.source not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent source node: {edge.source}",
                edge_id=edge.id
            ))
        if edge.target not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent target node: {edge.target}",
                edge_id=edge.id
            ))

    roots = [n for n in nodes if n.is_root]
    if nodes and not roots:
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message="Document has no root node"
        ))
    for extra in roots[1:]:
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message="Document has more than one root node",
            node_id=extra.id
        ))

    for edge in edges:
        if edge.source == edge.target:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing edge (node points to itself)",
                edge_id=edge.id,
                node_id=edge.source
            ))

    seen_pairs: set[tuple[str, str]] = set()
    for edge in edges:
        pair = (edge.source, edge.target)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate edge from {edge.source} to {edge.target}",
                edge_id=edge.id
            ))
        else:
            seen_pairs.add(pair)

    if len(roots) == 1:
        reachable = descendants(document, roots[0].id)
        for node in nodes:
            if node.id not in reachable:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    message=f"Node is not reachable from the root: {node.label}",
                    node_id=node.id
                ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """Create a summary of validation issues with counts by severity."""
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }


def ensure_valid(document: "Document") -> "Document":
    """Raise ValidationFailed if the document breaks a structural invariant."""
    errors = [i for i in validate_document(document) if i.severity == IssueSeverity.ERROR]
    if errors:
        detail = "; ".join(i.message for i in errors)
        raise ValidationFailed(f"Invalid mind map: {detail}")
    return document
