#!/usr/bin/env python3
"""Mind map CLI - browse and edit stored mind maps from the shell.

Every command prints one JSON object on stdout. Editing commands load the
mind map, apply one mutation, optionally re-run the layout, and save the
whole document back.
"""

import argparse
import asyncio
import json
import sys

import structlog

from mindmap_core.document_model import DocumentModel
from mindmap_core.errors import LayoutUnavailable, MindMapError, PersistenceFailed
from mindmap_core.layout import LayoutAdapter
from mindmap_core.log import configure_logging
from mindmap_core.models import Document, NodeKind
from mindmap_core.mutations import AddChild, Connect, DeleteSubtree, RemoveEdge, RenameNode
from mindmap_core.persistence import PersistenceAdapter
from mindmap_core.settings import Settings
from mindmap_core.validation import validate_document, validation_summary

logger = structlog.get_logger(__name__)


def _json_out(data, code: int = 0):
    print(json.dumps(data, default=str))
    sys.exit(code)


def _error_out(error: Exception):
    payload = {"status": "error", "error": str(error), "type": type(error).__name__}
    if isinstance(error, PersistenceFailed):
        payload["retryable"] = error.retryable
    _json_out(payload, code=1)


def _document_out(document: Document, **extra):
    return {"status": "ok", **extra, "document": {"id": document.id, **document.to_wire()}}


async def _edit(adapter: PersistenceAdapter, settings: Settings, document_id: str, mutation, relayout: bool):
    """Load, apply one mutation, re-layout if asked, save."""
    model = DocumentModel(await adapter.fetch(document_id))
    result = model.apply(mutation)
    if relayout:
        layout = LayoutAdapter(node_width=settings.node_width, node_height=settings.node_height)
        try:
            await layout.run(model)
        except LayoutUnavailable as e:
            logger.warning("layout_skipped", error=str(e))
    if model.is_dirty:
        saved = await adapter.update(model.document)
        model.load(saved)
    return result, model.document


# ── Commands ────────────────────────────────────────────────────────────────

async def cmd_list(adapter, settings, args):
    summaries = await adapter.list_documents(args.owner_id)
    return {"status": "ok", "mindmaps": [s.model_dump(mode="json", by_alias=True) for s in summaries]}


async def cmd_show(adapter, settings, args):
    return _document_out(await adapter.fetch(args.id))


async def cmd_new(adapter, settings, args):
    document = Document.new(name=args.name)
    created = await adapter.create(document, owner_id=args.owner_id)
    return _document_out(created)


async def cmd_delete(adapter, settings, args):
    return {"status": "ok", "message": await adapter.delete(args.id)}


async def cmd_add_child(adapter, settings, args):
    mutation = AddChild(args.parent_id, NodeKind(args.kind), args.label)
    node_id, document = await _edit(adapter, settings, args.id, mutation, not args.no_layout)
    return _document_out(document, node_id=node_id)


async def cmd_rename(adapter, settings, args):
    renamed, document = await _edit(adapter, settings, args.id, RenameNode(args.node_id, args.label), False)
    return _document_out(document, renamed=renamed)


async def cmd_connect(adapter, settings, args):
    edge_id, document = await _edit(adapter, settings, args.id, Connect(args.source, args.target), False)
    return _document_out(document, edge_id=edge_id)


async def cmd_disconnect(adapter, settings, args):
    _, document = await _edit(adapter, settings, args.id, RemoveEdge(args.edge_id), False)
    return _document_out(document)


async def cmd_delete_node(adapter, settings, args):
    removed, document = await _edit(
        adapter, settings, args.id, DeleteSubtree(args.node_id), not args.no_layout
    )
    return _document_out(document, removed=removed)


async def cmd_layout(adapter, settings, args):
    model = DocumentModel(await adapter.fetch(args.id))
    await LayoutAdapter(node_width=settings.node_width, node_height=settings.node_height).run(model)
    saved = await adapter.update(model.document)
    return _document_out(saved)


async def cmd_validate(adapter, settings, args):
    document = await adapter.fetch(args.id, validate=False)
    issues = validate_document(document)
    return {
        "status": "ok",
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues),
    }


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "new": cmd_new,
    "delete": cmd_delete,
    "add-child": cmd_add_child,
    "rename": cmd_rename,
    "connect": cmd_connect,
    "disconnect": cmd_disconnect,
    "delete-node": cmd_delete_node,
    "layout": cmd_layout,
    "validate": cmd_validate,
}


async def run_command(args, settings: Settings, adapter: PersistenceAdapter = None) -> dict:
    """Run one non-serve command and return its JSON payload."""
    adapter = adapter or PersistenceAdapter.from_settings(settings)
    try:
        return await COMMANDS[args.command](adapter, settings, args)
    finally:
        await adapter.aclose()


# ── Main ────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mindmap", description="Mind map CLI")
    parser.add_argument("--api", default=None, help="Base URL of the mind map API")
    parser.add_argument("--owner-id", default=None)
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--log-json", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    # Server
    p = sub.add_parser("serve")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)
    p.add_argument("--data-dir", default=None)

    # Documents
    sub.add_parser("list")

    p = sub.add_parser("show")
    p.add_argument("--id", required=True)

    p = sub.add_parser("new")
    p.add_argument("--name", default="Untitled Mind Map")

    p = sub.add_parser("delete")
    p.add_argument("--id", required=True)

    # Nodes
    p = sub.add_parser("add-child")
    p.add_argument("--id", required=True)
    p.add_argument("--parent-id", required=True)
    p.add_argument("--label", default=None)
    p.add_argument("--kind", default="text", choices=[k.value for k in NodeKind])
    p.add_argument("--no-layout", action="store_true")

    p = sub.add_parser("rename")
    p.add_argument("--id", required=True)
    p.add_argument("--node-id", required=True)
    p.add_argument("--label", required=True)

    p = sub.add_parser("delete-node")
    p.add_argument("--id", required=True)
    p.add_argument("--node-id", required=True)
    p.add_argument("--no-layout", action="store_true")

    # Edges
    p = sub.add_parser("connect")
    p.add_argument("--id", required=True)
    p.add_argument("--source", required=True)
    p.add_argument("--target", required=True)

    p = sub.add_parser("disconnect")
    p.add_argument("--id", required=True)
    p.add_argument("--edge-id", required=True)

    # Layout / analysis
    p = sub.add_parser("layout")
    p.add_argument("--id", required=True)

    p = sub.add_parser("validate")
    p.add_argument("--id", required=True)

    return parser


def settings_from_args(args) -> Settings:
    overrides = {}
    if args.api:
        overrides["api_base_url"] = args.api
    if args.owner_id:
        overrides["owner_id"] = args.owner_id
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    if args.log_json:
        overrides["log_json"] = True
    if args.command == "serve":
        if args.host:
            overrides["host"] = args.host
        if args.port:
            overrides["port"] = args.port
        if args.data_dir:
            overrides["data_dir"] = args.data_dir
    return Settings(**overrides)


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    # Keep stderr quiet for one-shot commands unless asked
    level = settings.log_level if args.command == "serve" or args.verbose else "WARNING"
    configure_logging(level, settings.log_json)

    if args.command == "serve":
        from mindmap_server.main import run
        run(settings)
        return

    try:
        result = asyncio.run(run_command(args, settings))
    except MindMapError as e:
        _error_out(e)
    _json_out(result)


if __name__ == "__main__":
    main()
