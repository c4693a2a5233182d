"""FastAPI router for designer session endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flowdesigner.core.types import Position
from flowdesigner.designer.controller import Connection
from flowdesigner.designer.palette import load_palette
from flowdesigner.designer.sessions import DesignerSession, DesignerSessionManager
from flowdesigner.export.models import ExportError, ExportInProgressError
from flowdesigner.graph.models import DiagramDocument, NodeType

router = APIRouter()


class CreateSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: int = Field(alias="projectId")
    flow_data: dict[str, Any] | None = Field(default=None, alias="flowData")


class AddNodeRequest(BaseModel):
    type: str
    label: str
    position: Position = Field(default_factory=Position)


class SaveRequest(BaseModel):
    name: str
    description: str = ""


def _manager(request: Request) -> DesignerSessionManager:
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Designer sessions not available")
    return manager


def _session(request: Request, session_id: str) -> DesignerSession:
    session = _manager(request).get_session(session_id)
    if session is None or session.designer is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id!r} not found")
    return session


def _session_payload(session: DesignerSession) -> dict[str, Any]:
    return {
        "sessionId": session.session_id,
        "projectId": session.project_id,
        "createdAt": session.created_at.isoformat(),
        "changeCount": session.change_count,
        "lastSaved": session.last_saved.to_json_dict() if session.last_saved else None,
        "document": session.designer.store.to_document().to_json_dict(),
        "toasts": [toast.model_dump(mode="json") for toast in session.notifier.store.list_all()],
    }


@router.get("/api/designer/palette")
async def get_palette(request: Request) -> list[dict[str, Any]]:
    """List the node palette."""
    settings = request.app.state.settings
    return [item.model_dump(mode="json") for item in load_palette(settings.designer.palette_path)]


@router.post("/api/designer/sessions")
async def create_session(body: CreateSessionRequest, request: Request) -> dict[str, Any]:
    """Mount a designer for a project, optionally loading a saved document."""
    flow_data = None
    if body.flow_data is not None:
        try:
            flow_data = DiagramDocument.model_validate(body.flow_data)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid flow data: {exc.error_count()} error(s)")
    session = _manager(request).create_session(body.project_id, flow_data)
    return _session_payload(session)


@router.get("/api/designer/sessions/{session_id}")
async def get_session(session_id: str, request: Request) -> dict[str, Any]:
    """Get a session and its current document."""
    return _session_payload(_session(request, session_id))


@router.delete("/api/designer/sessions/{session_id}")
async def close_session(session_id: str, request: Request) -> dict[str, Any]:
    """Unmount a session's designer."""
    if not _manager(request).close_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id!r} not found")
    return {"message": "Session closed"}


@router.post("/api/designer/sessions/{session_id}/nodes")
async def add_node(session_id: str, body: AddNodeRequest, request: Request) -> dict[str, Any]:
    """Add a node at a diagram position."""
    session = _session(request, session_id)
    try:
        node_type = NodeType(body.type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid node type: {body.type!r}")
    node = session.designer.store.add_node(node_type, body.label, body.position)
    if node is None:
        raise HTTPException(status_code=409, detail="Node id collision, please retry")
    return node.to_json_dict()


@router.patch("/api/designer/sessions/{session_id}/nodes/{node_id}")
async def update_node(
    session_id: str, node_id: str, patch: dict[str, Any], request: Request
) -> dict[str, Any]:
    """Merge a patch into a node; unknown ids leave the document unchanged."""
    session = _session(request, session_id)
    try:
        session.designer.store.update_node(node_id, patch)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid node patch: {exc.error_count()} error(s)")
    return session.designer.store.to_document().to_json_dict()


@router.delete("/api/designer/sessions/{session_id}/nodes/{node_id}")
async def delete_node(session_id: str, node_id: str, request: Request) -> dict[str, Any]:
    """Delete a node and the edges attached to it."""
    session = _session(request, session_id)
    session.designer.store.delete_node(node_id)
    return session.designer.store.to_document().to_json_dict()


@router.post("/api/designer/sessions/{session_id}/edges")
async def add_edge(session_id: str, body: Connection, request: Request) -> dict[str, Any]:
    """Connect two nodes; repeated connections are ignored."""
    session = _session(request, session_id)
    session.designer.controller.on_connect(body)
    return session.designer.store.to_document().to_json_dict()


@router.post("/api/designer/sessions/{session_id}/reset")
async def reset_session(session_id: str, request: Request) -> dict[str, Any]:
    """Restore the default diagram."""
    session = _session(request, session_id)
    session.handle.reset_designer()
    return session.designer.store.to_document().to_json_dict()


@router.post("/api/designer/sessions/{session_id}/save")
async def save_session(session_id: str, body: SaveRequest, request: Request) -> dict[str, Any]:
    """Name and save the diagram."""
    session = _session(request, session_id)
    dialog = session.handle.show_save_dialog()
    dialog.name = body.name
    dialog.description = body.description
    if not dialog.confirm():
        dialog.cancel()
        raise HTTPException(status_code=400, detail="Name is required")
    return _session_payload(session)


@router.post("/api/designer/sessions/{session_id}/export")
async def export_session(session_id: str, request: Request) -> Response:
    """Render the diagram as a PDF."""
    session = _session(request, session_id)
    try:
        artifact = await session.designer.export_artifact()
    except ExportInProgressError:
        raise HTTPException(status_code=409, detail="An export of this flow diagram is already in progress")
    except ExportError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to export flow diagram as PDF: {exc}")
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )
