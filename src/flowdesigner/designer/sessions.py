"""Designer sessions hosted by the HTTP service.

Each session owns a mounted :class:`FlowDesigner` and plays the owning page:
it keeps the last document delivered through ``on_change`` and the last
explicit save.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from flowdesigner.core.config import Settings
from flowdesigner.designer.designer import DesignerHandle, FlowDesigner
from flowdesigner.graph.models import DiagramDocument, DiagramMetadata
from flowdesigner.notifications.service import ToastNotifier


@dataclass
class DesignerSession:
    project_id: int
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notifier: ToastNotifier = field(default_factory=ToastNotifier)
    designer: FlowDesigner | None = None
    handle: DesignerHandle | None = None
    last_change: DiagramDocument | None = None
    last_saved: DiagramMetadata | None = None
    change_count: int = 0

    def record_change(self, document: DiagramDocument) -> None:
        self.last_change = document
        self.change_count += 1

    def record_save(self, name: str, description: str) -> None:
        self.last_saved = DiagramMetadata(name=name, description=description)


class DesignerSessionManager:
    """In-memory registry of mounted designers."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()
        self._sessions: dict[str, DesignerSession] = {}

    def create_session(
        self,
        project_id: int,
        flow_data: DiagramDocument | None = None,
    ) -> DesignerSession:
        session = DesignerSession(project_id=project_id)
        designer = FlowDesigner(
            project_id,
            flow_data,
            on_change=session.record_change,
            on_save=session.record_save,
            settings=self._settings,
            notifier=session.notifier,
        )
        session.designer = designer
        session.handle = designer.mount()
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> DesignerSession | None:
        return self._sessions.get(session_id)

    def list_sessions(self) -> list[DesignerSession]:
        return list(self._sessions.values())

    def close_session(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.designer is not None:
            session.designer.unmount()
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close_session(session_id)
