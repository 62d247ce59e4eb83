"""Records exchanged with the storage collaborator and the renderer."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from transitmap.types import BranchId, Direction, MessageId, NodeType, ProjectId


class DiagnosticKind(str, Enum):
    """Conditions the engine recovered from on its own."""

    MISSING_ROOT = "missing_root"
    BRANCH_POINT_NOT_FOUND = "branch_point_not_found"
    COLOR_PALETTE_EXHAUSTED = "color_palette_exhausted"
    SIBLING_COLOR_REUSE = "sibling_color_reuse"
    UNREACHABLE_BRANCH = "unreachable_branch"
    DUPLICATE_BRANCH = "duplicate_branch"
    DEPTH_MISMATCH = "depth_mismatch"


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind
    message: str
    branch_id: BranchId | None = None


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Branch(BaseModel):
    id: BranchId
    parent_branch_id: BranchId | None = None
    branch_point_node_id: MessageId | None = None
    depth: int = Field(default=0, ge=0)
    color: str | None = None
    name: str | None = None
    created_at: datetime | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("id")
    @classmethod
    def non_empty_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Branch id cannot be empty")
        return v

    @field_validator("parent_branch_id", "branch_point_node_id", "color", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @property
    def preferred_direction(self) -> Direction | None:
        """Explicit side requested for this branch, if any.

        Read from ``metadata["direction"]``, else from ``metadata["layout"]``
        when that dict carries only a requested side and no computed x/y.
        """
        if not self.metadata:
            return None
        preference = Direction.from_preference(self.metadata.get("direction"))
        if preference is not None:
            return preference
        layout = self.stored_layout
        if layout is None or "x" in layout or "y" in layout:
            return None
        return Direction.from_preference(layout.get("direction"))

    @property
    def stored_layout(self) -> dict[str, Any] | None:
        if not self.metadata:
            return None
        layout = self.metadata.get("layout")
        return layout if isinstance(layout, dict) else None


class Message(BaseModel):
    id: MessageId
    branch_id: BranchId
    position: int
    type: NodeType = NodeType.USER_MESSAGE
    role: str | None = None
    text: str | None = None
    created_at: datetime | None = None

    @field_validator("id", "branch_id")
    @classmethod
    def non_empty_string(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v

    @property
    def is_conversational(self) -> bool:
        return self.type.is_conversational


class BranchLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    direction: Direction
    sibling_index: int = Field(ge=0)
    level: int = Field(ge=0)
    width: float
    height: float


class LayoutResult(BaseModel):
    layouts: dict[BranchId, BranchLayout] = Field(default_factory=dict)
    width: float
    height: float
    center_x: float
    strategy: str
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.layouts


class ColorAssignment(BaseModel):
    colors: dict[BranchId, str] = Field(default_factory=dict)
    diagnostics: list[Diagnostic] = Field(default_factory=list)


class BranchLayoutRecord(BaseModel):
    """One branch's computed layout and color, as handed to storage."""

    model_config = ConfigDict(frozen=True)

    branch_id: BranchId
    x: float
    y: float
    direction: Direction
    sibling_index: int
    level: int
    width: float
    height: float
    color: str

    @classmethod
    def from_layout(cls, branch_id: BranchId, layout: BranchLayout, color: str) -> BranchLayoutRecord:
        return cls(branch_id=branch_id, color=color, **layout.model_dump())

    def as_metadata(self) -> dict[str, Any]:
        """Payload stored under the branch's ``metadata["layout"]``."""
        return {
            "x": self.x,
            "y": self.y,
            "direction": self.direction.value,
            "sibling_index": self.sibling_index,
            "level": self.level,
            "width": self.width,
            "height": self.height,
        }


class LayoutReport(BaseModel):
    """Records for every laid-out branch plus everything diagnosed on the way."""

    records: dict[BranchId, BranchLayoutRecord] = Field(default_factory=dict)
    layout: LayoutResult
    diagnostics: list[Diagnostic] = Field(default_factory=list)


class ProjectSnapshot(BaseModel):
    """Full branch/message snapshot of one project, read in a single call."""

    project_id: ProjectId = ProjectId("default")
    branches: list[Branch] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
