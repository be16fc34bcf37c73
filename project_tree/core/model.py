from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional


NodeType = Literal["phase", "activity", "deliverable", "part"]
WeightUnit = Literal["percent", "points"]
StatusPolicy = Literal["derived-from-children", "stored-authoritative"]


# Raw records: the typed shape of persistence rows, produced by validate_tree.


@dataclass(frozen=True)
class RawActivity:
    id: str
    title: str
    description: Optional[str] = None
    status: Optional[str] = None
    progress_percent: float = 0
    owner_user_id: Optional[str] = None
    planned_start_date: Optional[str] = None
    planned_end_date: Optional[str] = None
    actual_start_date: Optional[str] = None
    actual_end_date: Optional[str] = None


@dataclass(frozen=True)
class RawPhase:
    id: str
    title: str
    description: Optional[str] = None
    planned_start_date: Optional[str] = None
    planned_end_date: Optional[str] = None
    display_order: Optional[int] = None
    activities: tuple[RawActivity, ...] = ()


@dataclass(frozen=True)
class RawPart:
    id: str
    title: str
    description: Optional[str] = None
    status: Optional[str] = None
    part_weight: float = 0
    progress_percent: float = 0
    assigned_user_id: Optional[str] = None


@dataclass(frozen=True)
class RawDeliverable:
    id: str
    title: str
    description: Optional[str] = None
    status: Optional[str] = None
    weight: float = 0
    weight_unit: Optional[str] = None
    display_order: Optional[int] = None
    parts: tuple[RawPart, ...] = ()


@dataclass(frozen=True)
class RawProjectTree:
    project_id: Optional[str]
    phases: tuple[RawPhase, ...]
    deliverables: tuple[RawDeliverable, ...]


# Normalized tree: the only shape the query and statistics engines see.


@dataclass(frozen=True)
class TreeNode:
    id: str
    name: str
    type: NodeType
    status: str
    description: Optional[str]
    progress: int
    can_edit: bool
    can_delete: bool

    weight: Optional[float] = None
    weight_unit: Optional[WeightUnit] = None
    can_upload: Optional[bool] = None
    children: Optional[tuple["TreeNode", ...]] = None

    owner: Optional[str] = None
    assigned_to: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    planned_start_date: Optional[str] = None
    planned_end_date: Optional[str] = None
    actual_start_date: Optional[str] = None
    actual_end_date: Optional[str] = None
    display_order: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "description": self.description,
            "progress": self.progress,
            "canEdit": self.can_edit,
            "canDelete": self.can_delete,
        }
        optional = {
            "weight": self.weight,
            "weightUnit": self.weight_unit,
            "canUpload": self.can_upload,
            "owner": self.owner,
            "assignedTo": self.assigned_to,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "plannedStartDate": self.planned_start_date,
            "plannedEndDate": self.planned_end_date,
            "actualStartDate": self.actual_start_date,
            "actualEndDate": self.actual_end_date,
            "displayOrder": self.display_order,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        if self.children is not None:
            out["children"] = [c.to_dict() for c in self.children]
        return out


@dataclass(frozen=True)
class FormattedTree:
    phases: tuple[TreeNode, ...]
    deliverables: tuple[TreeNode, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "phases": [p.to_dict() for p in self.phases],
            "deliverables": [d.to_dict() for d in self.deliverables],
        }
