from dataclasses import dataclass
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Node:
    """
    A graph node as the user typed it.

    Attributes:
        id    : Unique identifier, always a string ("A", "1", …).
        label : Human-readable name shown on the preview canvas (defaults to id).
    """

    id:    str
    label: Optional[str] = None

    @property
    def display(self) -> str:
        return self.label or self.id

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id}
        if self.label:
            out["label"] = self.label
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "Node":
        if not isinstance(data, dict) or "id" not in data:
            raise ValueError("every node needs an \"id\"")
        raw = data["id"]
        if isinstance(raw, bool) or not isinstance(raw, (str, int)):
            raise ValueError(f"node id must be a string, got {raw!r}")
        nid = str(raw).strip()
        if not nid:
            raise ValueError("node id must not be blank")
        label = data.get("label")
        return cls(id=nid, label=str(label) if label else None)
