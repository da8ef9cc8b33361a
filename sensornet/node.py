"""Node handle that applications are installed on."""
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .application import Application


class Node:
    """Opaque participant in the network; only its name is used as an address."""

    def __init__(self, name: str):
        if not name:
            raise ValueError("node must have a name")
        self.name = name
        self.applications: List["Application"] = []

    def add_application(self, app: "Application") -> None:
        self.applications.append(app)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"Node({self.name!r})"
