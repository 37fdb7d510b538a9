"""In-memory lead store used by the CLI and the test-suite."""
from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from .models import User


@dataclass
class StoredLead:
    id: int
    fields: Dict[str, Any] = field(default_factory=dict)


class InMemoryLeadStore:
    """Thread-safe store keeping every created record in plain lists."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self.users: List[User] = list(users)
        self.leads: List[StoredLead] = []
        self.remarks: List[Dict[str, Any]] = []
        self.stage_history: List[Dict[str, Any]] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def list_users(self) -> List[User]:
        return list(self.users)

    def create_lead(self, fields: Mapping[str, Any]) -> StoredLead:
        with self._lock:
            lead = StoredLead(id=next(self._ids), fields=dict(fields))
            self.leads.append(lead)
        return lead

    def create_remark(self, fields: Mapping[str, Any]) -> None:
        with self._lock:
            self.remarks.append(dict(fields))

    def create_stage_history(self, fields: Mapping[str, Any]) -> None:
        with self._lock:
            self.stage_history.append(dict(fields))


__all__ = ["InMemoryLeadStore", "StoredLead"]
