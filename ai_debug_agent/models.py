"""
Diagnostic Session Models

A DebugSession is an ordered, append-only list of Batches; each Batch holds
the Actions (commands) run in one round plus the model's analysis of them.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ActionType(Enum):
    """Kinds of action a batch can hold"""
    COMMAND = "command"


class ActionStatus(Enum):
    """Lifecycle of an action"""
    NEW = "new"
    COMPLETED = "completed"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Action:
    """One command attempt. The id, not the command text, identifies it."""
    name: str
    action_type: ActionType = ActionType.COMMAND
    result: str = ""
    status: ActionStatus = ActionStatus.NEW
    timestamp: str = ""
    remote: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def is_command(self) -> bool:
        return self.action_type == ActionType.COMMAND

    def is_remote(self) -> bool:
        return bool(self.remote)

    def is_completed(self) -> bool:
        return self.status == ActionStatus.COMPLETED

    def complete(self, result: str) -> None:
        """Record the result and move the action from new to completed."""
        if self.is_completed():
            raise ValueError(f"Action {self.id} ({self.name}) is already completed")
        self.result = result
        self.status = ActionStatus.COMPLETED
        self.timestamp = _now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "action_type": self.action_type.value,
            "result": self.result,
            "status": self.status.value,
            "timestamp": self.timestamp,
            "remote": self.remote or "",
        }


@dataclass
class Batch:
    """One round of diagnostic commands plus their analysis."""
    description: str
    actions: List[Action] = field(default_factory=list)
    analysis: str = ""
    next_steps: List[str] = field(default_factory=list)
    completed: bool = False

    def add_action(self, name: str,
                   action_type: ActionType = ActionType.COMMAND,
                   remote: Optional[str] = None) -> Action:
        action = Action(name=name, action_type=action_type, remote=remote)
        self.actions.append(action)
        return action

    def pending_actions(self) -> List[Action]:
        return [action for action in self.actions if not action.is_completed()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "actions": [action.to_dict() for action in self.actions],
            "analysis": self.analysis,
            "next_steps": list(self.next_steps),
            "completed": self.completed,
        }


@dataclass
class DebugSession:
    """
    The full diagnostic run.

    Batches are append-only and kept in execution order; the last batch is
    the current one. The session is mutated only by the workflow that owns
    it and is read-only once the workflow returns.
    """
    issue_description: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    batches: List[Batch] = field(default_factory=list)
    start_time: str = ""
    end_time: str = ""
    summary: str = ""
    diagnosed: bool = False
    config: Optional[Any] = None

    def start(self) -> None:
        self.start_time = _now()

    def end(self) -> None:
        self.end_time = _now()

    def add_batch(self, batch: Batch) -> Batch:
        self.batches.append(batch)
        return batch

    def last_batch(self) -> Optional[Batch]:
        if not self.batches:
            return None
        return self.batches[-1]

    def completed_batches(self) -> List[Batch]:
        return [batch for batch in self.batches if batch.completed]

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "issue_description": self.issue_description,
            "batches": [batch.to_dict() for batch in self.batches],
            "start_time": self.start_time,
            "end_time": self.end_time,
            "summary": self.summary,
            "diagnosed": self.diagnosed,
        }
        if self.config is not None and hasattr(self.config, "to_dict"):
            data["config"] = self.config.to_dict()
        return data
