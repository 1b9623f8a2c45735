"""Shared enumerations used across the server."""

from __future__ import annotations

from enum import StrEnum

# -- Execution ---------------------------------------------------------------


class ExecutionStatus(StrEnum):
    """Terminal (or in-flight) state of an execution chain."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# -- Schedule ----------------------------------------------------------------


class ScheduleFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# -- Events ------------------------------------------------------------------


class EventType(StrEnum):
    """Message types exchanged over the execution WebSocket."""

    # Server -> client
    CONNECTION = "connection"
    OUTPUT = "output"
    START = "start"
    COMPLETE = "complete"
    ERROR = "error"
    END = "end"
    HEARTBEAT_ACK = "heartbeat_ack"

    # Client -> server
    HEARTBEAT = "heartbeat"
