"""
Service / facade layer.

This module turns a decoded request body into a stored event entry. It
is intentionally free of SQL; it calls `EventLogRepo` to perform the
write. All write paths should go through this service.

Key responsibilities:
- build an `EventEntry` from the body (unknown fields are dropped)
- translate schema failures into `EventValidationError`
- assign identifiers to embedded readings
- optionally derive missing air metrics
"""

import logging
import math
import uuid
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from models import EventEntry
from psychrometrics import fill_air_metrics
from repo_events import EventLogRepo

logger = logging.getLogger(__name__)

REQUIRED_MESSAGES = {
    "sender": "Enter the name of the sender/device",
    "sensor": "Enter the name/model of the sensor",
}


class EventValidationError(ValueError):
    """The submitted body does not satisfy the event entry schema.

    `errors` maps a dotted field path (e.g. `airReadings.0.humidity`) to a
    description with `kind`, `path`, `message` and, when known, `value`.
    """

    def __init__(self, errors: Dict[str, Dict[str, Any]]):
        self.errors = errors
        summary = ", ".join(f"{path}: {err['message']}" for path, err in errors.items())
        super().__init__(f"EventEntry validation failed: {summary}")

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "EventValidationError":
        errors: Dict[str, Dict[str, Any]] = {}
        for err in exc.errors():
            path = ".".join(str(part) for part in err["loc"])
            errors.setdefault(path, _describe(err, path))
        return cls(errors)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": "ValidationError", "message": str(self), "errors": self.errors}


def _describe(err: Mapping[str, Any], path: str) -> Dict[str, Any]:
    field = str(err["loc"][-1]) if err["loc"] else path
    value = err.get("input")
    ctx = err.get("ctx") or {}
    kind = err["type"]

    if kind in ("missing", "string_too_short"):
        kind = "required"
        message = REQUIRED_MESSAGES.get(field, f"Path `{field}` is required.")
    elif kind == "less_than_equal":
        kind = "max"
        message = f"Path `{field}` ({value}) is more than maximum allowed value ({ctx.get('le')})."
    elif kind == "greater_than_equal":
        kind = "min"
        message = f"Path `{field}` ({value}) is less than minimum allowed value ({ctx.get('ge')})."
    else:
        message = err["msg"]

    described: Dict[str, Any] = {"name": "ValidatorError", "kind": kind, "path": path, "message": message}
    # the input of a missing field is its parent object
    if err["type"] != "missing" and isinstance(value, (str, int, float, bool)):
        # NaN and infinities have no JSON form
        if not (isinstance(value, float) and not math.isfinite(value)):
            described["value"] = value
    return described


def _with_ids(readings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{**reading, "_id": str(uuid.uuid4())} for reading in readings]


class EventLogService:
    """Validation + normalization in front of the repository.

    Example usage:
        repo = EventLogRepo(pool)
        svc = EventLogService(repo)
        svc.log_event({"sender": "node-1", "airReadings": []})
    """

    def __init__(self, repo: EventLogRepo, derive_air_metrics: bool = False):
        self.repo = repo
        self.derive_air_metrics = derive_air_metrics

    def log_event(self, body: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate and persist one event entry, returning the stored document.

        Raises:
        - `EventValidationError` before any write when the body is invalid
        - `ConnectivityError` (from the repository) when the write fails
        """

        try:
            entry = EventEntry.model_validate(body)
        except ValidationError as e:
            raise EventValidationError.from_pydantic(e) from e

        document = entry.to_document()
        air = document.get("airReadings", [])
        if self.derive_air_metrics:
            air = [fill_air_metrics(reading) for reading in air]
        document["airReadings"] = _with_ids(air)
        document["soilReadings"] = _with_ids(document.get("soilReadings", []))

        stored = self.repo.insert_entry(document, entry.date)
        logger.debug(
            f"Stored event {stored['_id']} from {entry.sender} "
            f"({len(entry.airReadings)} air, {len(entry.soilReadings)} soil)"
        )
        return stored
