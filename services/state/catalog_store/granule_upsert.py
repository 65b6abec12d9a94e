"""Granule status write rules.

Granule status events arrive out of order and may be redelivered. The planner
below decides, from the persisted row and the incoming record alone, what an
upsert is allowed to write so that persisted status never moves from a
terminal state back to ``running`` and an older message never overwrites a
newer one. The accessor in ``data/granules.py`` applies the plan and repeats
the ``created_at`` check as a condition on the UPDATE itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from services.state.catalog_store.domain import (
    GranuleInput,
    GranuleRecord,
    GranuleStatus,
    utc_now,
)

# Written when a running message meets a completed/failed granule, and by the
# REFRESH_TIMESTAMPS duplicate policy.
GRANULE_RUNNING_REFRESH_FIELDS: tuple[str, ...] = ("timestamp", "updated_at")

# Written when a running message meets a running granule.
GRANULE_RUNNING_MUTABLE_FIELDS: tuple[str, ...] = (
    "created_at",
    "updated_at",
    "timestamp",
    "status",
)

GRANULE_NATURAL_KEY: tuple[str, ...] = ("granule_id", "collection_cumulus_id")


class DuplicateRunningPolicy(str, Enum):
    """Handling of a running message from the granule's stored execution."""

    SKIP = "skip"
    REFRESH_TIMESTAMPS = "refresh_timestamps"


class UpsertAction(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    REFRESHED = "refreshed"
    SKIPPED = "skipped"


class SkipReason(str, Enum):
    CREATED_AT_REGRESSION = "created_at_regression"
    DUPLICATE_RUNNING = "duplicate_running"
    STALE_WRITE = "stale_write"


@dataclass(frozen=True)
class GranuleWritePlan:
    """Write decided for one incoming granule."""

    action: UpsertAction
    values: Mapping[str, Any] = field(default_factory=dict)
    reason: SkipReason | None = None


class GranuleUpsertResult(BaseModel):
    """Outcome of one granule upsert and the persisted state after it."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    action: UpsertAction
    record: GranuleRecord
    reason: SkipReason | None = None

    @property
    def written(self) -> bool:
        return self.action is not UpsertAction.SKIPPED


def is_created_at_regression(
    existing: GranuleRecord, incoming: GranuleInput
) -> bool:
    """Return True when the persisted row was created after the incoming one."""
    if incoming.created_at is None:
        return False
    return existing.created_at > incoming.created_at


def plan_granule_write(
    existing: GranuleRecord | None,
    incoming: GranuleInput,
    *,
    same_execution: bool = False,
    duplicate_running_policy: DuplicateRunningPolicy = DuplicateRunningPolicy.SKIP,
    now: datetime | None = None,
) -> GranuleWritePlan:
    """Decide what an upsert of ``incoming`` may write over ``existing``.

    ``same_execution`` reports whether the incoming message names the execution
    currently stored for the granule, the newest one linked to it.
    """
    if existing is None:
        return GranuleWritePlan(
            action=UpsertAction.INSERTED,
            values=incoming.model_dump(exclude_none=True),
        )

    if is_created_at_regression(existing, incoming):
        return GranuleWritePlan(
            action=UpsertAction.SKIPPED, reason=SkipReason.CREATED_AT_REGRESSION
        )

    if incoming.status is not GranuleStatus.RUNNING:
        return GranuleWritePlan(
            action=UpsertAction.UPDATED,
            values=_updatable_values(incoming, fields=None, now=now),
        )

    if existing.status.is_terminal:
        return GranuleWritePlan(
            action=UpsertAction.REFRESHED,
            values=_updatable_values(
                incoming, fields=GRANULE_RUNNING_REFRESH_FIELDS, now=now
            ),
        )

    if same_execution:
        if duplicate_running_policy is DuplicateRunningPolicy.SKIP:
            return GranuleWritePlan(
                action=UpsertAction.SKIPPED, reason=SkipReason.DUPLICATE_RUNNING
            )
        return GranuleWritePlan(
            action=UpsertAction.REFRESHED,
            values=_updatable_values(
                incoming, fields=GRANULE_RUNNING_REFRESH_FIELDS, now=now
            ),
        )

    return GranuleWritePlan(
        action=UpsertAction.UPDATED,
        values=_updatable_values(
            incoming, fields=GRANULE_RUNNING_MUTABLE_FIELDS, now=now
        ),
    )


def _updatable_values(
    incoming: GranuleInput,
    *,
    fields: tuple[str, ...] | None,
    now: datetime | None,
) -> dict[str, Any]:
    values = incoming.model_dump(exclude_none=True)
    for key in GRANULE_NATURAL_KEY:
        values.pop(key, None)
    if fields is not None:
        values = {key: value for key, value in values.items() if key in fields}
    values.setdefault("updated_at", now or utc_now())
    return values
