"""Finding and deleting EBS snapshots owned by the account.

The EC2 client used here is any object with ``describe_snapshots`` and
``delete_snapshot`` methods that take keyword arguments and return plain
dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from .log import get_logger
from .resources import AwsResources, Session

_log = get_logger()


def get_all_snapshots(session: Session, region: str, exclude_after: datetime) -> list[str]:
    """Return the IDs of own snapshots started before exclude_after."""
    client = session.client("ec2")
    output = client.describe_snapshots(OwnerIds=["self"])
    return [
        snapshot["SnapshotId"]
        for snapshot in output.get("Snapshots") or []
        if exclude_after > snapshot["StartTime"]
    ]


def nuke_all_snapshots(session: Session, snapshot_ids: Sequence[str]) -> list[str]:
    """Delete the given snapshots, logging failures; return those deleted."""
    client = session.client("ec2")

    if not snapshot_ids:
        _log.info("No Snapshots to nuke in region %s", session.region)
        return []

    _log.info("Deleting all Snapshots in region %s", session.region)
    deleted: list[str] = []
    for snapshot_id in snapshot_ids:
        try:
            client.delete_snapshot(SnapshotId=snapshot_id)
        except Exception as exc:
            _log.error("[Failed] %s", exc)
            continue
        deleted.append(snapshot_id)
        _log.info("Deleted Snapshot: %s", snapshot_id)

    _log.info("[OK] %d Snapshot(s) terminated in %s", len(deleted), session.region)
    return deleted


@dataclass
class Snapshots(AwsResources):
    """Snapshots owned by the account found for nuking."""

    snapshot_ids: list[str] = field(default_factory=list)

    def resource_name(self) -> str:
        return "snap"

    def resource_identifiers(self) -> list[str]:
        return self.snapshot_ids

    def max_batch_size(self) -> int:
        # Tentative size to avoid throttling.
        return 200

    def nuke(self, session: Session, identifiers: list[str]) -> None:
        nuke_all_snapshots(session, identifiers)