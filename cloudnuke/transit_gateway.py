"""Finding and deleting transit gateways, their route tables and VPC attachments.

The EC2 client used here is any object with these methods, which take keyword
arguments and return plain dictionaries: ``describe_transit_gateways``,
``delete_transit_gateway``, ``describe_transit_gateway_route_tables``,
``delete_transit_gateway_route_table``,
``describe_transit_gateway_vpc_attachments`` and
``delete_transit_gateway_vpc_attachment``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Sequence

from .log import get_logger
from .resources import AwsApiError, AwsResources, Session

_log = get_logger()

MAX_BATCH_SIZE = 49
VPC_ATTACHMENT_SETTLE_SECONDS = 180.0
_GONE_STATES = frozenset({"deleted", "deleting"})


def sleep_with_message(duration: float, message: str) -> None:
    """Log why, then sleep for duration seconds."""
    _log.info("Sleeping %ss: %s", duration, message)
    time.sleep(duration)


def _live_ids(items: Iterable[Mapping[str, Any]], id_key: str, exclude_after: datetime) -> list[str]:
    return [
        item[id_key]
        for item in items
        if exclude_after > item["CreationTime"] and item.get("State") not in _GONE_STATES
    ]


def _delete_each(
    ids: Sequence[str],
    delete: Callable[[str], Any],
    region: str,
    plural: str,
    singular: str,
) -> list[str]:
    deleted: list[str] = []
    for resource_id in ids:
        try:
            delete(resource_id)
        except Exception as exc:
            _log.error("[Failed] %s", exc)
            continue
        deleted.append(resource_id)
        _log.info("Deleted %s: %s", singular, resource_id)
    return deleted


def get_all_transit_gateway_instances(session: Session, region: str, exclude_after: datetime) -> list[str]:
    """Return the IDs of live transit gateways created before exclude_after."""
    client = session.client("ec2")
    result = client.describe_transit_gateways()
    return _live_ids(result.get("TransitGateways") or [], "TransitGatewayId", exclude_after)


def nuke_all_transit_gateway_instances(session: Session, ids: Sequence[str]) -> list[str]:
    """Delete the given transit gateways, logging failures; return those deleted."""
    client = session.client("ec2")
    if not ids:
        _log.info("No Transit Gateways to nuke in region %s", session.region)
        return []

    _log.info("Deleting all Transit Gateways in region %s", session.region)
    deleted = _delete_each(
        ids,
        lambda tgw_id: client.delete_transit_gateway(TransitGatewayId=tgw_id),
        session.region,
        "Transit Gateways",
        "Transit Gateway",
    )
    _log.info("[OK] %d Transit Gateway(s) deleted in %s", len(deleted), session.region)
    return deleted


def get_all_transit_gateway_route_tables(session: Session, region: str, exclude_after: datetime) -> list[str]:
    """Return the IDs of live, non-default route tables created before exclude_after."""
    client = session.client("ec2")
    # Default route tables go away together with their transit gateway.
    result = client.describe_transit_gateway_route_tables(
        Filters=[{"Name": "default-association-route-table", "Values": ["false"]}]
    )
    return _live_ids(
        result.get("TransitGatewayRouteTables") or [], "TransitGatewayRouteTableId", exclude_after
    )


def nuke_all_transit_gateway_route_tables(session: Session, ids: Sequence[str]) -> list[str]:
    """Delete the given route tables, logging failures; return those deleted."""
    client = session.client("ec2")
    if not ids:
        _log.info("No Transit Gateway Route Tables to nuke in region %s", session.region)
        return []

    _log.info("Deleting all Transit Gateway Route Tables in region %s", session.region)
    deleted = _delete_each(
        ids,
        lambda table_id: client.delete_transit_gateway_route_table(TransitGatewayRouteTableId=table_id),
        session.region,
        "Transit Gateway Route Tables",
        "Transit Gateway Route Table",
    )
    _log.info("[OK] %d Transit Gateway Route Table(s) deleted in %s", len(deleted), session.region)
    return deleted


def get_all_transit_gateway_vpc_attachments(session: Session, region: str, exclude_after: datetime) -> list[str]:
    """Return the IDs of live VPC attachments created before exclude_after."""
    client = session.client("ec2")
    result = client.describe_transit_gateway_vpc_attachments()
    return _live_ids(
        result.get("TransitGatewayVpcAttachments") or [], "TransitGatewayAttachmentId", exclude_after
    )


def nuke_all_transit_gateway_vpc_attachments(session: Session, ids: Sequence[str]) -> list[str]:
    """Delete the given VPC attachments, then wait for the deletions to settle."""
    client = session.client("ec2")
    if not ids:
        _log.info("No Transit Gateway Vpc Attachments to nuke in region %s", session.region)
        return []

    _log.info("Deleting all Transit Gateway Vpc Attachments in region %s", session.region)
    deleted = _delete_each(
        ids,
        lambda attachment_id: client.delete_transit_gateway_vpc_attachment(
            TransitGatewayAttachmentId=attachment_id
        ),
        session.region,
        "Transit Gateway Vpc Attachments",
        "Transit Gateway Vpc Attachment",
    )

    sleep_with_message(
        VPC_ATTACHMENT_SETTLE_SECONDS,
        "TransitGateway Vpc Attachments takes some time to create, and since there is no waiter available, "
        "we sleep instead.",
    )

    _log.info("[OK] %d Transit Gateway Vpc Attachment(s) deleted in %s", len(deleted), session.region)
    return deleted


def tg_is_available_in_region(session: Session, region: str) -> bool:
    """Whether the transit gateway service can be used in the session's region."""
    client = session.client("ec2")
    try:
        client.describe_transit_gateways()
    except AwsApiError as exc:
        if exc.code == "InvalidAction":
            return False
        raise
    return True


@dataclass
class TransitGatewaysVpcAttachment(AwsResources):
    """Transit gateway VPC attachments found for nuking."""

    ids: list[str] = field(default_factory=list)

    def resource_name(self) -> str:
        return "transit-gateway-attachment"

    def max_batch_size(self) -> int:
        return MAX_BATCH_SIZE

    def resource_identifiers(self) -> list[str]:
        return self.ids

    def nuke(self, session: Session, identifiers: list[str]) -> None:
        nuke_all_transit_gateway_vpc_attachments(session, identifiers)


@dataclass
class TransitGatewaysRouteTables(AwsResources):
    """Transit gateway route tables found for nuking."""

    ids: list[str] = field(default_factory=list)

    def resource_name(self) -> str:
        return "transit-gateway-route-table"

    def max_batch_size(self) -> int:
        return MAX_BATCH_SIZE

    def resource_identifiers(self) -> list[str]:
        return self.ids

    def nuke(self, session: Session, identifiers: list[str]) -> None:
        nuke_all_transit_gateway_route_tables(session, identifiers)


@dataclass
class TransitGateways(AwsResources):
    """Transit gateways found for nuking."""

    ids: list[str] = field(default_factory=list)

    def resource_name(self) -> str:
        return "transit-gateway"

    def max_batch_size(self) -> int:
        return MAX_BATCH_SIZE

    def resource_identifiers(self) -> list[str]:
        return self.ids

    def nuke(self, session: Session, identifiers: list[str]) -> None:
        nuke_all_transit_gateway_instances(session, identifiers)