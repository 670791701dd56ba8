from datetime import datetime, timedelta, timezone
from unittest import mock

import pytest

from cloudnuke.resources import AwsApiError, Session
from cloudnuke.transit_gateway import (
    TransitGateways,
    TransitGatewaysRouteTables,
    TransitGatewaysVpcAttachment,
    get_all_transit_gateway_instances,
    get_all_transit_gateway_route_tables,
    get_all_transit_gateway_vpc_attachments,
    nuke_all_transit_gateway_instances,
    nuke_all_transit_gateway_route_tables,
    nuke_all_transit_gateway_vpc_attachments,
    sleep_with_message,
    tg_is_available_in_region,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
REGION = "eu-west-1"


class FakeEc2:
    def __init__(self, gateways=(), tables=(), attachments=(), failing=(), describe_error=None):
        self.gateways = {g["TransitGatewayId"]: g for g in gateways}
        self.tables = {t["TransitGatewayRouteTableId"]: t for t in tables}
        self.attachments = {a["TransitGatewayAttachmentId"]: a for a in attachments}
        self.failing = set(failing)
        self.describe_error = describe_error
        self.table_filters = None

    def describe_transit_gateways(self):
        if self.describe_error is not None:
            raise self.describe_error
        return {"TransitGateways": list(self.gateways.values())}

    def delete_transit_gateway(self, TransitGatewayId):
        if TransitGatewayId in self.failing:
            raise AwsApiError("InvalidTransitGatewayID.NotFound", TransitGatewayId)
        del self.gateways[TransitGatewayId]

    def describe_transit_gateway_route_tables(self, Filters):
        self.table_filters = Filters
        return {"TransitGatewayRouteTables": list(self.tables.values())}

    def delete_transit_gateway_route_table(self, TransitGatewayRouteTableId):
        if TransitGatewayRouteTableId in self.failing:
            raise AwsApiError("IncorrectState", TransitGatewayRouteTableId)
        del self.tables[TransitGatewayRouteTableId]

    def describe_transit_gateway_vpc_attachments(self):
        return {"TransitGatewayVpcAttachments": list(self.attachments.values())}

    def delete_transit_gateway_vpc_attachment(self, TransitGatewayAttachmentId):
        if TransitGatewayAttachmentId in self.failing:
            raise AwsApiError("IncorrectState", TransitGatewayAttachmentId)
        del self.attachments[TransitGatewayAttachmentId]


def session_for(client):
    return Session(REGION, lambda service, region: client)


def gateway(tgw_id, state="available", created=NOW):
    return {"TransitGatewayId": tgw_id, "State": state, "CreationTime": created}


def table(table_id, state="available", created=NOW):
    return {"TransitGatewayRouteTableId": table_id, "State": state, "CreationTime": created}


def attachment(att_id, state="available", created=NOW):
    return {"TransitGatewayAttachmentId": att_id, "State": state, "CreationTime": created}


def test_get_all_transit_gateway_instances_time_filter():
    client = FakeEc2(gateways=[gateway("tgw-1")])
    session = session_for(client)
    assert "tgw-1" not in get_all_transit_gateway_instances(session, REGION, NOW - timedelta(hours=1))
    assert "tgw-1" in get_all_transit_gateway_instances(session, REGION, NOW + timedelta(hours=1))


def test_get_all_transit_gateway_instances_skips_deleted_states():
    client = FakeEc2(gateways=[gateway("tgw-a"), gateway("tgw-b", "deleting"), gateway("tgw-c", "deleted")])
    ids = get_all_transit_gateway_instances(session_for(client), REGION, NOW + timedelta(hours=1))
    assert ids == ["tgw-a"]


def test_nuke_transit_gateway():
    client = FakeEc2(gateways=[gateway("tgw-1")])
    session = session_for(client)
    assert nuke_all_transit_gateway_instances(session, ["tgw-1"]) == ["tgw-1"]
    assert "tgw-1" not in get_all_transit_gateway_instances(session, REGION, NOW + timedelta(hours=1))


def test_nuke_transit_gateway_continues_past_failures():
    client = FakeEc2(gateways=[gateway("tgw-1"), gateway("tgw-2")], failing={"tgw-1"})
    assert nuke_all_transit_gateway_instances(session_for(client), ["tgw-1", "tgw-2"]) == ["tgw-2"]
    assert list(client.gateways) == ["tgw-1"]


def test_nuke_transit_gateway_empty():
    assert nuke_all_transit_gateway_instances(session_for(FakeEc2()), []) == []


def test_get_all_route_tables_filters_defaults_and_time():
    client = FakeEc2(tables=[table("tgw-rtb-1"), table("tgw-rtb-2", "deleted")])
    session = session_for(client)
    assert get_all_transit_gateway_route_tables(session, REGION, NOW - timedelta(hours=1)) == []
    assert get_all_transit_gateway_route_tables(session, REGION, NOW + timedelta(hours=1)) == ["tgw-rtb-1"]
    assert client.table_filters == [{"Name": "default-association-route-table", "Values": ["false"]}]


def test_nuke_route_table():
    client = FakeEc2(tables=[table("tgw-rtb-1")])
    session = session_for(client)
    assert nuke_all_transit_gateway_route_tables(session, ["tgw-rtb-1"]) == ["tgw-rtb-1"]
    assert get_all_transit_gateway_route_tables(session, REGION, NOW + timedelta(hours=1)) == []


def test_get_all_vpc_attachments_time_filter():
    client = FakeEc2(attachments=[attachment("tgw-attach-1")])
    session = session_for(client)
    assert get_all_transit_gateway_vpc_attachments(session, REGION, NOW - timedelta(hours=1)) == []
    assert get_all_transit_gateway_vpc_attachments(session, REGION, NOW + timedelta(hours=1)) == ["tgw-attach-1"]


@mock.patch("cloudnuke.transit_gateway.time.sleep")
def test_nuke_vpc_attachment_sleeps_after_deleting(fake_sleep):
    client = FakeEc2(attachments=[attachment("tgw-attach-1")])
    session = session_for(client)
    assert nuke_all_transit_gateway_vpc_attachments(session, ["tgw-attach-1"]) == ["tgw-attach-1"]
    fake_sleep.assert_called_once_with(180.0)
    assert get_all_transit_gateway_vpc_attachments(session, REGION, NOW + timedelta(hours=1)) == []


@mock.patch("cloudnuke.transit_gateway.time.sleep")
def test_nuke_vpc_attachment_empty_does_not_sleep(fake_sleep):
    assert nuke_all_transit_gateway_vpc_attachments(session_for(FakeEc2()), []) == []
    assert fake_sleep.call_count == 0


@mock.patch("cloudnuke.transit_gateway.time.sleep")
def test_sleep_with_message_sleeps_for_duration(fake_sleep):
    assert sleep_with_message(2.5, "waiting") is None
    assert fake_sleep.call_args_list == [mock.call(2.5)]


def test_tg_is_available_in_region():
    assert tg_is_available_in_region(session_for(FakeEc2()), REGION) is True


def test_tg_not_available_on_invalid_action():
    client = FakeEc2(describe_error=AwsApiError("InvalidAction", "unsupported"))
    assert tg_is_available_in_region(session_for(client), REGION) is False


def test_tg_availability_other_error_raises():
    client = FakeEc2(describe_error=AwsApiError("UnauthorizedOperation", "denied"))
    with pytest.raises(AwsApiError) as info:
        tg_is_available_in_region(session_for(client), REGION)
    assert info.value.code == "UnauthorizedOperation"


@pytest.mark.parametrize(
    "resource, name",
    [
        (TransitGateways(ids=["tgw-1"]), "transit-gateway"),
        (TransitGatewaysRouteTables(ids=["tgw-1"]), "transit-gateway-route-table"),
        (TransitGatewaysVpcAttachment(ids=["tgw-1"]), "transit-gateway-attachment"),
    ],
)
def test_resource_names_and_identifiers(resource, name):
    assert resource.resource_name() == name
    assert resource.resource_identifiers() == ["tgw-1"]
    assert resource.max_batch_size() > 0


def test_resource_kinds_share_batch_size():
    sizes = {cls().max_batch_size() for cls in (TransitGateways, TransitGatewaysRouteTables, TransitGatewaysVpcAttachment)}
    assert len(sizes) == 1


def test_transit_gateways_nuke():
    client = FakeEc2(gateways=[gateway("tgw-1"), gateway("tgw-2")])
    TransitGateways(ids=["tgw-1", "tgw-2"]).nuke(session_for(client), ["tgw-1"])
    assert list(client.gateways) == ["tgw-2"]


def test_route_tables_nuke():
    client = FakeEc2(tables=[table("tgw-rtb-1")])
    TransitGatewaysRouteTables(ids=["tgw-rtb-1"]).nuke(session_for(client), ["tgw-rtb-1"])
    assert client.tables == {}


@mock.patch("cloudnuke.transit_gateway.time.sleep")
def test_vpc_attachments_nuke(fake_sleep):
    client = FakeEc2(attachments=[attachment("tgw-attach-1")])
    TransitGatewaysVpcAttachment(ids=["tgw-attach-1"]).nuke(session_for(client), ["tgw-attach-1"])
    assert client.attachments == {}