from datetime import datetime, timedelta, timezone

import pytest

from cloudnuke.resources import AwsApiError, Session
from cloudnuke.sqs import SqsQueue, get_all_sqs_queue, nuke_all_sqs_queues

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeSqs:
    def __init__(self, queues=None, failing=()):
        self.queues = dict(queues or {})
        self.failing = set(failing)
        self.list_requests = []
        self.deleted = []

    def list_queues(self, **request):
        self.list_requests.append(request)
        urls = sorted(self.queues)
        size = request["MaxResults"]
        start = int(request.get("NextToken", "0"))
        page = {"QueueUrls": urls[start : start + size]}
        if start + size < len(urls):
            page["NextToken"] = str(start + size)
        return page

    def get_queue_attributes(self, **request):
        assert request["AttributeNames"] == ["CreatedTimestamp"]
        return {"Attributes": {"CreatedTimestamp": self.queues[request["QueueUrl"]]}}

    def delete_queue(self, **request):
        url = request["QueueUrl"]
        if url in self.failing:
            raise AwsApiError("AWS.SimpleQueueService.NonExistentQueue", url)
        self.deleted.append(url)
        del self.queues[url]
        return {}


def make_session(client):
    return Session("us-east-2", lambda service, region: client)


def created(when):
    return str(int(when.timestamp()))


def test_list_queues_time_filter_and_pagination():
    queues = {f"https://queue.example.com/q{n:02d}": created(NOW) for n in range(20)}
    client = FakeSqs(queues)
    session = make_session(client)

    assert get_all_sqs_queue(session, "us-east-2", NOW - timedelta(hours=1)) == []
    urls = get_all_sqs_queue(session, "us-east-2", NOW + timedelta(hours=1))
    assert sorted(urls) == sorted(queues)
    assert client.list_requests[0] == {"MaxResults": 10}
    assert {"MaxResults": 10, "NextToken": "10"} in client.list_requests


def test_queue_created_at_cutoff_second_is_excluded():
    client = FakeSqs({"https://queue.example.com/q": created(NOW)})
    assert get_all_sqs_queue(make_session(client), "us-east-2", NOW + timedelta(milliseconds=500)) == []


def test_invalid_timestamp_raises():
    client = FakeSqs({"https://queue.example.com/q": "not-a-number"})
    with pytest.raises(ValueError):
        get_all_sqs_queue(make_session(client), "us-east-2", NOW)


def test_nuke_queue():
    url = "https://queue.example.com/q"
    client = FakeSqs({url: created(NOW)})
    session = make_session(client)
    assert get_all_sqs_queue(session, "us-east-2", NOW + timedelta(hours=1)) == [url]
    assert nuke_all_sqs_queues(session, [url]) == [url]
    assert get_all_sqs_queue(session, "us-east-2", NOW + timedelta(hours=1)) == []


def test_nuke_continues_after_failure():
    client = FakeSqs({"a": "1", "b": "1"}, failing={"missing"})
    assert nuke_all_sqs_queues(make_session(client), ["a", "missing", "b"]) == ["a", "b"]


def test_nuke_nothing():
    client = FakeSqs()
    assert nuke_all_sqs_queues(make_session(client), []) == []


def test_resource_type():
    resources = SqsQueue(["a"])
    assert resources.resource_name() == "sqs"
    assert resources.max_batch_size() == 200
    assert resources.resource_identifiers() == ["a"]
    client = FakeSqs({"a": "1"})
    resources.nuke(make_session(client), ["a"])
    assert client.deleted == ["a"]