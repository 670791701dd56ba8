"""Finding and deleting SQS queues.

The SQS client used here is any object with ``list_queues``,
``get_queue_attributes`` and ``delete_queue`` methods that take keyword
arguments and return plain dictionaries.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from .log import get_logger
from .resources import AwsResources, Session

_log = get_logger()

LIST_PAGE_SIZE = 10


def _list_queue_urls(client: Any) -> list[str]:
    urls: list[str] = []
    request: dict[str, Any] = {"MaxResults": LIST_PAGE_SIZE}
    while True:
        page = client.list_queues(**request)
        urls.extend(page.get("QueueUrls") or [])
        token = page.get("NextToken")
        if not token:
            return urls
        request["NextToken"] = token


def get_all_sqs_queue(session: Session, region: str, exclude_after: datetime) -> list[str]:
    """Return the URLs of queues created before exclude_after."""
    client = session.client("sqs")
    cutoff = math.floor(exclude_after.timestamp())

    urls = []
    for url in _list_queue_urls(client):
        result = client.get_queue_attributes(QueueUrl=url, AttributeNames=["CreatedTimestamp"])
        created_at = int(result["Attributes"]["CreatedTimestamp"])
        if cutoff > created_at:
            urls.append(url)
    return urls


def nuke_all_sqs_queues(session: Session, urls: Sequence[str]) -> list[str]:
    """Delete the given queues, logging failures; return those deleted."""
    client = session.client("sqs")

    if not urls:
        _log.info("No SQS Queues to nuke in region %s", session.region)
        return []

    _log.info("Deleting all SQS Queues in region %s", session.region)
    deleted: list[str] = []
    for url in urls:
        try:
            client.delete_queue(QueueUrl=url)
        except Exception as exc:
            _log.error("[Failed] %s", exc)
            continue
        deleted.append(url)
        _log.info("Deleted SQS Queue: %s", url)

    _log.info("[OK] %d SQS Queue(s) deleted in %s", len(deleted), session.region)
    return deleted


@dataclass
class SqsQueue(AwsResources):
    """SQS queues found for nuking."""

    queue_urls: list[str] = field(default_factory=list)

    def resource_name(self) -> str:
        return "sqs"

    def max_batch_size(self) -> int:
        # Tentative size to avoid throttling.
        return 200

    def resource_identifiers(self) -> list[str]:
        return self.queue_urls

    def nuke(self, session: Session, identifiers: list[str]) -> None:
        nuke_all_sqs_queues(session, identifiers)