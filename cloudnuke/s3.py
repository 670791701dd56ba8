"""Finding, emptying and deleting S3 buckets.

The S3 client used here is any object with these methods, which take keyword
arguments and return plain dictionaries: ``list_buckets``,
``get_bucket_location``, ``get_bucket_tagging``, ``get_bucket_versioning``,
``list_objects_v2``, ``list_object_versions``, ``delete_objects``,
``delete_bucket`` and ``wait_until_bucket_not_exists``.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence

from .config import Config, should_include
from .log import get_logger
from .resources import (
    AWS_RESOURCE_EXCLUSION_TAG_KEY,
    AwsApiError,
    AwsResources,
    MultiError,
    Session,
)

MIN_OBJECT_BATCH_SIZE = 1
MAX_OBJECT_BATCH_SIZE = 1000
BUCKET_DELETION_WAIT_ATTEMPTS = 3
DEFAULT_BUCKET_REGION = "us-east-1"

_log = get_logger()


class BucketNukeError(MultiError):
    """Some buckets could not be deleted; records how many were."""

    def __init__(self, errors: Sequence[BaseException], deleted_count: int) -> None:
        super().__init__(errors)
        self.deleted_count = deleted_count


@dataclass
class S3Bucket:
    """What is known about one bucket while deciding whether to nuke it."""

    name: str
    creation_date: datetime
    region: str = ""
    tags: list[dict[str, str]] = field(default_factory=list)
    error: Exception | None = None
    is_valid: bool = False
    invalid_reason: str = ""


def get_s3_bucket_region(client: Any, bucket_name: str) -> str:
    """Return the region a bucket lives in."""
    result = client.get_bucket_location(Bucket=bucket_name)
    constraint = result.get("LocationConstraint")
    # The location is reported as empty for the default region.
    if constraint is None:
        return DEFAULT_BUCKET_REGION
    return constraint


def get_s3_bucket_tags(client: Any, bucket_name: str) -> list[dict[str, str]]:
    """Return a bucket's tags; the client must be in the bucket's region."""
    try:
        result = client.get_bucket_tagging(Bucket=bucket_name)
    except AwsApiError as exc:
        if exc.code == "NoSuchTagSet":
            return []
        raise
    return [{"Key": tag["Key"], "Value": tag["Value"]} for tag in result.get("TagSet") or []]


def has_valid_tags(bucket_tags: Sequence[Mapping[str, str]]) -> bool:
    """False if the tags mark the bucket as excluded from nuking."""
    return not any(
        tag.get("Key", "").lower() == AWS_RESOURCE_EXCLUSION_TAG_KEY
        and tag.get("Value", "").lower() == "true"
        for tag in bucket_tags
    )


def get_all_s3_buckets(
    session: Session,
    exclude_after: datetime,
    target_regions: Sequence[str],
    bucket_name_substr: str,
    batch_size: int,
    config: Config,
) -> dict[str, list[str]]:
    """Return, per region, the names of buckets created before exclude_after."""
    if batch_size <= 0:
        raise ValueError(f"Invalid batchsize - {batch_size} - should be > 0")

    client = session.client("s3")
    buckets = client.list_buckets().get("Buckets") or []
    region_clients = get_region_clients(session, target_regions)

    names_per_region: dict[str, list[str]] = {}
    total = len(buckets)
    if total == 0:
        return names_per_region

    total_batches = math.ceil(total / batch_size)
    for batch_number, start in enumerate(range(0, total, batch_size), start=1):
        end = min(start + batch_size, total)
        _log.info("Getting - %d-%d buckets of batch %d/%d", start + 1, end, batch_number, total_batches)
        found = get_bucket_names_per_region(
            client, buckets[start:end], exclude_after, region_clients, bucket_name_substr, config
        )
        for region, names in found.items():
            names_per_region.setdefault(region, []).extend(names)
    return names_per_region


def get_region_clients(session: Session, regions: Sequence[str]) -> dict[str, Any]:
    """Create an S3 client for each target region."""
    clients = {}
    for region in regions:
        _log.debug("S3 - creating session - region %s", region)
        clients[region] = session.for_region(region).client("s3")
    return clients


def get_bucket_names_per_region(
    client: Any,
    target_buckets: Sequence[Mapping[str, Any]],
    exclude_after: datetime,
    region_clients: Mapping[str, Any],
    bucket_name_substr: str,
    config: Config,
) -> dict[str, list[str]]:
    """Inspect buckets concurrently and return the valid names per region."""
    candidates = []
    for bucket in target_buckets:
        if bucket_name_substr and bucket_name_substr not in bucket["Name"]:
            _log.debug(
                "Skipping - Bucket %s - failed substring filter - %s", bucket["Name"], bucket_name_substr
            )
            continue
        candidates.append(bucket)

    names_per_region: dict[str, list[str]] = {}
    if not candidates:
        return names_per_region

    with ThreadPoolExecutor(max_workers=len(candidates)) as pool:
        results = pool.map(
            lambda bucket: get_bucket_info(client, bucket, exclude_after, region_clients, config),
            candidates,
        )
        for data in results:
            if data.error is not None:
                _log.warning(
                    "Skipping - Bucket %s - region - %s - error: %s", data.name, data.region, data.error
                )
                continue
            if not data.is_valid:
                _log.debug(
                    "Skipping - Bucket %s - region - %s - %s", data.name, data.region, data.invalid_reason
                )
                continue
            names_per_region.setdefault(data.region, []).append(data.name)
    return names_per_region


def get_bucket_info(
    client: Any,
    bucket: Mapping[str, Any],
    exclude_after: datetime,
    region_clients: Mapping[str, Any],
    config: Config,
) -> S3Bucket:
    """Gather a bucket's region and tags and decide whether it may be nuked."""
    data = S3Bucket(name=bucket["Name"], creation_date=bucket["CreationDate"])

    try:
        data.region = get_s3_bucket_region(client, data.name)
    except Exception as exc:
        data.error = exc
        return data

    if data.region not in region_clients:
        data.invalid_reason = "Not in target region"
        return data

    try:
        data.tags = get_s3_bucket_tags(region_clients[data.region], data.name)
    except Exception as exc:
        data.error = exc
        return data

    if not has_valid_tags(data.tags):
        data.invalid_reason = "Matched tag filter"
        return data

    if not exclude_after > data.creation_date:
        data.invalid_reason = "Matched CreationDate filter"
        return data

    rules = config.s3
    if not should_include(data.name, rules.include_rule.names_regexp, rules.exclude_rule.names_regexp):
        data.invalid_reason = "Filtered by config file rules"
        return data

    data.is_valid = True
    return data


def empty_bucket(client: Any, bucket_name: str, is_versioned: bool, batch_size: int) -> None:
    """Delete every object in a bucket, page by page.

    For versioned buckets this removes all versions and deletion markers.
    """
    if is_versioned:
        _empty_versioned_bucket(client, bucket_name, batch_size)
    else:
        _empty_unversioned_bucket(client, bucket_name, batch_size)


def _empty_versioned_bucket(client: Any, bucket_name: str, batch_size: int) -> None:
    request: dict[str, Any] = {"Bucket": bucket_name, "MaxKeys": batch_size}
    page_id = 1
    while True:
        page = client.list_object_versions(**request)
        versions = page.get("Versions") or []
        markers = page.get("DeleteMarkers") or []

        _log.debug(
            "Deleting page %d of object versions (%d objects) from bucket %s", page_id, len(versions), bucket_name
        )
        try:
            delete_object_versions(client, bucket_name, versions)
        except Exception as exc:
            _log.error("Error deleting objects versions for page %d from bucket %s: %s", page_id, bucket_name, exc)
            raise
        _log.info(
            "[OK] - deleted page %d of object versions (%d objects) from bucket %s",
            page_id,
            len(versions),
            bucket_name,
        )

        _log.debug(
            "Deleting page %d of deletion markers (%d deletion markers) from bucket %s",
            page_id,
            len(markers),
            bucket_name,
        )
        try:
            delete_deletion_markers(client, bucket_name, markers)
        except Exception as exc:
            _log.error("Error deleting deletion markers for page %d from bucket %s: %s", page_id, bucket_name, exc)
            raise
        _log.info(
            "[OK] - deleted page %d of deletion markers (%d deletion markers) from bucket %s",
            page_id,
            len(markers),
            bucket_name,
        )

        page_id += 1
        if not page.get("IsTruncated"):
            return
        request["KeyMarker"] = page.get("NextKeyMarker")
        request["VersionIdMarker"] = page.get("NextVersionIdMarker")


def _empty_unversioned_bucket(client: Any, bucket_name: str, batch_size: int) -> None:
    request: dict[str, Any] = {"Bucket": bucket_name, "MaxKeys": batch_size}
    page_id = 1
    while True:
        page = client.list_objects_v2(**request)
        contents = page.get("Contents") or []
        _log.debug("Deleting object page %d (%d objects) from bucket %s", page_id, len(contents), bucket_name)
        try:
            delete_objects(client, bucket_name, contents)
        except Exception as exc:
            _log.error("Error deleting objects for page %d from bucket %s: %s", page_id, bucket_name, exc)
            raise
        _log.debug("[OK] - deleted object page %d (%d objects) from bucket %s", page_id, len(contents), bucket_name)

        page_id += 1
        if not page.get("IsTruncated"):
            return
        request["ContinuationToken"] = page.get("NextContinuationToken")


def _delete_identifiers(client: Any, bucket_name: str, identifiers: list[dict[str, str]]) -> None:
    client.delete_objects(Bucket=bucket_name, Delete={"Objects": identifiers, "Quiet": False})


def delete_objects(client: Any, bucket_name: str, objects: Sequence[Mapping[str, Any]]) -> None:
    """Delete the given unversioned objects from a bucket."""
    if not objects:
        _log.debug("No objects returned in page")
        return
    _delete_identifiers(client, bucket_name, [{"Key": obj["Key"]} for obj in objects])


def delete_object_versions(client: Any, bucket_name: str, object_versions: Sequence[Mapping[str, Any]]) -> None:
    """Delete the given object versions from a bucket."""
    if not object_versions:
        _log.debug("No object versions returned in page")
        return
    _delete_identifiers(
        client,
        bucket_name,
        [{"Key": obj["Key"], "VersionId": obj["VersionId"]} for obj in object_versions],
    )


def delete_deletion_markers(client: Any, bucket_name: str, markers: Sequence[Mapping[str, Any]]) -> None:
    """Delete the given deletion markers from a bucket."""
    if not markers:
        _log.debug("No deletion markers returned in page")
        return
    _delete_identifiers(
        client,
        bucket_name,
        [{"Key": obj["Key"], "VersionId": obj["VersionId"]} for obj in markers],
    )


def nuke_all_s3_bucket_objects(client: Any, bucket_name: str, batch_size: int) -> None:
    """Delete all objects in a bucket in batches of batch_size."""
    versioning = client.get_bucket_versioning(Bucket=bucket_name)
    is_versioned = versioning.get("Status") == "Enabled"

    if not MIN_OBJECT_BATCH_SIZE <= batch_size <= MAX_OBJECT_BATCH_SIZE:
        raise ValueError(
            f"Invalid batchsize - {batch_size} - should be between "
            f"{MIN_OBJECT_BATCH_SIZE} and {MAX_OBJECT_BATCH_SIZE}"
        )

    _log.info("Emptying bucket %s", bucket_name)
    empty_bucket(client, bucket_name, is_versioned, batch_size)
    _log.info("[OK] - successfully emptied bucket %s", bucket_name)


def nuke_empty_s3_bucket(client: Any, bucket_name: str, verify_bucket_deletion: bool) -> None:
    """Delete an empty bucket, optionally waiting until the deletion shows."""
    client.delete_bucket(Bucket=bucket_name)
    if not verify_bucket_deletion:
        return

    # A single wait may not be long enough, so it is tried several times.
    last_error: Exception | None = None
    for attempt in range(1, BUCKET_DELETION_WAIT_ATTEMPTS + 1):
        _log.info(
            "Waiting until bucket (%s) deletion is propagated (attempt %d / %d)",
            bucket_name,
            attempt,
            BUCKET_DELETION_WAIT_ATTEMPTS,
        )
        try:
            client.wait_until_bucket_not_exists(Bucket=bucket_name)
        except Exception as exc:
            last_error = exc
            _log.warning(
                "Error waiting for bucket (%s) deletion propagation (attempt %d / %d)",
                bucket_name,
                attempt,
                BUCKET_DELETION_WAIT_ATTEMPTS,
            )
            _log.warning("Underlying error was: %s", exc)
            continue
        _log.info("Successfully detected bucket deletion.")
        return
    assert last_error is not None
    raise last_error


def nuke_all_s3_buckets(session: Session, bucket_names: Sequence[str], object_batch_size: int) -> int:
    """Empty and delete the given buckets; return how many were deleted.

    Raises BucketNukeError, carrying the count, if any bucket failed.
    """
    client = session.client("s3")
    if not bucket_names:
        _log.info("No S3 Buckets to nuke in region %s", session.region)
        return 0

    total = len(bucket_names)
    _log.info("Deleting - %d S3 Buckets in region %s", total, session.region)

    errors: list[Exception] = []
    deleted = 0
    for position, name in enumerate(bucket_names, start=1):
        _log.debug("Deleting - %d/%d - Bucket: %s", position, total, name)

        try:
            nuke_all_s3_bucket_objects(client, name, object_batch_size)
        except Exception as exc:
            _log.error("[Failed] - %d/%d - Bucket: %s - object deletion error - %s", position, total, name, exc)
            errors.append(exc)
            continue

        try:
            nuke_empty_s3_bucket(client, name, True)
        except Exception as exc:
            _log.error("[Failed] - %d/%d - Bucket: %s - bucket deletion error - %s", position, total, name, exc)
            errors.append(exc)
            continue

        _log.info("[OK] - %d/%d - Bucket: %s - deleted", position, total, name)
        deleted += 1

    if errors:
        raise BucketNukeError(errors, deleted)
    return deleted


@dataclass
class S3Buckets(AwsResources):
    """S3 buckets found for nuking."""

    names: list[str] = field(default_factory=list)

    def resource_name(self) -> str:
        return "s3"

    def max_batch_size(self) -> int:
        # Tentative size to avoid throttling.
        return 500

    def max_concurrent_get_size(self) -> int:
        """How many buckets to inspect concurrently."""
        return 100

    def object_max_batch_size(self) -> int:
        """How many objects (or object versions) to delete in one call."""
        return 1000

    def resource_identifiers(self) -> list[str]:
        return self.names

    def nuke(self, session: Session, identifiers: list[str]) -> None:
        error: BucketNukeError | None = None
        try:
            deleted = nuke_all_s3_buckets(session, identifiers, self.object_max_batch_size())
        except BucketNukeError as exc:
            deleted = exc.deleted_count
            error = exc

        total = len(identifiers)
        if deleted > 0:
            _log.info("[OK] - %d/%d - S3 bucket(s) deleted in %s", deleted, total, session.region)
        if deleted != total:
            _log.error("[Failed] - %d/%d - S3 bucket(s) failed deletion in %s", total - deleted, total, session.region)
        if error is not None:
            raise error