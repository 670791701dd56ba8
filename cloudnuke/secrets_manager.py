"""Finding and deleting Secrets Manager secrets.

The client used here is any object with ``list_secrets`` and ``delete_secret``
methods that take keyword arguments and return plain dictionaries.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence

from .config import Config, should_include
from .log import get_logger
from .resources import AwsResources, MultiError, Session

_log = get_logger()


def get_all_secrets_manager_secrets(session: Session, exclude_after: datetime, config: Config) -> list[str]:
    """Return the ARNs of secrets that pass the time and config filters."""
    client = session.client("secretsmanager")
    arns: list[str] = []
    request: dict[str, Any] = {}
    while True:
        page = client.list_secrets(**request)
        for secret in page.get("SecretList") or []:
            if should_include_secret(secret, exclude_after, config):
                arns.append(secret["ARN"])
        token = page.get("NextToken")
        if not token:
            return arns
        request["NextToken"] = token


def should_include_secret(secret: Mapping[str, Any] | None, exclude_after: datetime, config: Config) -> bool:
    """Decide whether a listed secret may be nuked.

    The reference time is when the secret was last accessed, or when it was
    created if it was never accessed.
    """
    if secret is None:
        return False

    reference = secret.get("LastAccessedDate")
    if reference is None:
        reference = secret["CreatedDate"]
    if exclude_after < reference:
        return False

    rules = config.secrets_manager_secrets
    return should_include(
        secret.get("Name") or "",
        rules.include_rule.names_regexp,
        rules.exclude_rule.names_regexp,
    )


def _delete_secret(client: Any, secret_id: str) -> None:
    client.delete_secret(SecretId=secret_id, ForceDeleteWithoutRecovery=True)


def nuke_all_secrets_manager_secrets(session: Session, identifiers: Sequence[str]) -> None:
    """Delete the given secrets concurrently, raising MultiError on failures."""
    region = session.region
    client = session.client("secretsmanager")

    if not identifiers:
        _log.info("No Secrets Manager Secrets to nuke in region %s", region)
        return

    # There is no bulk delete call, so the secrets are deleted in parallel.
    _log.info("Deleting Secrets Manager secrets in region %s", region)

    def attempt(secret_id: str) -> Exception | None:
        try:
            _delete_secret(client, secret_id)
        except Exception as exc:
            return exc
        return None

    with ThreadPoolExecutor(max_workers=len(identifiers)) as pool:
        outcomes = list(pool.map(attempt, identifiers))

    errors = []
    for error in outcomes:
        if error is not None:
            errors.append(error)
            _log.error("[Failed] %s", error)
    if errors:
        raise MultiError(errors)


@dataclass
class SecretsManagerSecrets(AwsResources):
    """Secrets Manager secrets found for nuking."""

    secret_ids: list[str] = field(default_factory=list)

    def resource_name(self) -> str:
        return "secretsmanager"

    def resource_identifiers(self) -> list[str]:
        return self.secret_ids

    def max_batch_size(self) -> int:
        # Deleted in parallel one call each, so kept small to avoid throttling.
        return 10

    def nuke(self, session: Session, identifiers: list[str]) -> None:
        nuke_all_secrets_manager_secrets(session, identifiers)