"""Common types shared by all nukeable resource kinds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

AWS_RESOURCE_EXCLUSION_TAG_KEY = "cloud-nuke-excluded"


class AwsApiError(Exception):
    """An error reported by a cloud API, carrying the service's error code."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code
        self.message = message


class MultiError(Exception):
    """Several errors gathered while working through a batch."""

    def __init__(self, errors: Sequence[BaseException]) -> None:
        if not errors:
            raise ValueError("MultiError needs at least one error")
        self.errors = list(errors)
        super().__init__(self._format())

    def _format(self) -> str:
        points = "\n\t".join(f"* {err}" for err in self.errors)
        count = len(self.errors)
        noun = "error" if count == 1 else "errors"
        return f"{count} {noun} occurred:\n\t{points}\n\n"

    def __str__(self) -> str:
        return self._format()


ClientFactory = Callable[[str, str], Any]


@dataclass(frozen=True)
class Session:
    """A region plus a factory that builds service clients for it."""

    region: str
    client_factory: ClientFactory

    def client(self, service: str) -> Any:
        """Return a client for the named service in this session's region."""
        return self.client_factory(service, self.region)

    def for_region(self, region: str) -> Session:
        """Return a session like this one but bound to another region."""
        return Session(region, self.client_factory)


class AwsResources(ABC):
    """A set of resources of one kind, found in one region, that can be nuked."""

    @abstractmethod
    def resource_name(self) -> str:
        """The short name of the resource kind."""

    @abstractmethod
    def resource_identifiers(self) -> list[str]:
        """The identifiers of the resources found."""

    @abstractmethod
    def max_batch_size(self) -> int:
        """How many resources to delete in one call."""

    @abstractmethod
    def nuke(self, session: Session, identifiers: list[str]) -> None:
        """Delete the given resources."""


@dataclass
class AwsRegionResource:
    """All resource sets found in one region."""

    resources: list[AwsResources] = field(default_factory=list)


@dataclass
class AwsAccountResources:
    """Resource sets found in an account, keyed by region."""

    resources: dict[str, AwsRegionResource] = field(default_factory=dict)