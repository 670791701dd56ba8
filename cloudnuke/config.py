"""Matching rules that select which resources may be nuked."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Iterable, Pattern

import yaml


class ConfigError(ValueError):
    """Raised when a config file cannot be read into a Config."""


@dataclass
class FilterRule:
    """A list of regular expressions matched against resource names."""

    names_regexp: list[Pattern[str]] = field(default_factory=list)

    @classmethod
    def _from_yaml(cls, data: Any, where: str) -> FilterRule:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"{where}: expected a mapping, got {type(data).__name__}")
        names = data.get("names_regex")
        if names is None:
            return cls()
        if not isinstance(names, list):
            raise ConfigError(f"{where}.names_regex: expected a list, got {type(names).__name__}")
        patterns = []
        for item in names:
            if item is None or isinstance(item, (dict, list)):
                raise ConfigError(f"{where}.names_regex: expected a string, got {item!r}")
            text = str(item).lower() if isinstance(item, bool) else str(item)
            try:
                patterns.append(re.compile(text))
            except re.error as exc:
                raise ConfigError(f"{where}.names_regex: invalid pattern {text!r}: {exc}") from exc
        return cls(patterns)


@dataclass
class ResourceType:
    """Include and exclude rules for one kind of resource."""

    include_rule: FilterRule = field(default_factory=FilterRule)
    exclude_rule: FilterRule = field(default_factory=FilterRule)

    @classmethod
    def _from_yaml(cls, data: Any, where: str) -> ResourceType:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"{where}: expected a mapping, got {type(data).__name__}")
        return cls(
            include_rule=FilterRule._from_yaml(data.get("include"), f"{where}.include"),
            exclude_rule=FilterRule._from_yaml(data.get("exclude"), f"{where}.exclude"),
        )


def _section(key: str) -> Any:
    return field(default_factory=ResourceType, metadata={"yaml": key})


@dataclass
class Config:
    """The rules for every resource kind that supports config filtering."""

    s3: ResourceType = _section("s3")
    iam_users: ResourceType = _section("IAMUsers")
    secrets_manager_secrets: ResourceType = _section("SecretsManager")
    nat_gateway: ResourceType = _section("NatGateway")
    access_analyzer: ResourceType = _section("AccessAnalyzer")
    cloud_watch_dashboard: ResourceType = _section("CloudWatchDashboard")
    open_search_domain: ResourceType = _section("OpenSearchDomain")
    dynamodb: ResourceType = _section("DynamoDB")
    ebs_volume: ResourceType = _section("EBSVolume")
    lambda_function: ResourceType = _section("LambdaFunction")
    elbv2: ResourceType = _section("ELBv2")
    ecs_service: ResourceType = _section("ECSService")
    ecs_cluster: ResourceType = _section("ECSCluster")
    elasticache: ResourceType = _section("Elasticache")
    vpc: ResourceType = _section("VPC")
    oidc_provider: ResourceType = _section("OIDCProvider")
    cloud_watch_log_group: ResourceType = _section("CloudWatchLogGroup")

    @classmethod
    def _from_yaml(cls, data: Any) -> Config:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"config: expected a mapping, got {type(data).__name__}")
        values = {}
        for f in fields(cls):
            key = f.metadata["yaml"]
            values[f.name] = ResourceType._from_yaml(data.get(key), key)
        return cls(**values)


def get_config(file_path: str | Path) -> Config:
    """Read a YAML config file and return the Config it describes."""
    text = Path(file_path).resolve().read_text()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {file_path}: {exc}") from exc
    return Config._from_yaml(data)


def _matches(name: str, patterns: Iterable[Pattern[str]]) -> bool:
    return any(pattern.search(name) for pattern in patterns)


def should_include(
    name: str,
    include_res: Iterable[Pattern[str]] | None,
    exclude_res: Iterable[Pattern[str]] | None,
) -> bool:
    """Decide whether a resource name passes the include and exclude rules."""
    include = list(include_res or ())
    exclude = list(exclude_res or ())
    if not include and not exclude:
        return True
    if _matches(name, exclude):
        return False
    if not include:
        return True
    return _matches(name, include)