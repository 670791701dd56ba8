# cloudnuke

`cloudnuke` is a library that finds cloud resources older than a given age
and deletes them. It is meant for sandbox and test accounts, where leftovers
from experiments and test runs pile up and cost money.

**Deletion is destructive and irreversible.** Everything it removes is gone
for good.

## What it covers

| Resource kind                    | `resource_name()`               | Module                       |
|----------------------------------|---------------------------------|------------------------------|
| S3 buckets (and all objects)     | `s3`                            | `cloudnuke.s3`               |
| Secrets Manager secrets          | `secretsmanager`                | `cloudnuke.secrets_manager`  |
| EBS snapshots owned by you       | `snap`                          | `cloudnuke.snapshot`         |
| SQS queues                       | `sqs`                           | `cloudnuke.sqs`              |
| Transit gateways                 | `transit-gateway`               | `cloudnuke.transit_gateway`  |
| Transit gateway route tables     | `transit-gateway-route-table`   | `cloudnuke.transit_gateway`  |
| Transit gateway VPC attachments  | `transit-gateway-attachment`    | `cloudnuke.transit_gateway`  |

Each module lists the resources created before a cut-off time and deletes a
given list of them:

- `s3.get_all_s3_buckets(session, exclude_after, target_regions, bucket_name_substr, batch_size, config)`
  returns a dict of region → bucket names; `s3.nuke_all_s3_buckets(session, names, object_batch_size)`
  empties each bucket (all versions and deletion markers too) and deletes it,
  returning the number deleted.
- `secrets_manager.get_all_secrets_manager_secrets(session, exclude_after, config)` and
  `secrets_manager.nuke_all_secrets_manager_secrets(session, identifiers)`.
- `snapshot.get_all_snapshots(session, region, exclude_after)` and
  `snapshot.nuke_all_snapshots(session, snapshot_ids)`.
- `sqs.get_all_sqs_queue(session, region, exclude_after)` and
  `sqs.nuke_all_sqs_queues(session, urls)`.
- `transit_gateway.get_all_transit_gateway_instances`, `get_all_transit_gateway_route_tables`
  and `get_all_transit_gateway_vpc_attachments`, each taking `(session, region, exclude_after)`,
  with matching `nuke_all_...(session, ids)` functions, plus
  `tg_is_available_in_region(session, region)`.

The resource classes `S3Buckets`, `SecretsManagerSecrets`, `Snapshots`,
`SqsQueue`, `TransitGateways`, `TransitGatewaysRouteTables` and
`TransitGatewaysVpcAttachment` hold the identifiers that were found. All of
them implement `cloudnuke.resources.AwsResources`: `resource_name()`,
`resource_identifiers()`, `max_batch_size()` and `nuke(session, identifiers)`.
`AwsRegionResource` and `AwsAccountResources` group such sets by region.

### How failures are reported

- Snapshots, SQS queues and transit gateway resources: each failed deletion
  is logged and skipped. The `nuke_all_...` functions return the identifiers
  that were deleted.
- Secrets: secrets are deleted in parallel. If any deletion fails, a
  `cloudnuke.resources.MultiError` is raised that holds every error.
- S3: if any bucket fails, `cloudnuke.s3.BucketNukeError` (a `MultiError`) is
  raised. It also carries `deleted_count`. The object batch size must be
  between 1 and 1000, and the listing batch size must be above 0. Otherwise
  `ValueError` is raised.

Deleting transit gateway VPC attachments is followed by a 180-second sleep,
because there is no waiter for this step.

## Sessions and clients

The package brings no cloud client of its own. A `cloudnuke.resources.Session`
is a region plus a factory that you supply. The factory is called as
`factory(service, region)`, with `service` one of `"s3"`, `"secretsmanager"`,
`"ec2"` or `"sqs"`.

Each client it returns must provide the methods named in the docstring of the
module that uses it. Those methods take keyword arguments in the service's
request shape and return plain dicts in its response shape. A call that fails
with a service error code must raise `cloudnuke.resources.AwsApiError(code, message)`.
The code `NoSuchTagSet` from `get_bucket_tagging` and the code `InvalidAction`
from `describe_transit_gateways` are handled specially.

```python
from cloudnuke.resources import Session
from cloudnuke.snapshot import get_all_snapshots, nuke_all_snapshots
from cloudnuke.cli import parse_duration_param

def make_client(service, region):
    ...  # return an object with the methods the module needs

session = Session("eu-west-1", make_client)
cutoff = parse_duration_param("24h")
ids = get_all_snapshots(session, session.region, cutoff)
nuke_all_snapshots(session, ids)
```

Timestamps in responses, such as `CreationDate`, `StartTime` and
`CreationTime`, must be `datetime` values that can be compared with the
cut-off. `parse_duration_param` returns a timezone-aware local time.

## Protecting resources

An S3 bucket is never selected if it carries the tag `cloud-nuke-excluded`
with the value `true`. Case does not matter for the key or the value. Use
`cloudnuke.s3.has_valid_tags(tags)` to check this yourself.

```python
from cloudnuke.s3 import has_valid_tags

has_valid_tags([{"Key": "cloud-nuke-excluded", "Value": "TRUE"}])  # False
```

A YAML file read by `cloudnuke.config.get_config(path)` gives name rules for
each resource kind. Each kind can have an `include` list, an `exclude` list,
or both, of regular expressions:

```yaml
s3:
  include:
    names_regex:
      - ^alb-.*-access-logs$
  exclude:
    names_regex:
      - .*-prod-.*

SecretsManager:
  exclude:
    names_regex:
      - ^keep-
```

The top-level keys are `s3`, `IAMUsers`, `SecretsManager`, `NatGateway`,
`AccessAnalyzer`, `CloudWatchDashboard`, `OpenSearchDomain`, `DynamoDB`,
`EBSVolume`, `LambdaFunction`, `ELBv2`, `ECSService`, `ECSCluster`,
`Elasticache`, `VPC`, `OIDCProvider` and `CloudWatchLogGroup`. Of these, the
S3 and Secrets Manager rules are the ones applied by this package.

A file that cannot be parsed, or that has the wrong structure, raises
`cloudnuke.config.ConfigError`. The same applies to a file with a bad pattern.
A file that is empty, or holds only unknown keys, gives an empty `Config`.

`should_include(name, include_res, exclude_res)` applies the rules in this
order:

1. If neither list is given, every name is included.
2. A name that matches any exclude pattern is left alone.
3. If there is no include list, every other name is included.
4. Otherwise only names that match an include pattern are included.

A pattern matches if it is found anywhere in the name.

```python
import re
from cloudnuke.config import should_include

include = [re.compile(r"test.*")]
exclude = [re.compile(r".*openvpn.*")]
should_include("test-eks-cluster-123", include, exclude)  # True
should_include("test-openvpn-123", include, exclude)      # False
```

## Helpers

- `cloudnuke.cli.parse_duration(text)` reads durations such as `10m`,
  `1h30m`, `1.5h` or `-300ms` and returns a `timedelta`. The units are `ns`,
  `us`/`µs`, `ms`, `s`, `m` and `h`, and a bare `0` is allowed. Anything else
  raises `ValueError`.
- `cloudnuke.cli.parse_duration_param(text)` returns the current time minus
  that duration.
- `cloudnuke.cli.confirmation_prompt(prompt, max_prompts)` prints a warning,
  then asks on standard input up to `max_prompts` times. It returns `True`
  once `nuke` is entered, in any case.
- `cloudnuke.cli.InvalidFlagError(name, value)` is an error for a flag value
  that is not accepted.
- `cloudnuke.unique_id.unique_id()` returns six random base-62 characters.

## Logging

All messages go through one logger, returned by `cloudnuke.log.get_logger()`,
at level `info` by default. `cloudnuke.log.set_log_level(name)` sets the
level from one of `trace`, `debug`, `info`, `warn`/`warning`, `error`,
`fatal` or `panic`. An unknown name raises `ValueError`.

## What it does not do

- It has no command-line program.
- It does not discover the enabled regions of an account.
- It does not gather every resource kind across regions and nuke them in one
  run. You call each module for the regions and kinds you want.
- It covers only the resource kinds listed above. Config sections for other
  kinds are read but not used.