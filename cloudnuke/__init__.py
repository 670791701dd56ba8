"""Find and delete stale cloud resources: S3 buckets, secrets, snapshots, SQS queues and transit gateways."""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "config",
    "log",
    "resources",
    "s3",
    "secrets_manager",
    "snapshot",
    "sqs",
    "transit_gateway",
    "unique_id",
]