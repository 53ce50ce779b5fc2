"""s3sync - Push settled local file changes to S3 buckets."""

__version__ = "0.3.0"
