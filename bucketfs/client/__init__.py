"""Object storage client contract and implementations."""

from bucketfs.client.base import ListPage, ObjectHead, ObjectStorageClient, ObjectSummary
from bucketfs.client.boto3_client import Boto3ObjectClient

__all__ = [
    "Boto3ObjectClient",
    "ListPage",
    "ObjectHead",
    "ObjectStorageClient",
    "ObjectSummary",
]
