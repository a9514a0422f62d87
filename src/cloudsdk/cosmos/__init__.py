from cloudsdk.cosmos.client import CosmosClient
from cloudsdk.cosmos.models import DatabaseDefinition, SqlQuerySpec, UserDefinition

__all__ = ["CosmosClient", "DatabaseDefinition", "SqlQuerySpec", "UserDefinition"]
