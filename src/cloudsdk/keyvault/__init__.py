from cloudsdk.keyvault.client import SecretClient
from cloudsdk.keyvault.models import DeletedSecret, KeyVaultSecret, SecretProperties

__all__ = ["DeletedSecret", "KeyVaultSecret", "SecretClient", "SecretProperties"]
