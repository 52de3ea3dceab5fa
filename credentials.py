# credentials.py
import time
from typing import Any, Dict

from azure.core.credentials import AccessToken, TokenCredential
from azure.identity import AzureCliCredential, DefaultAzureCredential, InteractiveBrowserCredential

from settings import ConfigError


class StaticTokenCredential(TokenCredential):
    """
    Credential for AZURE_ACCESS_TOKEN: hands a pre-acquired ARM token to the
    management clients, e.g. when aztag runs in a pipeline that has no `az login` session.
    """
    def __init__(self, token: str, expires_in: int = 3300):
        self._token = token
        self._expires_on = int(time.time()) + expires_in

    def get_token(self, *scopes, **kwargs) -> AccessToken:
        return AccessToken(self._token, self._expires_on)


def get_credential(settings: Dict[str, Any]):
    """
    Pick a credential from settings:
      AZURE_ACCESS_TOKEN set -> StaticTokenCredential
      AZTAG_AUTH=cli         -> AzureCliCredential (reuses `az login`)
      AZTAG_AUTH=browser     -> InteractiveBrowserCredential
      AZTAG_AUTH=default     -> DefaultAzureCredential
    """
    token = settings.get("access_token")
    if token:
        return StaticTokenCredential(token)

    mode = settings.get("auth_mode") or "cli"
    if mode == "cli":
        return AzureCliCredential()
    if mode == "browser":
        return InteractiveBrowserCredential(tenant_id=settings.get("tenant_id"))
    if mode == "default":
        return DefaultAzureCredential()
    raise ConfigError(f"Unknown auth mode '{mode}'")
