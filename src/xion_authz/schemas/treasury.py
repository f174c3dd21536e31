"""
Treasury Schemas

Models for the grant policy published by a treasury contract, either read
directly from the contract or from the DaoDao indexer.
"""

from typing import List, Optional
from urllib.parse import urlparse

from pydantic import AliasChoices, Field

from .bases import CanonicalModel


def is_url_safe(url: Optional[str]) -> bool:
    """Only http(s) URLs with a host are considered safe to expose."""
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ProtobufAny(CanonicalModel):
    """Protobuf Any as stored by the treasury contract (value is base64)."""
    type_url: str
    value: str = ""


class TreasuryGrantConfig(CanonicalModel):
    """One grant the treasury asks the user to approve."""
    authorization: ProtobufAny
    description: str
    optional: bool = False
    allowance: Optional[ProtobufAny] = None
    max_duration: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("max_duration", "maxDuration"),
    )


class TreasuryParams(CanonicalModel):
    """
    Display parameters of a treasury.

    ``metadata`` is a JSON document chosen by the treasury admin, not a URL.
    """
    redirect_url: str = ""
    icon_url: str = ""
    metadata: str = ""

    @classmethod
    def sanitized(
        cls,
        redirect_url: Optional[str] = None,
        icon_url: Optional[str] = None,
        metadata: Optional[str] = None,
    ) -> "TreasuryParams":
        """Build params, blanking any URL that is not http(s)."""
        return cls(
            redirect_url=redirect_url if is_url_safe(redirect_url) else "",
            icon_url=icon_url if is_url_safe(icon_url) else "",
            metadata=metadata if isinstance(metadata, str) else "",
        )


class TreasuryConfig(CanonicalModel):
    """Complete treasury policy."""
    grant_configs: List[TreasuryGrantConfig] = Field(default_factory=list)
    params: TreasuryParams = Field(default_factory=TreasuryParams)
