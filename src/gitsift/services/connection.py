"""
Description of which repositories a git source scans and how it authenticates.
"""
from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, SecretStr


class BasicAuth(BaseModel):
    type: Literal["basic_auth"] = "basic_auth"
    username: str
    password: SecretStr


class Unauthenticated(BaseModel):
    type: Literal["unauthenticated"] = "unauthenticated"


Credential = Annotated[Union[BasicAuth, Unauthenticated], Field(discriminator="type")]


class GitConnection(BaseModel):
    """Remote repositories to clone plus local directories to open.

    ``directories`` may also hold ``file://`` or ``https://`` URIs; the latter
    are cloned on the fly and removed after scanning.
    """

    repositories: List[str] = Field(default_factory=list)
    directories: List[str] = Field(default_factory=list)
    credential: Optional[Credential] = None
