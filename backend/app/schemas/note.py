"""
PadPress Backend — Pydantic Response Schemas
=============================================

What:  Shapes of the JSON and template payloads produced by the note
       handlers.
How:   JSON field names follow what the editor front end already reads
       (`baseURL`, `accesstoken`, ...) through aliases; Python code uses
       snake_case attributes.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GitLabProjectsResponse(BaseModel):
    """
    What:  Answer of GET /gitlab/{note_id}/projects.

    `projects` is optional by contract: when GitLab cannot be reached the
    rest of the object is still returned and `projects` is omitted.
    Serialize with `by_alias=True`, excluding `projects` only when it is None;
    a missing token or profile id is sent as null.
    """

    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field(alias="baseURL")
    version: str
    access_token: Optional[str] = Field(default=None, alias="accesstoken")
    profile_id: Optional[str] = Field(default=None, alias="profileid")
    projects: Optional[List[Dict[str, Any]]] = None


class UserProfile(BaseModel):
    name: str
    photo: Optional[str] = None
    biography: Optional[str] = None


class SlideView(BaseModel):
    """
    What:  Context handed to slide.html.
    Who:   Built by the slide route after the view counter was incremented.
    """

    title: str
    description: Optional[str] = None
    viewcount: int
    createtime: Optional[datetime] = None
    updatetime: Optional[datetime] = None
    body: str
    theme: Optional[str] = None
    meta: str = Field(description="Front matter as JSON, read by the slide runtime")
    owner: Optional[str] = None
    ownerprofile: Optional[UserProfile] = None
    lastchangeuser: Optional[str] = None
    lastchangeuserprofile: Optional[UserProfile] = None
    robots: Optional[str] = None
    ga: Optional[str] = None
    disqus: Optional[str] = None
    csp_nonce: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
