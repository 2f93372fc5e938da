"""
Purge request, outcome and content-change event types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


NO_SERVER_CONFIGURED = "no server configured"
HOST_UNDETERMINED = "Failed to determine current host."


class PurgeErrorKind(str, Enum):
    """Why a purge did not succeed."""

    NO_SERVER_CONFIGURED = "no_server_configured"
    TRANSPORT_FAILURE = "transport_failure"
    NON_SUCCESS_STATUS = "non_success_status"
    HOST_UNDETERMINED = "host_undetermined"


@dataclass(frozen=True)
class PurgeRequest:
    """A single PURGE to send to the cache server."""

    target_host: str
    server_address: str
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def for_host(cls, host: str, server_address: str) -> "PurgeRequest":
        return cls(target_host=host, server_address=server_address, headers={"Host": host})


@dataclass(frozen=True)
class PurgeOutcome:
    """Result of one purge attempt."""

    success: bool
    http_status: Optional[int] = None
    error_message: Optional[str] = None
    error_kind: Optional[PurgeErrorKind] = None

    @classmethod
    def failed(cls, kind: PurgeErrorKind, message: str, http_status: Optional[int] = None) -> "PurgeOutcome":
        return cls(success=False, http_status=http_status, error_message=message, error_kind=kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "http_status": self.http_status,
            "error_message": self.error_message,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


class EventKind(str, Enum):
    """Triggers that may lead to a purge."""

    POST_SAVED = "post_saved"
    POST_DELETED = "post_deleted"
    COMMENT_CHANGED = "comment_changed"
    TERM_CHANGED = "term_changed"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class ContentChangeEvent(BaseModel):
    """Notification that persisted content changed, as posted by the CMS adapter."""

    kind: EventKind = Field(..., description="What happened")
    host: Optional[str] = Field(None, description="Host of the request that caused the change")
    is_autosave: bool = Field(default=False, description="Saved by the editor's autosave")
    is_revision: bool = Field(default=False, description="Saved as a revision snapshot")
    post_type_public: bool = Field(default=True, description="Content type is publicly visible")
    object_id: Optional[str] = Field(None, description="Identifier of the changed object")
    object_type: Optional[str] = Field(None, description="Post type, taxonomy or comment type")
