"""Domain models for imgix sources and their wire representation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SOURCE_TYPE = "sources"

# Write-only credentials; the API accepts them but never returns them on read.
WRITE_ONLY_DEPLOYMENT_FIELDS = ("s3_secret_key", "gcs_secret_key")


@dataclass(slots=True)
class SourceDeployment:
    """Where and how a source serves its images."""

    type: str
    imgix_subdomains: List[str]
    annotation: str = ""
    cache_ttl_behavior: str = "respect_origin"
    cache_ttl_error: int = 300
    cache_ttl_value: int = 31536000
    crossdomain_xml_enabled: bool = False
    custom_domains: List[str] = field(default_factory=list)
    default_params: Dict[str, str] = field(default_factory=dict)
    image_error: Optional[str] = None
    image_error_append_qs: bool = False
    image_missing: Optional[str] = None
    image_missing_append_qs: bool = False
    secure_url_enabled: Optional[bool] = None
    allows_upload: Optional[bool] = None

    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_bucket: Optional[str] = None
    s3_prefix: Optional[str] = None

    gcs_access_key: Optional[str] = None
    gcs_secret_key: Optional[str] = None
    gcs_bucket: Optional[str] = None
    gcs_prefix: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "annotation": self.annotation,
            "cache_ttl_behavior": self.cache_ttl_behavior,
            "cache_ttl_error": self.cache_ttl_error,
            "cache_ttl_value": self.cache_ttl_value,
            "crossdomain_xml_enabled": self.crossdomain_xml_enabled,
            "custom_domains": list(self.custom_domains),
            "default_params": dict(self.default_params),
            "image_error": self.image_error,
            "image_error_append_qs": self.image_error_append_qs,
            "image_missing": self.image_missing,
            "image_missing_append_qs": self.image_missing_append_qs,
            "imgix_subdomains": list(self.imgix_subdomains),
            "secure_url_enabled": self.secure_url_enabled,
            "type": self.type,
            "s3_access_key": self.s3_access_key,
            "s3_secret_key": self.s3_secret_key,
            "s3_bucket": self.s3_bucket,
            "s3_prefix": self.s3_prefix,
            "gcs_access_key": self.gcs_access_key,
            "gcs_secret_key": self.gcs_secret_key,
            "gcs_bucket": self.gcs_bucket,
            "gcs_prefix": self.gcs_prefix,
        }
        for name in WRITE_ONLY_DEPLOYMENT_FIELDS:
            if payload[name] is None:
                del payload[name]
        return payload

    @classmethod
    def from_wire(cls, raw: Dict[str, Any]) -> "SourceDeployment":
        return cls(
            type=raw.get("type") or "",
            imgix_subdomains=list(raw.get("imgix_subdomains") or []),
            annotation=raw.get("annotation") or "",
            cache_ttl_behavior=raw.get("cache_ttl_behavior") or "respect_origin",
            cache_ttl_error=int(raw.get("cache_ttl_error") or 300),
            cache_ttl_value=int(raw.get("cache_ttl_value") or 31536000),
            crossdomain_xml_enabled=bool(raw.get("crossdomain_xml_enabled")),
            custom_domains=list(raw.get("custom_domains") or []),
            default_params={str(k): str(v) for k, v in (raw.get("default_params") or {}).items()},
            image_error=raw.get("image_error"),
            image_error_append_qs=bool(raw.get("image_error_append_qs")),
            image_missing=raw.get("image_missing"),
            image_missing_append_qs=bool(raw.get("image_missing_append_qs")),
            secure_url_enabled=raw.get("secure_url_enabled"),
            allows_upload=raw.get("allows_upload"),
            s3_access_key=raw.get("s3_access_key"),
            s3_secret_key=raw.get("s3_secret_key"),
            s3_bucket=raw.get("s3_bucket"),
            s3_prefix=raw.get("s3_prefix"),
            gcs_access_key=raw.get("gcs_access_key"),
            gcs_secret_key=raw.get("gcs_secret_key"),
            gcs_bucket=raw.get("gcs_bucket"),
            gcs_prefix=raw.get("gcs_prefix"),
        )


@dataclass(slots=True)
class Source:
    """An imgix source as known to the management API.

    ``deployment_status``, ``date_deployed``, ``secure_url_token`` and
    ``deployment.allows_upload`` are computed by imgix. They are decoded from
    read responses and never written back, whatever their in-memory value.
    """

    name: str
    deployment: SourceDeployment
    id: Optional[str] = None
    type: Optional[str] = None
    enabled: Optional[bool] = True
    deployment_status: Optional[str] = None
    date_deployed: Optional[int] = None
    secure_url_token: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the ``data`` object for a POST or PATCH body."""
        attributes: Dict[str, Any] = {
            "name": self.name,
            "deployment": self.deployment.to_wire(),
        }
        if self.enabled is not None:
            attributes["enabled"] = self.enabled
        data: Dict[str, Any] = {"attributes": attributes}
        if self.id is not None:
            data["id"] = self.id
        if self.type is not None:
            data["type"] = self.type
        return data

    def to_request(self) -> Dict[str, Any]:
        return {"data": self.to_wire()}

    @classmethod
    def from_wire(cls, raw: Dict[str, Any]) -> "Source":
        attributes = raw.get("attributes") or {}
        return cls(
            id=raw.get("id"),
            type=raw.get("type"),
            name=attributes.get("name") or "",
            enabled=attributes.get("enabled"),
            deployment_status=attributes.get("deployment_status"),
            date_deployed=attributes.get("date_deployed"),
            secure_url_token=attributes.get("secure_url_token"),
            deployment=SourceDeployment.from_wire(attributes.get("deployment") or {}),
        )

    def carry_write_only_fields(self, origin: "Source") -> "Source":
        """Copy secrets the API never echoes from ``origin`` onto this source."""
        for name in WRITE_ONLY_DEPLOYMENT_FIELDS:
            if getattr(self.deployment, name) is None:
                setattr(self.deployment, name, getattr(origin.deployment, name))
        return self


@dataclass(slots=True)
class Diagnostic:
    """A message the orchestration layer must show the user."""

    severity: str
    summary: str
    detail: Optional[str] = None


@dataclass(slots=True)
class DisableOutcome:
    """Result of the "delete" operation, which only ever disables a source."""

    source: Source
    diagnostics: List[Diagnostic] = field(default_factory=list)
