"""Declarative source specifications and their validation rules."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InvalidSpecError
from .models import SOURCE_TYPE, Source, SourceDeployment

RESERVED_DOMAIN_SUFFIX = "imgix.net"
MAX_CACHE_TTL_SECONDS = 31536000


def validate_subdomain(value: str) -> str:
    """Reject subdomains that already carry the imgix.net suffix."""
    if value.endswith(RESERVED_DOMAIN_SUFFIX):
        raise ValueError(
            f"Subdomains can't contain {RESERVED_DOMAIN_SUFFIX} suffix. Invalid record: {value}"
        )
    return value


class DeploymentSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["azure", "gcs", "s3", "webfolder", "webproxy"]
    imgix_subdomains: List[str] = Field(
        min_length=1,
        description="Subdomains on *.imgix.net used to access the images",
    )
    annotation: str = Field("", description="Any comment on the specific deployment")
    cache_ttl_behavior: Literal["respect_origin", "override_origin", "enforce_minimum"] = "respect_origin"
    cache_ttl_error: int = Field(300, ge=1, le=MAX_CACHE_TTL_SECONDS)
    cache_ttl_value: int = Field(MAX_CACHE_TTL_SECONDS, ge=1, le=MAX_CACHE_TTL_SECONDS)
    crossdomain_xml_enabled: bool = False
    custom_domains: List[str] = Field(default_factory=list)
    default_params: Dict[str, str] = Field(default_factory=dict)
    image_error: Optional[str] = None
    image_error_append_qs: bool = False
    image_missing: Optional[str] = None
    image_missing_append_qs: bool = False
    secure_url_enabled: Optional[bool] = None

    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_bucket: Optional[str] = None
    s3_prefix: Optional[str] = None

    gcs_access_key: Optional[str] = None
    gcs_secret_key: Optional[str] = None
    gcs_bucket: Optional[str] = None
    gcs_prefix: Optional[str] = None

    @field_validator("imgix_subdomains")
    @classmethod
    def validate_subdomains(cls, value: List[str]) -> List[str]:
        return [validate_subdomain(item) for item in value]

    def to_deployment(self) -> SourceDeployment:
        return SourceDeployment(**self.model_dump())


class SourceSpec(BaseModel):
    """User supplied configuration for one source."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, description="Source display name")
    enabled: bool = True
    deployment: DeploymentSpec

    @model_validator(mode="before")
    @classmethod
    def _unwrap_deployment_block(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        block = values.get("deployment")
        if block is None:
            raise ValueError("Exactly one deployment block is required, found none")
        if isinstance(block, list):
            if len(block) != 1:
                raise ValueError(f"Invalid number of deployment elements in list: {len(block)}")
            values = {**values, "deployment": block[0]}
        return values

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SourceSpec":
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise InvalidSpecError(f"Invalid source specification: {exc}") from exc

    def to_source(self, source_id: Optional[str] = None) -> Source:
        return Source(
            id=source_id,
            type=SOURCE_TYPE,
            name=self.name,
            enabled=self.enabled,
            deployment=self.deployment.to_deployment(),
        )


def load_source_spec(path: str | Path) -> SourceSpec:
    """Load a SourceSpec from a YAML file."""
    spec_path = Path(path).expanduser().resolve()
    if not spec_path.exists():
        raise FileNotFoundError(f"Source specification not found: {spec_path}")
    raw = yaml.safe_load(spec_path.read_text())
    if not isinstance(raw, dict):
        raise InvalidSpecError(f"Source specification must be a mapping: {spec_path}")
    return SourceSpec.from_dict(raw)
