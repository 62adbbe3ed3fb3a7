from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from imgix_automation.errors import InvalidSpecError
from imgix_automation.schema import SourceSpec, load_source_spec, validate_subdomain


def _spec_payload(**deployment_overrides) -> dict:
    deployment = {
        "type": "s3",
        "imgix_subdomains": ["test"],
        "s3_access_key": "AKIA",
        "s3_secret_key": "secret",
        "s3_bucket": "bucket",
    }
    deployment.update(deployment_overrides)
    return {"name": "source1", "deployment": deployment}


@pytest.mark.parametrize("subdomain", ["test", "test-2"])
def test_validate_subdomain_accepts_plain_names(subdomain: str) -> None:
    assert validate_subdomain(subdomain) == subdomain


@pytest.mark.parametrize("subdomain", ["test.imgix.net", "test-2.imgix.net"])
def test_validate_subdomain_rejects_imgix_suffix(subdomain: str) -> None:
    with pytest.raises(ValueError) as excinfo:
        validate_subdomain(subdomain)

    assert subdomain in str(excinfo.value)


def test_source_spec_applies_defaults() -> None:
    spec = SourceSpec.from_dict(_spec_payload())

    assert spec.enabled is True
    assert spec.deployment.cache_ttl_behavior == "respect_origin"
    assert spec.deployment.cache_ttl_error == 300
    assert spec.deployment.cache_ttl_value == 31536000
    assert spec.deployment.default_params == {}


def test_source_spec_accepts_single_element_deployment_list() -> None:
    payload = _spec_payload()
    payload["deployment"] = [payload["deployment"]]

    spec = SourceSpec.from_dict(payload)

    assert spec.deployment.imgix_subdomains == ["test"]


@pytest.mark.parametrize("deployment", [None, [], "missing"])
def test_source_spec_requires_exactly_one_deployment(deployment) -> None:
    payload = _spec_payload()
    if deployment == "missing":
        del payload["deployment"]
    else:
        payload["deployment"] = deployment

    with pytest.raises(InvalidSpecError):
        SourceSpec.from_dict(payload)


def test_source_spec_rejects_multiple_deployment_blocks() -> None:
    payload = _spec_payload()
    payload["deployment"] = [payload["deployment"], payload["deployment"]]

    with pytest.raises(InvalidSpecError) as excinfo:
        SourceSpec.from_dict(payload)

    assert "deployment" in str(excinfo.value)


@pytest.mark.parametrize(
    "overrides",
    [
        {"imgix_subdomains": []},
        {"imgix_subdomains": ["test.imgix.net"]},
        {"type": "ftp"},
        {"cache_ttl_behavior": "forever"},
        {"cache_ttl_value": 0},
        {"cache_ttl_error": 31536001},
        {"unknown_field": True},
    ],
)
def test_source_spec_rejects_invalid_deployment(overrides: dict) -> None:
    with pytest.raises(InvalidSpecError):
        SourceSpec.from_dict(_spec_payload(**overrides))


def test_to_source_builds_write_request() -> None:
    spec = SourceSpec.from_dict(_spec_payload(default_params={"auto": "format"}))

    source = spec.to_source("abc")

    assert source.id == "abc"
    assert source.type == "sources"
    assert source.enabled is True
    assert source.deployment_status is None
    assert source.deployment.s3_secret_key == "secret"
    assert source.deployment.default_params == {"auto": "format"}


def test_load_source_spec_from_yaml(tmp_path) -> None:
    spec_path = Path(tmp_path) / "source.yaml"
    spec_path.write_text(yaml.safe_dump(_spec_payload()))

    spec = load_source_spec(spec_path)

    assert spec.name == "source1"
    assert spec.deployment.type == "s3"


def test_load_source_spec_rejects_non_mapping(tmp_path) -> None:
    spec_path = Path(tmp_path) / "source.yaml"
    spec_path.write_text("- just\n- a list\n")

    with pytest.raises(InvalidSpecError):
        load_source_spec(spec_path)


def test_load_source_spec_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_source_spec(Path(tmp_path) / "missing.yaml")
