"""imgix management API client for sources."""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from .config import DEFAULT_API_URL, ImgixConfig
from .errors import InvalidSpecError, MissingCredentialError
from .http import TransportError, UnexpectedResponseError, parse_json, raise_for_api_error
from .models import Source

logger = logging.getLogger(__name__)

SOURCES_PATH = "/api/v1/sources"


class ImgixClient:
    """Stateless client bound to one API base URL and bearer credential.

    Instances hold only immutable configuration and open a fresh request per
    call, so one client can serve several sources concurrently.
    """

    def __init__(self, access_key: str, api_base_url: Optional[str] = None, timeout: float = 30.0) -> None:
        if not access_key or not access_key.strip():
            raise MissingCredentialError("missing access key")
        self._access_key = access_key.strip()
        self._base_url = (api_base_url or DEFAULT_API_URL).rstrip("/")
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: ImgixConfig) -> "ImgixClient":
        return cls(
            access_key=config.access_key,
            api_base_url=config.api_base_url,
            timeout=config.request_timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def get_source_by_id(self, source_id: str) -> Source:
        response = self._authorized_request("GET", f"{SOURCES_PATH}/{source_id}")
        raise_for_api_error(response, expected_status=200)
        return self._decode_source(response)

    def create_source(self, source: Source) -> Source:
        logger.info("Creating imgix source '%s'", source.name)
        response = self._authorized_request("POST", SOURCES_PATH, json=source.to_request())
        if response.status_code != 201:
            logger.error("Source creation failed with status %s", response.status_code)
        raise_for_api_error(response, expected_status=201)
        created = self._decode_source(response)
        if not created.id:
            raise UnexpectedResponseError(
                status_code=response.status_code,
                url=response.request.url if response.request else "<unknown>",
                body_preview="<response did not include a source id>",
            )
        logger.info("Created imgix source '%s' with id '%s'", created.name, created.id)
        return created

    def update_source(self, source: Source) -> Source:
        """PATCH the source and return the input value.

        The API only echoes part of the written fields, so the caller's value
        stays authoritative.
        """
        if not source.id:
            raise InvalidSpecError("Cannot update a source that has no id")
        logger.info("Updating imgix source '%s'", source.id)
        response = self._authorized_request(
            "PATCH",
            f"{SOURCES_PATH}/{source.id}",
            json=source.to_request(),
        )
        if response.status_code != 200:
            logger.error("Update of source '%s' failed with status %s", source.id, response.status_code)
        raise_for_api_error(response, expected_status=200)
        return source

    def disable_source(self, source: Source) -> None:
        source.enabled = False
        self.update_source(source)

    def _decode_source(self, response: requests.Response) -> Source:
        body = parse_json(response)
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise UnexpectedResponseError(
                status_code=response.status_code,
                url=response.request.url if response.request else "<unknown>",
                body_preview="<response did not include a data object>",
            )
        try:
            return Source.from_wire(data)
        except (AttributeError, TypeError, ValueError) as exc:
            raise UnexpectedResponseError(
                status_code=response.status_code,
                url=response.request.url if response.request else "<unknown>",
                body_preview=f"<malformed source object: {exc}>",
            ) from exc

    def _authorized_request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._access_key}"
        headers.setdefault("Accept", "application/json")
        if "json" in kwargs:
            headers.setdefault("Content-Type", "application/json")
        url = f"{self._base_url}{path}"
        try:
            return requests.request(method, url, headers=headers, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(url=url, message=str(exc)) from exc
