"""
Capability statement handling.

Reads a FHIR CapabilityStatement from a local file or a remote URL and turns it
into the set of profiles the generated service should support:

- only the first ``rest`` section is considered
- every ``supportedProfile`` of every listed resource is merged, in order, into
  the profiles the caller already had, skipping identifiers already present
- when the caller did not name the EHR, the statement's ``publisher`` is used
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import httpx
from pydantic import ValidationError

from ..config.schema import HttpConfig
from ..exceptions import FetchError, MissingNameError, NotFoundError, ParseError
from ..models import CapabilityStatement, ProfileSet
from ..utils import is_remote_location

logger = logging.getLogger(__name__)

CAPABILITY_STATEMENT_TYPE = "CapabilityStatement"
ACCEPT_HEADER = "application/fhir+json, application/json;q=0.9"


@dataclass(frozen=True)
class ResolvedProfiles:
    profiles: ProfileSet
    inferred_name: Optional[str] = None
    statement: Optional[CapabilityStatement] = None


def parse_capability_statement(
    source: Union[str, bytes, Path],
    *,
    location: Optional[str] = None,
) -> CapabilityStatement:
    """Parse JSON text, bytes, or a file path into a CapabilityStatement.

    Raises:
        NotFoundError: ``source`` is a Path that does not exist
        ParseError: not JSON, not a CapabilityStatement, or structurally invalid
    """
    if isinstance(source, Path):
        location = location or str(source)
        if not source.exists():
            raise NotFoundError("Capability statement file does not exist in the given path.", location)
        try:
            source = source.read_bytes()
        except OSError as e:
            raise ParseError(f"Cannot read capability statement file: {e}", location) from e

    try:
        data = json.loads(source)
    except (ValueError, TypeError) as e:
        raise ParseError(f"Capability statement is not valid JSON: {e}", location) from e

    if not isinstance(data, dict):
        raise ParseError("Capability statement must be a JSON object", location)
    resource_type = data.get("resourceType")
    if resource_type != CAPABILITY_STATEMENT_TYPE:
        raise ParseError(
            f"Expected a {CAPABILITY_STATEMENT_TYPE} resource, got {resource_type!r}",
            location,
        )
    try:
        return CapabilityStatement.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Malformed capability statement: {e}", location) from e


def _remaining_timeout(timeout: float, deadline: Optional[float], url: str) -> float:
    if deadline is None:
        return timeout
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise FetchError("Deadline exceeded before capability statement fetch", url)
    return min(timeout, remaining)


def fetch_capability_statement(
    url: str,
    *,
    timeout: float = 30.0,
    user_agent: str = "ehr-servicegen/0.1",
    deadline: Optional[float] = None,
    client: Optional[httpx.Client] = None,
) -> str:
    """Download a capability statement as text.

    ``deadline`` is an absolute ``time.monotonic()`` value; the request timeout
    never exceeds the time left before it.
    """
    effective = _remaining_timeout(timeout, deadline, url)
    headers = {"Accept": ACCEPT_HEADER, "User-Agent": user_agent}

    def _get(c: httpx.Client) -> str:
        response = c.get(url, headers=headers, timeout=effective)
        response.raise_for_status()
        return response.text

    try:
        if client is not None:
            return _get(client)
        with httpx.Client(follow_redirects=True) as c:
            return _get(c)
    except httpx.HTTPStatusError as e:
        raise FetchError(
            "Error occurred while reading capability statement from the given url",
            url,
            {"status": e.response.status_code},
        ) from e
    except httpx.TimeoutException as e:
        raise FetchError(
            f"Timed out after {effective:.1f}s reading capability statement", url
        ) from e
    except httpx.HTTPError as e:
        raise FetchError(
            f"Error occurred while reading capability statement from the given url: {e}", url
        ) from e


def extract_profiles(statement: CapabilityStatement, prior: Iterable[str] = ()) -> ProfileSet:
    """Merge the supported profiles of the first rest section into ``prior``."""
    if not statement.rest:
        raise ParseError("Capability statement declares no rest section")
    profiles = ProfileSet(prior)
    for resource in statement.rest[0].resource:
        if resource.supported_profile:
            added = profiles.extend(resource.supported_profile)
            logger.debug("%s: %d supported profile(s), %d new", resource.type, len(resource.supported_profile), added)
    return profiles


def infer_ehr_name(statement: CapabilityStatement) -> str:
    publisher = (statement.publisher or "").strip()
    if not publisher:
        raise MissingNameError()
    return publisher


class ProfileSetResolver:
    """Resolves the supported profile set (and EHR name) from a capability statement."""

    def __init__(self, http: Optional[HttpConfig] = None, client: Optional[httpx.Client] = None) -> None:
        self.http = http or HttpConfig()
        self.client = client

    def load(self, location: str, *, deadline: Optional[float] = None) -> CapabilityStatement:
        if is_remote_location(location):
            logger.info("Fetching capability statement from %s", location)
            text = fetch_capability_statement(
                location,
                timeout=self.http.timeout,
                user_agent=self.http.user_agent,
                deadline=deadline,
                client=self.client,
            )
            return parse_capability_statement(text, location=location)
        logger.info("Reading capability statement file %s", location)
        return parse_capability_statement(Path(location).expanduser(), location=location)

    def resolve(
        self,
        location: str,
        prior_profiles: Iterable[str] = (),
        ehr_name: Optional[str] = None,
        *,
        deadline: Optional[float] = None,
    ) -> ResolvedProfiles:
        """
        Resolve the profiles declared at ``location`` merged into ``prior_profiles``.

        Args:
            location: http(s) URL or local file path
            prior_profiles: profiles already selected by the caller
            ehr_name: caller-supplied EHR name; when missing the publisher is used
            deadline: optional absolute time.monotonic() limit for remote fetches

        Returns:
            ResolvedProfiles with the merged set and the inferred name (None when
            ``ehr_name`` was given)

        Raises:
            FetchError, NotFoundError, ParseError: statement unavailable
            MissingNameError: no ``ehr_name`` and no publisher in the statement
        """
        statement = self.load(location, deadline=deadline)
        profiles = extract_profiles(statement, prior_profiles)
        inferred = None if ehr_name else infer_ehr_name(statement)
        logger.info("Resolved %d profile(s) from capability statement", len(profiles))
        return ResolvedProfiles(profiles=profiles, inferred_name=inferred, statement=statement)
