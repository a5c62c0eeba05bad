"""Model selection: pick exactly one provider client for a request."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .config import (
    DIRECT_MODE_KEY,
    PRIMARY_API_KEY,
    RESEARCH_API_KEY,
    ExecutionMode,
    resolve_credential,
    resolve_mode,
)
from .providers import (
    PRIMARY_DEFAULT_HEADERS,
    RESEARCH_BASE_URL,
    DirectGenerationClient,
    ProviderBackedClient,
    ProviderClient,
    ProviderKind,
)


logger = logging.getLogger("taskmaster.selection")


class ProviderUnavailableError(RuntimeError):
    """A specific provider client cannot be constructed."""


class NoProviderAvailable(RuntimeError):
    """No usable provider exists for the request."""


@dataclass(frozen=True, slots=True)
class ProviderSelection:
    kind: ProviderKind
    client: ProviderClient

    @property
    def mode(self) -> ExecutionMode:
        return self.client.mode


def get_primary_client(
    session: Optional[Mapping[str, Any]] = None,
    *,
    ambient: Optional[Mapping[str, Any]] = None,
    log: Optional[logging.Logger] = None,
) -> ProviderClient:
    """Client for the primary assistant."""
    log = log or logger
    if resolve_mode(ambient, session) is ExecutionMode.DIRECT_GENERATION:
        log.info("Using direct generation mode with the primary assistant client")
        return DirectGenerationClient(ProviderKind.PRIMARY_ASSISTANT)

    api_key = resolve_credential(PRIMARY_API_KEY, ambient, session)
    if not api_key:
        raise ProviderUnavailableError(
            f"{PRIMARY_API_KEY} not found in session or environment. "
            f"Set {DIRECT_MODE_KEY}=true to use direct generation mode."
        )
    log.info("Using primary assistant API with provided key")
    return ProviderBackedClient(
        ProviderKind.PRIMARY_ASSISTANT,
        api_key=api_key,
        default_headers=PRIMARY_DEFAULT_HEADERS,
    )


def get_research_client(
    session: Optional[Mapping[str, Any]] = None,
    *,
    ambient: Optional[Mapping[str, Any]] = None,
    log: Optional[logging.Logger] = None,
) -> ProviderClient:
    """Client for the research provider."""
    log = log or logger
    if resolve_mode(ambient, session) is ExecutionMode.DIRECT_GENERATION:
        log.info("Using direct generation mode with the research client")
        return DirectGenerationClient(ProviderKind.RESEARCH_PROVIDER)

    api_key = resolve_credential(RESEARCH_API_KEY, ambient, session)
    if not api_key:
        raise ProviderUnavailableError(
            f"{RESEARCH_API_KEY} not found in session or environment. "
            f"Set {DIRECT_MODE_KEY}=true to use direct generation mode."
        )
    log.info("Using research provider API with provided key")
    return ProviderBackedClient(
        ProviderKind.RESEARCH_PROVIDER,
        api_key=api_key,
        base_url=RESEARCH_BASE_URL,
    )


def select_model(
    session: Optional[Mapping[str, Any]] = None,
    *,
    requires_research: bool = False,
    primary_overloaded: bool = False,
    ambient: Optional[Mapping[str, Any]] = None,
    log: Optional[logging.Logger] = None,
) -> ProviderSelection:
    """Pick the provider for a request.

    Direct generation mode always yields the primary assistant. Otherwise a
    research request tries the research provider when its credential is
    present and falls back to the primary assistant on any failure. The
    primary assistant is the backstop; without its credential the selection
    fails with NoProviderAvailable.

    ``primary_overloaded`` is accepted for callers that track provider load;
    it does not change the outcome.
    """
    log = log or logger

    if resolve_mode(ambient, session) is ExecutionMode.DIRECT_GENERATION:
        client = get_primary_client(session, ambient=ambient, log=log)
        return ProviderSelection(kind=ProviderKind.PRIMARY_ASSISTANT, client=client)

    if requires_research and resolve_credential(RESEARCH_API_KEY, ambient, session):
        try:
            client = get_research_client(session, ambient=ambient, log=log)
            return ProviderSelection(kind=ProviderKind.RESEARCH_PROVIDER, client=client)
        except Exception as e:
            log.warning(f"Research provider not available: {e}")

    if primary_overloaded:
        log.debug("Primary assistant reported as overloaded; no alternative is configured")

    try:
        client = get_primary_client(session, ambient=ambient, log=log)
    except ProviderUnavailableError as e:
        log.error(f"Primary assistant not available: {e}")
        raise NoProviderAvailable(
            "No AI models available. Supply an API key or enable direct generation mode "
            f"by setting {DIRECT_MODE_KEY}=true."
        ) from e
    return ProviderSelection(kind=ProviderKind.PRIMARY_ASSISTANT, client=client)
