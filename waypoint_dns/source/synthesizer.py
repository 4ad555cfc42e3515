"""
Endpoint synthesis, labelling and target sorting.
"""

import copy
import logging
from typing import Dict, List, Optional

from waypoint_dns.models.models import (
    DUALSTACK_LABEL_KEY,
    RESOURCE_LABEL_KEY,
    Endpoint,
    ProviderSpecificProperty,
)
from waypoint_dns.source.annotations import is_dualstack

logger = logging.getLogger("waypoint-dns.source.synthesizer")


def endpoints_for_hostnames(
    hostnames: List[str],
    targets: List[str],
    ttl: int = 0,
    provider_specific: Optional[List[ProviderSpecificProperty]] = None,
    set_identifier: str = "",
) -> List[Endpoint]:
    """
    Build one endpoint per hostname, each carrying every target.

    Args:
        hostnames: DNS names to publish
        targets: Targets shared by every endpoint
        ttl: Record TTL, 0 for the provider default
        provider_specific: Provider-specific properties
        set_identifier: Set identifier, "" for none

    Returns:
        List[Endpoint]: Endpoints, empty when there are no targets
    """
    if not targets:
        return []

    endpoints = []
    for hostname in hostnames:
        endpoints.append(
            Endpoint(
                dnsname=hostname.rstrip("."),
                targets=list(targets),
                record_ttl=ttl,
                set_identifier=set_identifier,
                provider_specific=copy.deepcopy(provider_specific or []),
            )
        )
    return endpoints


def set_resource_label(endpoints: List[Endpoint], kind: str, namespace: str, name: str) -> None:
    for endpoint in endpoints:
        endpoint.labels[RESOURCE_LABEL_KEY] = f"{kind}/{namespace}/{name}"


def set_dualstack_label(endpoints: List[Endpoint], annotations: Dict[str, str], ref: str = "") -> None:
    if not is_dualstack(annotations):
        return
    logger.debug(f"Adding dualstack label to {ref}")
    for endpoint in endpoints:
        endpoint.labels[DUALSTACK_LABEL_KEY] = "true"


def sort_targets(endpoints: List[Endpoint]) -> None:
    """Sort the targets of every endpoint in place."""
    for endpoint in endpoints:
        endpoint.targets.sort()
