"""
Data models for Waypoint-DNS.
"""

import ipaddress
from dataclasses import dataclass, field
from typing import Dict, List

RECORD_TYPE_A = "A"
RECORD_TYPE_AAAA = "AAAA"
RECORD_TYPE_CNAME = "CNAME"

# Label keys attached to every endpoint produced by a source
RESOURCE_LABEL_KEY = "resource"
DUALSTACK_LABEL_KEY = "dualstack"


@dataclass
class ProviderSpecificProperty:
    """
    A vendor-namespaced hint passed through untouched to the DNS provider.
    """

    name: str
    value: str


@dataclass
class Endpoint:
    """
    Represents a DNS endpoint (record) derived from a routing resource.

    The record type is not stored: it follows from the targets. All targets
    of an endpoint are expected to be of the same kind (IP literals or
    hostnames); mixed lists are not validated.
    """

    dnsname: str
    targets: List[str]
    record_ttl: int = 0
    set_identifier: str = ""
    provider_specific: List[ProviderSpecificProperty] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def record_type(self) -> str:
        """
        Infer the record type from the targets.

        Returns:
            str: CNAME for hostname targets, AAAA when every target is an
            IPv6 literal, A otherwise
        """
        if not self.targets or not is_ip_address(self.targets[0]):
            return RECORD_TYPE_CNAME
        if all(ip_version(target) == 6 for target in self.targets):
            return RECORD_TYPE_AAAA
        return RECORD_TYPE_A

    @property
    def id(self) -> str:
        """
        Generate a unique identifier for this endpoint.

        Returns:
            str: Unique identifier
        """
        if self.set_identifier:
            return f"{self.dnsname}:{self.record_type}:{self.set_identifier}"
        return f"{self.dnsname}:{self.record_type}"

    def provider_specific_value(self, name: str) -> str:
        """Return the value of a provider-specific property, or "" if unset."""
        for prop in self.provider_specific:
            if prop.name == name:
                return prop.value
        return ""

    def to_dict(self) -> dict:
        """Plain representation used when printing a batch."""
        data = {
            "dnsName": self.dnsname,
            "recordType": self.record_type,
            "targets": list(self.targets),
            "labels": dict(self.labels),
        }
        if self.record_ttl:
            data["recordTTL"] = self.record_ttl
        if self.set_identifier:
            data["setIdentifier"] = self.set_identifier
        if self.provider_specific:
            data["providerSpecific"] = [
                {"name": prop.name, "value": prop.value}
                for prop in self.provider_specific
            ]
        return data


def is_ip_address(value: str) -> bool:
    """Check if the string is an IPv4 or IPv6 literal."""
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def ip_version(value: str) -> int:
    """Return 4 or 6 for IP literals, 0 for anything else."""
    try:
        return ipaddress.ip_address(value).version
    except ValueError:
        return 0
