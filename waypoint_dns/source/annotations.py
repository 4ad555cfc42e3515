"""
Annotation vocabulary and extraction helpers shared by every source.
"""

import logging
import re
from typing import Dict, List, Tuple

from waypoint_dns.errors import TTLParseError
from waypoint_dns.models.models import ProviderSpecificProperty

ANNOTATION_PREFIX = "external-dns.alpha.kubernetes.io/"

TARGET_ANNOTATION_KEY = ANNOTATION_PREFIX + "target"
HOSTNAME_ANNOTATION_KEY = ANNOTATION_PREFIX + "hostname"
TTL_ANNOTATION_KEY = ANNOTATION_PREFIX + "ttl"
CONTROLLER_ANNOTATION_KEY = ANNOTATION_PREFIX + "controller"
SET_IDENTIFIER_ANNOTATION_KEY = ANNOTATION_PREFIX + "set-identifier"
ALIAS_ANNOTATION_KEY = ANNOTATION_PREFIX + "alias"
CLOUDFLARE_PROXIED_ANNOTATION_KEY = ANNOTATION_PREFIX + "cloudflare-proxied"

# Vendor prefixes and the short form their attributes are renamed to
PROVIDER_SPECIFIC_PREFIXES = {
    ANNOTATION_PREFIX + "aws-": "aws/",
    ANNOTATION_PREFIX + "scw-": "scw/",
}

AMBASSADOR_SERVICE_ANNOTATION_KEY = "external-dns.ambassador-service"

DUALSTACK_ANNOTATION_KEY = "alb.ingress.kubernetes.io/ip-address-type"
DUALSTACK_ANNOTATION_VALUE = "dualstack"

TTL_MINIMUM = 1
TTL_MAXIMUM = 2**31 - 1

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

logger = logging.getLogger("waypoint-dns.source.annotations")


def parse_duration(value: str) -> float:
    """
    Parse a duration such as '10s', '1m30s' or '1.5h' into seconds.

    Args:
        value: Duration string, optionally signed

    Returns:
        float: Duration in seconds

    Raises:
        TTLParseError: If the string is not a duration
    """
    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise TTLParseError(f"invalid duration {value!r}")

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        pos = match.end()
    if pos != len(text):
        raise TTLParseError(f"invalid duration {value!r}")
    return sign * total


def parse_ttl(value: str) -> int:
    """
    Parse a TTL annotation value into whole seconds.

    Durations are tried first, then plain integers.

    Raises:
        TTLParseError: If the value is neither, or out of range
    """
    try:
        seconds = int(parse_duration(value))
    except TTLParseError:
        try:
            seconds = int(value.strip())
        except ValueError:
            raise TTLParseError(f'"{value}" is not a valid TTL value') from None

    if seconds < TTL_MINIMUM or seconds > TTL_MAXIMUM:
        raise TTLParseError(
            f"TTL value must be between [{TTL_MINIMUM}, {TTL_MAXIMUM}]"
        )
    return seconds


def ttl_from_annotations(annotations: Dict[str, str]) -> int:
    """
    Get the record TTL configured on a resource.

    Returns:
        int: TTL in seconds, 0 when the annotation is missing or invalid
    """
    value = annotations.get(TTL_ANNOTATION_KEY)
    if value is None:
        return 0
    try:
        return parse_ttl(value)
    except TTLParseError as e:
        logger.warning(f"Ignoring TTL annotation: {e}")
        return 0


def provider_specific_from_annotations(
    annotations: Dict[str, str],
) -> Tuple[List[ProviderSpecificProperty], str]:
    """
    Extract provider-specific properties and the set identifier.

    Args:
        annotations: Resource annotations

    Returns:
        Tuple[List[ProviderSpecificProperty], str]: Properties and set identifier
    """
    properties = []

    if CLOUDFLARE_PROXIED_ANNOTATION_KEY in annotations:
        properties.append(
            ProviderSpecificProperty(
                name=CLOUDFLARE_PROXIED_ANNOTATION_KEY,
                value=annotations[CLOUDFLARE_PROXIED_ANNOTATION_KEY],
            )
        )
    if annotations.get(ALIAS_ANNOTATION_KEY) == "true":
        properties.append(ProviderSpecificProperty(name="alias", value="true"))

    for key in sorted(annotations):
        for prefix, short in PROVIDER_SPECIFIC_PREFIXES.items():
            if key.startswith(prefix):
                attr = key[len(prefix) :]
                properties.append(
                    ProviderSpecificProperty(name=f"{short}{attr}", value=annotations[key])
                )
                break

    set_identifier = annotations.get(SET_IDENTIFIER_ANNOTATION_KEY, "")
    return properties, set_identifier


def targets_from_annotations(annotations: Dict[str, str]) -> List[str]:
    """Targets listed in the target override annotation, in order."""
    value = annotations.get(TARGET_ANNOTATION_KEY)
    if not value:
        return []
    return [target.strip() for target in value.split(",") if target.strip()]


def hostnames_from_annotations(annotations: Dict[str, str]) -> List[str]:
    """Hostnames listed in the hostname annotation, in order."""
    value = annotations.get(HOSTNAME_ANNOTATION_KEY)
    if not value:
        return []
    return split_hostnames(value)


def split_hostnames(value: str) -> List[str]:
    """
    Split a comma or whitespace separated list of hostnames.

    Trailing dots are removed and empty entries dropped.
    """
    hostnames = []
    for entry in re.split(r"[,\s]+", value):
        hostname = entry.strip().rstrip(".")
        if hostname:
            hostnames.append(hostname)
    return hostnames


def is_dualstack(annotations: Dict[str, str]) -> bool:
    return annotations.get(DUALSTACK_ANNOTATION_KEY) == DUALSTACK_ANNOTATION_VALUE
