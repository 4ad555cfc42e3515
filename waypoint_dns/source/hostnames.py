"""
Hostname resolution.

Hostnames come from the resource's own hostname fields, the hostname
annotation and an optional FQDN template rendered against the resource.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import jinja2

from waypoint_dns.errors import ConfigurationError, TemplateRenderError
from waypoint_dns.source.annotations import hostnames_from_annotations

# Leading-dot field references as written in Go templates: {{.Name}}
_ACTION = re.compile(r"{{-?(.*?)-?}}", re.DOTALL)
_DOT_FIELD = re.compile(r"(?<![\w\])}.'\"])\.(?=[A-Za-z_])")


def _translate(source: str) -> str:
    """Rewrite ``{{.Field}}`` references into plain Jinja2 expressions."""

    def rewrite(match: re.Match) -> str:
        return "{{ " + _DOT_FIELD.sub("", match.group(1)).strip() + " }}"

    return _ACTION.sub(rewrite, source)


class FQDNTemplate:
    """
    A user supplied template that renders a comma separated list of hostnames.
    """

    def __init__(self, source: str):
        """
        Compile a template.

        Args:
            source: Template text, e.g. ``{{.Name}}.example.com``

        Raises:
            ConfigurationError: If the template cannot be parsed
        """
        self.source = source
        environment = jinja2.Environment(
            undefined=jinja2.StrictUndefined, autoescape=False
        )
        try:
            self.template = environment.from_string(_translate(source))
        except jinja2.TemplateSyntaxError as e:
            raise ConfigurationError(f"failed to parse FQDN template {source!r}: {e}") from e

    def render(self, context: Dict[str, Any]) -> List[str]:
        """
        Render the template and split the output into hostnames.

        Raises:
            TemplateRenderError: If rendering fails
        """
        try:
            output = self.template.render(context)
        except (jinja2.TemplateError, TypeError, ValueError) as e:
            raise TemplateRenderError(str(e)) from e
        hostnames = []
        for entry in output.split(","):
            hostname = entry.strip().rstrip(".")
            if hostname:
                hostnames.append(hostname)
        return hostnames


def parse_template(source: Optional[str]) -> Optional[FQDNTemplate]:
    """Compile a template, or return None for an empty one."""
    if not source or not source.strip():
        return None
    return FQDNTemplate(source)


class HostnameResolver:
    """
    Combines native hostnames, hostname annotations and the FQDN template.
    """

    def __init__(
        self,
        fqdn_template: str = "",
        combine_fqdn_annotation: bool = False,
        ignore_hostname_annotation: bool = False,
        strict: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize a HostnameResolver.

        Args:
            fqdn_template: Template used when a resource names no hostname
            combine_fqdn_annotation: Always append template hostnames
            ignore_hostname_annotation: Ignore the hostname annotation
            strict: Let template render errors fail the pass

        Raises:
            ConfigurationError: If the template cannot be parsed
        """
        self.fqdn_template = parse_template(fqdn_template)
        self.combine_fqdn_annotation = combine_fqdn_annotation
        self.ignore_hostname_annotation = ignore_hostname_annotation
        self.strict = strict
        self.logger = logger or logging.getLogger("waypoint-dns.source.hostnames")

    def resolve(
        self,
        native: List[str],
        annotations: Dict[str, str],
        context: Optional[Dict[str, Any]] = None,
        use_annotation: bool = True,
        use_template: bool = True,
        ref: str = "",
    ) -> List[str]:
        """
        Resolve hostnames for a resource, native first, then annotation
        aliases, then template hostnames.

        Args:
            native: Hostnames from the resource's own fields
            annotations: Annotations of the resource
            context: Template context of the resource
            use_annotation: Whether the resource kind honours the hostname annotation
            use_template: Whether the resource kind supports the FQDN template
            ref: Human readable reference used in log messages

        Returns:
            List[str]: Hostnames, possibly empty

        Raises:
            TemplateRenderError: If rendering fails and strict is set
        """
        hostnames = [h.rstrip(".") for h in native if h and h.rstrip(".")]

        if use_annotation and not self.ignore_hostname_annotation:
            hostnames.extend(hostnames_from_annotations(annotations))

        if not use_template or self.fqdn_template is None:
            return hostnames
        if hostnames and not self.combine_fqdn_annotation:
            return hostnames

        try:
            hostnames.extend(self.fqdn_template.render(context or {}))
        except TemplateRenderError as e:
            if self.strict:
                raise TemplateRenderError(f"failed to apply template on {ref}: {e}") from e
            self.logger.warning(f"Failed to apply template on {ref}: {e}")
        return hostnames
