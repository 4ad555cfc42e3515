"""
Routing resource source for Waypoint-DNS.

This module turns the routing resources held in a snapshot into endpoints.
One RoutingSource is built per resource kind; the kind-specific parts are
supplied by a KindAdapter.
"""

import logging
import threading
from typing import List, Optional

from waypoint_dns.errors import ConfigurationError, PassCancelled, ResourceLookupError
from waypoint_dns.models.models import Endpoint
from waypoint_dns.models.resources import Resource
from waypoint_dns.source.annotations import (
    provider_specific_from_annotations,
    targets_from_annotations,
    ttl_from_annotations,
)
from waypoint_dns.source.filter import DEFAULT_CONTROLLER_IDENTITY, ResourceFilter
from waypoint_dns.source.hostnames import HostnameResolver
from waypoint_dns.source.kinds import (
    ADAPTERS,
    DEFAULT_CONTOUR_LOAD_BALANCER,
    DEFAULT_GLOO_NAMESPACE,
    AmbassadorHostAdapter,
    GlooProxyAdapter,
    IngressRouteAdapter,
    KindAdapter,
)
from waypoint_dns.source.synthesizer import (
    endpoints_for_hostnames,
    set_dualstack_label,
    set_resource_label,
    sort_targets,
)
from waypoint_dns.source.targets import DEFAULT_NAMESPACE, TargetResolver


class RoutingSource:
    """
    Source that derives endpoints from one kind of routing resource.
    """

    def __init__(
        self,
        adapter: KindAdapter,
        snapshot,
        annotation_filter: str = "",
        fqdn_template: str = "",
        combine_fqdn_annotation: bool = False,
        ignore_hostname_annotation: bool = False,
        controller_identity: str = DEFAULT_CONTROLLER_IDENTITY,
        strict: bool = False,
    ):
        """
        Initialize a RoutingSource.

        Args:
            adapter: Accessors for the resource kind
            snapshot: Read-only snapshot the resources are listed from
            annotation_filter: Selector expression matched against annotations
            fqdn_template: Template used when a resource names no hostname
            combine_fqdn_annotation: Always append template hostnames
            ignore_hostname_annotation: Ignore the hostname annotation
            controller_identity: Controller annotation value this instance owns
            strict: Fail the pass on missing references and template errors
                instead of dropping the affected resource's contribution

        Raises:
            ConfigurationError: If the annotation filter or template is invalid
        """
        self.adapter = adapter
        self.snapshot = snapshot
        self.strict = strict
        self.logger = logging.getLogger(f"waypoint-dns.source.{adapter.name}")

        self.filter = ResourceFilter(annotation_filter, controller_identity)
        self.hostname_resolver = HostnameResolver(
            fqdn_template,
            combine_fqdn_annotation=combine_fqdn_annotation,
            ignore_hostname_annotation=ignore_hostname_annotation,
            strict=strict,
            logger=self.logger,
        )
        self.target_resolver = TargetResolver(snapshot, strict=strict, logger=self.logger)

    @property
    def name(self) -> str:
        return self.adapter.name

    def endpoints(self, cancel: Optional[threading.Event] = None) -> List[Endpoint]:
        """
        Returns a list of endpoint objects for every resource of this kind.

        Args:
            cancel: Checked before each resource; when set the pass stops

        Returns:
            List[Endpoint]: Endpoints in resource order, targets sorted

        Raises:
            PassCancelled: If cancel was set during the pass
            ReferenceFormatError: If a resource holds a malformed service reference
        """
        resources = self.snapshot.list(self.adapter.resource_type.KIND, self.adapter.namespace)

        endpoints = []
        for resource in resources:
            if cancel is not None and cancel.is_set():
                raise PassCancelled(f"{self.name} pass cancelled")
            endpoints.extend(self.endpoints_from_resource(resource))

        sort_targets(endpoints)
        return endpoints

    def endpoints_from_resource(self, resource: Resource) -> List[Endpoint]:
        """
        Generate endpoints for a single resource.

        Args:
            resource: Resource from the snapshot

        Returns:
            List[Endpoint]: Labelled endpoints, empty if the resource is skipped
        """
        adapter = self.adapter
        ref = f"{adapter.label_kind} {resource.namespace}/{resource.name}"

        if adapter.per_host_annotations:
            if not adapter.is_valid(resource):
                self.logger.debug(f"Skipping {ref} because it is not valid")
                return []
        elif not self.filter.keep(resource.annotations, lambda: adapter.is_valid(resource), ref):
            return []

        load_balancer = adapter.load_balancer(resource)
        service = adapter.service_reference(resource)
        context = resource.template_context()
        resource_targets = None

        endpoints = []
        for group in adapter.host_groups(resource, self._lookup):
            if adapter.per_host_annotations:
                group_ref = f"{ref} ({', '.join(group.hostnames)})"
                if not (
                    self.filter.matches_selector(group.annotations, group_ref)
                    and self.filter.is_responsible(group.annotations, group_ref)
                ):
                    continue

            targets = targets_from_annotations(group.annotations)
            if not targets:
                if resource_targets is None:
                    resource_targets = self.target_resolver.resource_targets(
                        load_balancer=load_balancer,
                        service=service,
                        require_load_balancer=adapter.require_load_balancer,
                    )
                targets = list(resource_targets)
            self.logger.debug(f"Found {len(targets)} target(s) for {ref}: {targets}")

            hostnames = self.hostname_resolver.resolve(
                group.hostnames,
                group.annotations,
                context,
                use_annotation=adapter.hostname_annotation,
                use_template=adapter.fqdn_template,
                ref=ref,
            )
            ttl = ttl_from_annotations(group.annotations)
            provider_specific, set_identifier = provider_specific_from_annotations(
                group.annotations
            )
            endpoints.extend(
                endpoints_for_hostnames(hostnames, targets, ttl, provider_specific, set_identifier)
            )

        if not endpoints:
            self.logger.debug(f"No endpoints could be generated from {ref}")
            return []

        set_resource_label(endpoints, adapter.label_kind, resource.namespace, resource.name)
        set_dualstack_label(endpoints, resource.annotations, ref)
        self.logger.debug(f"Endpoints generated from {ref}: {endpoints}")
        return endpoints

    def _lookup(self, kind: str, namespace: str, name: str) -> Optional[Resource]:
        try:
            return self.snapshot.get(kind, namespace, name)
        except ResourceLookupError as e:
            if self.strict:
                raise
            self.logger.warning(f"{e}, ignoring its annotations")
            return None


def build_source(
    name: str,
    snapshot,
    namespace: str = "",
    annotation_filter: str = "",
    fqdn_template: str = "",
    combine_fqdn_annotation: bool = False,
    ignore_hostname_annotation: bool = False,
    controller_identity: str = DEFAULT_CONTROLLER_IDENTITY,
    default_namespace: str = DEFAULT_NAMESPACE,
    contour_load_balancer: str = DEFAULT_CONTOUR_LOAD_BALANCER,
    gloo_namespace: str = DEFAULT_GLOO_NAMESPACE,
    strict: bool = False,
) -> RoutingSource:
    """
    Build the source for one adapter name.

    Raises:
        ConfigurationError: If the name is unknown or the configuration is invalid
    """
    if name not in ADAPTERS:
        raise ConfigurationError(
            f"unknown source {name!r}, expected one of {sorted(ADAPTERS)}"
        )

    if name == IngressRouteAdapter.name:
        adapter = IngressRouteAdapter(namespace, contour_load_balancer)
    elif name == AmbassadorHostAdapter.name:
        adapter = AmbassadorHostAdapter(namespace, default_namespace)
    elif name == GlooProxyAdapter.name:
        adapter = GlooProxyAdapter(gloo_namespace)
    else:
        adapter = ADAPTERS[name](namespace)

    return RoutingSource(
        adapter,
        snapshot,
        annotation_filter=annotation_filter,
        fqdn_template=fqdn_template,
        combine_fqdn_annotation=combine_fqdn_annotation,
        ignore_hostname_annotation=ignore_hostname_annotation,
        controller_identity=controller_identity,
        strict=strict,
    )
