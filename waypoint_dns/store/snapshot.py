"""
In-memory snapshot of cluster resources.

The snapshot is the read-only view a pass works on. It can be filled
directly or loaded from YAML manifests (as produced by ``kubectl get -o
yaml``), including ``List`` documents.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import yaml

from waypoint_dns.errors import ResourceLookupError
from waypoint_dns.models.resources import RESOURCE_TYPES, Resource
from waypoint_dns.source.selector import AnnotationSelector


class Snapshot:
    """
    Resources indexed by kind, namespace and name.
    """

    def __init__(self, resources: Optional[Iterable[Resource]] = None):
        self._resources: Dict[str, Dict[Tuple[str, str], Resource]] = {}
        self.logger = logging.getLogger("waypoint-dns.store")
        for resource in resources or []:
            self.add(resource)

    def add(self, resource: Resource) -> None:
        """Add or replace a resource; insertion order is kept."""
        by_key = self._resources.setdefault(resource.KIND, {})
        by_key[(resource.namespace, resource.name)] = resource

    def list(
        self,
        kind: str,
        namespace: str = "",
        selector: Optional[AnnotationSelector] = None,
    ) -> List[Resource]:
        """
        List resources of a kind.

        Args:
            kind: Resource kind, e.g. "HTTPProxy"
            namespace: Namespace to list, "" for all namespaces
            selector: Optional selector matched against the resource labels

        Returns:
            List[Resource]: Matching resources in insertion order
        """
        resources = []
        for (ns, _), resource in self._resources.get(kind, {}).items():
            if namespace and ns != namespace:
                continue
            if selector is not None and not selector.matches(resource.metadata.labels):
                continue
            resources.append(resource)
        return resources

    def get(self, kind: str, namespace: str, name: str) -> Resource:
        """
        Get a single resource.

        Raises:
            ResourceLookupError: If the resource is not in the snapshot
        """
        try:
            return self._resources[kind][(namespace, name)]
        except KeyError:
            raise ResourceLookupError(kind, namespace, name) from None

    def __len__(self) -> int:
        return sum(len(by_key) for by_key in self._resources.values())

    def load_documents(self, documents: Iterable[Optional[dict]]) -> None:
        """
        Add every recognized object in a sequence of manifest documents.
        """
        for document in documents:
            if not document:
                continue
            kind = document.get("kind", "")
            if kind.endswith("List") and "items" in document:
                self.load_documents(document.get("items") or [])
                continue
            resource_type = RESOURCE_TYPES.get(kind)
            if resource_type is None:
                self.logger.debug(f"Skipping manifest of unsupported kind {kind!r}")
                continue
            self.add(resource_type.from_manifest(document))

    @classmethod
    def from_manifests(cls, paths: Iterable[Union[str, Path]]) -> "Snapshot":
        """
        Load a snapshot from YAML manifest files.

        Args:
            paths: Manifest files, each may hold several documents

        Returns:
            Snapshot: Snapshot holding every supported object
        """
        snapshot = cls()
        for path in paths:
            with open(path, "r", encoding="utf-8") as f:
                snapshot.load_documents(yaml.safe_load_all(f))
        snapshot.logger.debug(f"Loaded {len(snapshot)} resources")
        return snapshot

    def reload(self, paths: Iterable[Union[str, Path]]) -> None:
        """
        Replace the content of the snapshot with freshly loaded manifests.

        The new index is swapped in at once, readers never see a partial load.
        """
        fresh = self.from_manifests(paths)
        self._resources = fresh._resources
        self.logger.debug(f"Reloaded snapshot with {len(self)} resources")
