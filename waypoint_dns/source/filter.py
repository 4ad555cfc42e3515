"""
Resource filtering: annotation selector, controller ownership and status.
"""

import logging
from typing import Callable, Dict, Optional

from waypoint_dns.source.annotations import CONTROLLER_ANNOTATION_KEY
from waypoint_dns.source.selector import AnnotationSelector

DEFAULT_CONTROLLER_IDENTITY = "dns-controller"


class ResourceFilter:
    """
    Decides whether a resource should produce endpoints at all.
    """

    def __init__(
        self,
        annotation_filter: str = "",
        controller_identity: str = DEFAULT_CONTROLLER_IDENTITY,
    ):
        """
        Initialize a ResourceFilter.

        Args:
            annotation_filter: Selector expression matched against annotations
            controller_identity: Value of the controller annotation this
                instance is responsible for

        Raises:
            ConfigurationError: If the selector expression is malformed
        """
        self.selector = AnnotationSelector.parse(annotation_filter)
        self.controller_identity = controller_identity
        self.logger = logging.getLogger("waypoint-dns.source.filter")

    def matches_selector(self, annotations: Dict[str, str], ref: str = "") -> bool:
        if self.selector.matches(annotations):
            return True
        self.logger.debug(f"Skipping {ref} because annotations do not match filter {self.selector}")
        return False

    def is_responsible(self, annotations: Dict[str, str], ref: str = "") -> bool:
        """
        Check the controller annotation, if any, names this instance.
        """
        controller = annotations.get(CONTROLLER_ANNOTATION_KEY)
        if controller is not None and controller != self.controller_identity:
            self.logger.debug(
                f"Skipping {ref} because controller value does not match, "
                f"found: {controller}, required: {self.controller_identity}"
            )
            return False
        return True

    def keep(
        self,
        annotations: Dict[str, str],
        is_valid: Optional[Callable[[], bool]] = None,
        ref: str = "",
    ) -> bool:
        """
        Combined check used by the pipeline.

        The status check only runs for resources that passed the selector
        and the controller check.

        Args:
            annotations: Annotations the selector and controller check run on
            is_valid: Status check of the resource, None to skip it
            ref: Human readable reference used in log messages

        Returns:
            bool: True if the resource should be processed
        """
        if not self.matches_selector(annotations, ref):
            return False
        if not self.is_responsible(annotations, ref):
            return False
        if is_valid is not None and not is_valid():
            self.logger.debug(f"Skipping {ref} because it is not valid")
            return False
        return True
