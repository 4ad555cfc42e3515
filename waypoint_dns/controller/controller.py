"""
Controller module for Waypoint-DNS.

This module runs passes over the configured sources, either once or at a
fixed interval, and keeps the last complete batch of endpoints.
"""

import asyncio
import logging
import threading
import time
from typing import List, Optional

from waypoint_dns.errors import PassCancelled
from waypoint_dns.models.models import Endpoint


class PassStatus:
    """
    Outcome of the most recent pass, read by the health check server.
    """

    def __init__(self):
        self.last_success: Optional[float] = None
        self.last_error: Optional[str] = None
        self.endpoint_count = 0
        self.passes = 0

    @property
    def healthy(self) -> bool:
        return self.last_success is not None and self.last_error is None


class Controller:
    """
    Controller that runs the sources against the snapshot.
    """

    def __init__(
        self,
        sources,
        snapshot,
        manifests: Optional[List[str]] = None,
        interval: str = "1m",
    ):
        """
        Initialize a Controller.

        Args:
            sources: RoutingSource instances, processed in order
            snapshot: Snapshot shared by the sources
            manifests: Manifest files reloaded into the snapshot before each pass
            interval: Reconciliation interval
        """
        self.sources = sources
        self.snapshot = snapshot
        self.manifests = manifests or []
        self.interval = self._parse_interval(interval)
        self.status = PassStatus()
        self.endpoints: List[Endpoint] = []
        self.logger = logging.getLogger("waypoint-dns.controller")

    def collect(self, cancel: Optional[threading.Event] = None) -> List[Endpoint]:
        """
        Run one pass over every source.

        Args:
            cancel: Checked between resources; when set the pass is abandoned

        Returns:
            List[Endpoint]: Endpoints of all sources, in source order
        """
        if self.manifests:
            self.snapshot.reload(self.manifests)

        endpoints = []
        for source in self.sources:
            source_endpoints = source.endpoints(cancel)
            self.logger.debug(
                f"Source {source.name} produced {len(source_endpoints)} endpoints"
            )
            endpoints.extend(source_endpoints)
        return endpoints

    async def run_once(self) -> List[Endpoint]:
        """
        Performs a single pass in the default executor.

        The batch is only kept when the pass completes; a cancelled pass is
        discarded.

        Returns:
            List[Endpoint]: Endpoints produced by the pass
        """
        cancel = threading.Event()
        loop = asyncio.get_running_loop()
        self.status.passes += 1
        try:
            endpoints = await loop.run_in_executor(None, self.collect, cancel)
        except asyncio.CancelledError:
            cancel.set()
            self.logger.info("Pass cancelled, discarding partial results.")
            raise
        except PassCancelled:
            self.logger.info("Pass cancelled, discarding partial results.")
            raise
        except Exception as e:
            self.status.last_error = str(e)
            raise

        self.endpoints = endpoints
        self.status.last_success = time.time()
        self.status.last_error = None
        self.status.endpoint_count = len(endpoints)
        self.logger.info(f"Pass complete: {len(endpoints)} endpoints from {len(self.sources)} sources")
        return endpoints

    async def run_reconciliation_loop(self) -> None:
        """
        Runs passes at the configured interval until cancelled.
        """
        self.logger.debug(
            f"Reconciliation loop starting with interval {self.interval} seconds"
        )

        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Error in reconciliation loop: {e}", exc_info=True)

            await asyncio.sleep(self.interval)

    @staticmethod
    def _parse_interval(interval: str) -> int:
        """
        Parse an interval string like '1m' into seconds.

        Args:
            interval: Interval string

        Returns:
            int: Interval in seconds
        """
        if not interval:
            return 60  # Default to 1 minute

        try:
            if interval.endswith("s"):
                return int(interval[:-1])
            elif interval.endswith("m"):
                return int(interval[:-1]) * 60
            elif interval.endswith("h"):
                return int(interval[:-1]) * 60 * 60
            elif interval.endswith("d"):
                return int(interval[:-1]) * 60 * 60 * 24

            # If no unit is specified, assume seconds
            return int(interval)
        except ValueError:
            return 60  # Default to 1 minute
