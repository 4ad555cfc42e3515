"""
Main entry point for Waypoint-DNS.
"""

import asyncio
import logging
import sys
from pathlib import Path

import yaml

from waypoint_dns.config.config import Config
from waypoint_dns.controller.controller import Controller
from waypoint_dns.errors import ConfigurationError, WaypointError
from waypoint_dns.source.pipeline import build_source
from waypoint_dns.store.snapshot import Snapshot
from waypoint_dns.utils.health import HealthCheckServer


def build_controller(config: Config) -> Controller:
    """
    Build the snapshot, the configured sources and the controller.

    Raises:
        ConfigurationError: If a source cannot be built
    """
    snapshot = Snapshot()
    sources = [
        build_source(
            name,
            snapshot,
            namespace=config.namespace,
            annotation_filter=config.annotation_filter,
            fqdn_template=config.fqdn_template,
            combine_fqdn_annotation=config.combine_fqdn_annotation,
            ignore_hostname_annotation=config.ignore_hostname_annotation,
            controller_identity=config.controller_identity,
            default_namespace=config.default_namespace,
            contour_load_balancer=config.contour_load_balancer,
            gloo_namespace=config.gloo_namespace,
            strict=config.strict,
        )
        for name in config.sources
    ]
    return Controller(
        sources, snapshot, manifests=config.manifests, interval=config.interval
    )


async def run(config: Config) -> int:
    """Run the controller according to the configuration."""
    logger = logging.getLogger("waypoint-dns")

    try:
        controller = build_controller(config)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    if config.once:
        try:
            endpoints = await controller.run_once()
        except WaypointError as e:
            logger.error(f"Pass failed: {e}")
            return 1
        yaml.safe_dump(
            [endpoint.to_dict() for endpoint in endpoints],
            sys.stdout,
            sort_keys=False,
        )
        return 0

    health_server = None
    if config.health_port:
        health_server = HealthCheckServer(controller.status, port=config.health_port)
        health_server.start()

    try:
        await controller.run_reconciliation_loop()
    finally:
        if health_server:
            health_server.stop()
    return 0


def main():
    """Console script entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logger = logging.getLogger("waypoint-dns")

    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    config = Config.from_yaml(config_path)

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(log_level)
    logger.info(f"Starting Waypoint-DNS with sources: {', '.join(config.sources)}")

    try:
        sys.exit(asyncio.run(run(config)))
    except KeyboardInterrupt:
        print("\nShutting down Waypoint-DNS", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
