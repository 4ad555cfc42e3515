"""
Configuration module for Waypoint-DNS.
"""

import os
import re
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field

ALL_SOURCES = [
    "httpproxy",
    "ingressroute",
    "ambassador-host",
    "gloo-proxy",
    "kong-tcpingress",
]


class Config(BaseModel):
    """Configuration for Waypoint-DNS."""

    # Source configuration
    sources: List[str] = Field(default_factory=lambda: list(ALL_SOURCES))
    annotation_filter: str = ""
    fqdn_template: str = ""
    combine_fqdn_annotation: bool = False
    ignore_hostname_annotation: bool = False
    controller_identity: str = "dns-controller"
    strict: bool = False

    # Cluster snapshot configuration
    namespace: str = ""
    default_namespace: str = "default"
    contour_load_balancer: str = "heptio-contour/contour"
    gloo_namespace: str = "gloo-system"
    manifests: List[str] = Field(default_factory=list)

    # Controller configuration
    interval: str = "1m"
    once: bool = False

    # Logging configuration
    log_level: str = "info"

    # Health check configuration
    health_port: int = 8080

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]] = None) -> "Config":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Config: Config instance populated with values from the YAML file
        """
        # Default configuration paths to check
        default_paths = [
            Path("./waypoint-dns.yaml"),
            Path("./waypoint-dns.yml"),
            Path("/etc/waypoint-dns/waypoint-dns.yaml"),
            Path("/etc/waypoint-dns/config.yaml"),
        ]

        if config_path:
            paths = [Path(config_path)]
        else:
            paths = default_paths

        # Load configuration from the first existing path
        config_data = {}
        for path in paths:
            if path.exists():
                with open(path, "r") as f:
                    yaml_content = f.read()
                    yaml_content = cls._substitute_env_vars(yaml_content)
                    config_data = yaml.safe_load(yaml_content) or {}
                break

        flat_config = cls._flatten_config(config_data)

        return cls(**flat_config)

    @staticmethod
    def _substitute_env_vars(content: str) -> str:
        """
        Substitute environment variables in the configuration content.

        Args:
            content: Configuration content

        Returns:
            str: Configuration content with environment variables substituted
        """
        # Pattern for ${ENV_VAR} or ${ENV_VAR:-default}
        pattern = r"\${([^}]+)}"

        def replace_env_var(match):
            env_var = match.group(1)
            if ":-" in env_var:
                env_var, default = env_var.split(":-", 1)
                return os.environ.get(env_var, default)
            return os.environ.get(env_var, "")

        return re.sub(pattern, replace_env_var, content)

    @staticmethod
    def _flatten_config(config_data: dict) -> dict:
        """
        Flatten nested configuration.

        Only keys present in the file are returned so that field defaults
        apply to everything else.

        Args:
            config_data: Nested configuration data

        Returns:
            dict: Flattened configuration data
        """
        flat_config = {}

        def copy(section: str, key: str, field_name: Optional[str] = None):
            values = config_data.get(section) or {}
            if key in values and values[key] is not None:
                flat_config[field_name or key] = values[key]

        # Source configuration
        for key in (
            "sources",
            "annotation_filter",
            "fqdn_template",
            "combine_fqdn_annotation",
            "ignore_hostname_annotation",
            "controller_identity",
            "strict",
        ):
            copy("source", key)

        # Cluster snapshot configuration
        for key in (
            "namespace",
            "default_namespace",
            "contour_load_balancer",
            "gloo_namespace",
            "manifests",
        ):
            copy("kubernetes", key)

        # Controller configuration
        copy("controller", "interval")
        copy("controller", "once")

        # Logging configuration
        copy("logging", "level", "log_level")

        # Health check configuration
        copy("health", "port", "health_port")

        return flat_config
