"""
Health check module for Waypoint-DNS.

This module provides health check endpoints for monitoring the application.
"""

import json
import logging
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread


class HealthCheckHandler(BaseHTTPRequestHandler):
    """
    HTTP request handler for health check endpoints.
    """

    def __init__(self, *args, **kwargs):
        self.logger = logging.getLogger("waypoint-dns.health")
        super().__init__(*args, **kwargs)

    def do_GET(self):
        """
        Handle GET requests.
        """
        if self.path == "/health":
            self._handle_health_check()
        elif self.path == "/metrics":
            self._handle_metrics()
        else:
            self.send_response(404)
            self.end_headers()
            self.wfile.write(b"Not Found")

    def _handle_health_check(self):
        """
        Report the outcome of the last pass.
        """
        status = self.server.pass_status
        response = {
            "status": "healthy" if status.healthy else "unhealthy",
            "passes": status.passes,
            "endpoints": status.endpoint_count,
        }
        if status.last_error:
            response["error"] = status.last_error

        self.send_response(200 if status.healthy else 503)
        self.send_header("Content-type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(response).encode())

    def _handle_metrics(self):
        """
        Handle metrics requests.
        """
        status = self.server.pass_status
        self.send_response(200)
        self.send_header("Content-type", "text/plain")
        self.end_headers()

        metrics = [
            "# HELP waypoint_dns_up Whether the last pass succeeded",
            "# TYPE waypoint_dns_up gauge",
            f"waypoint_dns_up {1 if status.healthy else 0}",
            "# HELP waypoint_dns_endpoints Endpoints produced by the last pass",
            "# TYPE waypoint_dns_endpoints gauge",
            f"waypoint_dns_endpoints {status.endpoint_count}",
        ]

        self.wfile.write("\n".join(metrics).encode())

    def log_message(self, format, *args):
        """
        Override log_message to use the application logger.
        """
        self.logger.debug(format % args)


class HealthCheckServer:
    """
    HTTP server for health check endpoints.
    """

    def __init__(self, pass_status, host: str = "0.0.0.0", port: int = 8080):
        """
        Initialize a HealthCheckServer.

        Args:
            pass_status: PassStatus of the controller
            host: Host to bind to
            port: Port to bind to
        """
        self.pass_status = pass_status
        self.host = host
        self.port = port
        self.server = None
        self.thread = None
        self.logger = logging.getLogger("waypoint-dns.health")

    def start(self):
        """
        Start the health check server.
        """
        self.server = HTTPServer((self.host, self.port), HealthCheckHandler)
        self.server.pass_status = self.pass_status
        self.thread = Thread(target=self.server.serve_forever)
        self.thread.daemon = True
        self.thread.start()
        self.logger.info(f"Health check: {self.host}:{self.port}/health")

    def stop(self):
        """
        Stop the health check server.
        """
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.logger.info("Health check server stopped")
