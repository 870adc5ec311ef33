"""Quota and health check for services registered in a discovery server."""

__version__ = "2.1.0"

USER_AGENT = f"fleet-service-check/{__version__}"
