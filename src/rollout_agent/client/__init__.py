"""Clients for AWS and notification services."""
