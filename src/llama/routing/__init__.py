"""Routing — rule-based URI matching with named parameters."""

from llama.routing.route import DEFAULT_CONSTRAINT, Route
from llama.routing.router import Router, default_uri

__all__ = ["DEFAULT_CONSTRAINT", "Route", "Router", "default_uri"]
