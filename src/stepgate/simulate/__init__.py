"""Offline harness for mapping templates and response selection."""

from stepgate.simulate.gateway import BackendReply, GatewaySimulator, HttpResponse
from stepgate.simulate.vtl import MappingTemplate, RenderedTemplate, escape_javascript, render_template

__all__ = [
    "BackendReply",
    "GatewaySimulator",
    "HttpResponse",
    "MappingTemplate",
    "RenderedTemplate",
    "escape_javascript",
    "render_template",
]
