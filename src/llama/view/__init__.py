"""llama.view — kida environment and HTML form helpers."""

from llama.view.environment import create_environment, timestamp
from llama.view.helpers import attributes, entity_attributes, form_dropdown, form_radio

__all__ = [
    "attributes",
    "create_environment",
    "entity_attributes",
    "form_dropdown",
    "form_radio",
    "timestamp",
]
