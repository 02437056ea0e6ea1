"""Event nodes: roots of script control flow."""

from blueprintc.registry.registry import EntryPoint
from blueprintc.types import output_pin

from .common import FLOAT, FLOW, define

NODES = [
    define(
        "event/on_ready",
        "Events",
        "On Ready",
        lambda: [output_pin("exec", FLOW, label="")],
        "Fires once when the entity spawns",
        is_event=True,
        entry_point=EntryPoint("on_ready"),
    ),
    define(
        "event/on_update",
        "Events",
        "On Update",
        lambda: [
            output_pin("exec", FLOW, label=""),
            output_pin("delta", FLOAT, label="Delta"),
        ],
        "Fires every tick with the frame delta time",
        is_event=True,
        entry_point=EntryPoint("on_update", ("delta",)),
    ),
]
