"""
Broadcast component.

Fan-out of a newsletter issue to confirmed subscribers.
"""

from newsletter.components.broadcast.component import run, run_publish
from newsletter.components.broadcast.models import PublishInput, PublishOutput

__all__ = [
    "run",
    "run_publish",
    "PublishInput",
    "PublishOutput",
]
