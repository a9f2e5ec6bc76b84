"""HTTP handlers layer.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes and error envelopes.
"""

from .ask_handler import AskHandler

__all__ = ["AskHandler"]
