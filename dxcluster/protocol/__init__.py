# protocol/__init__.py

from .line_channel import LineChannel
from .auth import AuthNegotiator, is_auth_prompt
from .pump import StreamPump, clean_line

__all__ = [
    "LineChannel",
    "AuthNegotiator", "is_auth_prompt",
    "StreamPump", "clean_line"]
