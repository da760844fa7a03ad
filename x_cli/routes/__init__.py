"""
Local HTTP routes used during interactive authorization.
"""

from .oauth_callbacks import CallbackServer

__all__ = ['CallbackServer']
