"""
Typed request/response models.
"""

from .api_models import (
    Credentials,
    MediaUploadResult,
    OutputEnvelope,
    PostedItem,
    ThreadPost,
)

__all__ = [
    'Credentials',
    'MediaUploadResult',
    'OutputEnvelope',
    'PostedItem',
    'ThreadPost',
]
