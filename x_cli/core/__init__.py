"""
Core request signing, transport and multi-step workflows.
"""

from .errors import XCliError
from .signer import OAuth1Signer, SignableRequest
from .transport import Transport
from .upload import ChunkedUploader
from .thread import ThreadPoster

__all__ = ['XCliError', 'OAuth1Signer', 'SignableRequest', 'Transport', 'ChunkedUploader', 'ThreadPoster']
