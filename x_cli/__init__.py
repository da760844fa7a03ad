"""
x-cli
-----
Command-line posting to X (Twitter) over the v2 API with OAuth 1.0a user tokens.
"""

__version__ = "0.1.0"

__all__ = ['__version__']
