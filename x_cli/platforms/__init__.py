"""
X API v2 client.
"""

from .twitter import TwitterClient, post_url

__all__ = ['TwitterClient', 'post_url']
