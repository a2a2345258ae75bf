"""authguard - in-process rate limiting for authentication actions.

Token buckets keyed by request dimensions (IP, hashed email, session, ...),
grouped into per-action policies with fail-open / fail-closed behavior.
"""

__version__ = "0.1.0"
