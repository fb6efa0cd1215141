"""pushrelay — event relay with live WebSocket delivery and push fallback.

Routes application events between named users over persistent
connections, keeps a per-recipient queue until the recipient drains it,
and nudges offline devices through Firebase Cloud Messaging.
"""

__version__ = "0.1.0"
