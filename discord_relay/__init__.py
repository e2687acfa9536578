"""Discord webhook relay.

Accepts messages or code snippets from untrusted clients and forwards them
to a single Discord webhook without exposing its URL.
"""
