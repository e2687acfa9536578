"""Access control: origin, referer, credential and rate limiting."""
