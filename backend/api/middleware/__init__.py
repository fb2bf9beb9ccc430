"""Request dependencies: bearer authentication, security context, rate limits."""
