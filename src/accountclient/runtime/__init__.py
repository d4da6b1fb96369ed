"""Runtime - request execution and its resilience.

Contains: retry (backoff, policy, retrier), resilience (circuit breaker),
observability (structured logging).
"""
