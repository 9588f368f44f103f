"""
Gateway Resilience Layer for multi-provider model calls.

Decides what to do with failures raised while forwarding work to a model
provider:
- Classification (abort, fatal, config, transient network, rate limit)
- Process-level policy for unhandled asyncio task failures
- Fallback across an ordered chain of provider/model targets

Architecture: pure classifier + injectable handler registry + sequential fallback orchestrator
"""

__version__ = "0.1.0"
