"""
Unit tests for the Gateway Resilience Layer.

Test individual components in isolation:
- Failure normalization and classification (codes, cause chains, groups)
- Unhandled failure policy, handler registry and asyncio guard
- Fallback orchestrator, chain resolution and attempt logging
"""
