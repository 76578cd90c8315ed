"""
browserhub - Browser-as-a-Service

An HTTP API that launches remote browser instances and hands out their
Chrome DevTools Protocol (CDP) WebSocket endpoints.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- session: Session registry and browser lifecycle ownership
- driver: Browser process launch/termination
- api: REST API data models
- config: Environment configuration
"""

__version__ = "0.1.0"
