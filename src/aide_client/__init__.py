# src/aide_client/__init__.py

"""
aide_client: console client for the personal-assistant dashboard backend.

- session: auth state + durable token slot
- api: HTTP client (bearer auth, JSON, normalized errors)
- resources: tasks / expenses / AI assistant controllers
- dispatcher + router: intents in, notifications out
"""

__version__ = "0.1.0"
