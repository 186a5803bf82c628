# src/aide_client/session/__init__.py
