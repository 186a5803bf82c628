# src/aide_client/api/__init__.py
