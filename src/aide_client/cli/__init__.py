# src/aide_client/cli/__init__.py
