# src/aide_client/core/__init__.py
