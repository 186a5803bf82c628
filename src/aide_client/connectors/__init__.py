# src/aide_client/connectors/__init__.py
