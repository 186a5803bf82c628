# src/aide_client/resources/__init__.py
