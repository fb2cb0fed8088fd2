# app/core/__init__.py
"""Core configuration, security and policy primitives."""
