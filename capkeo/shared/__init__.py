"""
Shared models for CapKeo.
These models are used by both the client cache and the sandbox API.
"""
