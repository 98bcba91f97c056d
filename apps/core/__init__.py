"""
Core app for the service manual publisher.

Provides the shared base model, error taxonomy and request tracing.
"""
