"""Service layer helpers for external integrations.

Import concrete integrations from their modules (``narrator.services.storage``,
``narrator.services.polly_tts`` ...) to keep optional SDK imports local.
"""
