"""Infrastructure layer — HTTP transport and server-sent event decoding.

This layer depends on stdlib, httpx, the config models, and the domain layer.
It must never import from services, commands, or output.
"""
