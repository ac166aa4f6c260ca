"""
OpenAI provider package.

Exports:
- OpenAIWrapper: SDK-backed implementation of ``UpstreamCapability``
- create_openai_wrapper: default factory used by the service
"""

from .wrapper import OpenAIWrapper, create_openai_wrapper

__all__ = ["OpenAIWrapper", "create_openai_wrapper"]
