from __future__ import annotations

from .litellm import LiteLLMArrangementClient, is_auth_failure

__all__ = ["LiteLLMArrangementClient", "is_auth_failure"]
