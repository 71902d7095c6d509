from __future__ import annotations

from .app import Container, build_app, build_container, main
from .loop import install_uvloop_policy
from .textual_app import CredentialScreen, PianoMorphApp

__all__ = [
    "Container",
    "CredentialScreen",
    "PianoMorphApp",
    "build_app",
    "build_container",
    "install_uvloop_policy",
    "main",
]
