"""Turn scanner and config files into the payload sent for validation."""

from .trivy import build_trivy_payload
from .webconfig import build_webconfig_payload

__all__ = ["build_trivy_payload", "build_webconfig_payload"]
