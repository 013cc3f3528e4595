"""OpenConfig device profile.

Vendor-neutral devices speaking OpenConfig models. No model version is
enforced; JSON_IETF is preferred over plain JSON.
"""
from ..gnmi.schema import Encoding
from .base import DeviceProfile

OPENCONFIG_PROFILE = DeviceProfile(
    name="openconfig",
    description="OpenConfig models (RFC 7951 JSON)",
    required_model=None,
    encodings=(Encoding.JSON_IETF, Encoding.JSON),
)
