"""Cisco NX-OS device profile.

NX-OS serves its native device model over gNMI with plain JSON encoding and
rejects Set requests with more than 20 paths.
"""
from ..gnmi.schema import Encoding, Model
from .base import DeviceProfile

# NX-OS 10.4(3)
NXOS_MODEL = Model(name="Cisco-NX-OS-device", organization="Cisco Systems, Inc.", version="2024-03-26")

NXOS_PROFILE = DeviceProfile(
    name="nxos",
    description="Cisco NX-OS (native device model)",
    required_model=NXOS_MODEL,
    encodings=(Encoding.JSON,),
    max_paths_per_request=20,
)
