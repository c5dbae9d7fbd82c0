"""Service packages shipped with the provider."""

from __future__ import annotations

from . import efs, mediaconvert, sfn

SERVICE_PACKAGES = [
    efs.ServicePackage,
    mediaconvert.ServicePackage,
    sfn.ServicePackage,
]
