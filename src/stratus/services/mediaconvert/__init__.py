"""AWS Elemental MediaConvert."""

from .service_package import ServicePackage as ServicePackage
