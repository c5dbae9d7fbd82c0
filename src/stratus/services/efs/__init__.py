"""Amazon Elastic File System."""

from .service_package import ServicePackage as ServicePackage
