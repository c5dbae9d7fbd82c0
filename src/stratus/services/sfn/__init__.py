"""AWS Step Functions."""

from .service_package import ServicePackage as ServicePackage
