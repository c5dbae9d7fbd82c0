"""stratus - declarative AWS resource adapters driven by HCL blueprints and projects."""

from .blueprints import Blueprint as Blueprint
from .config import ProviderConfig as ProviderConfig
from .conns import AWSClient as AWSClient
from .context import Context as Context
from .projects import Project as Project
from .resource import DataSource as DataSource
from .resource import Resource as Resource
from .spec import Specification as Specification
from .spec import spec as spec
from .specop import Absent as Absent
from .specop import Ensure as Ensure
from .specop import Present as Present
from .specop import Read as Read
from .specop import SpecOp as SpecOp
from .workspace import Workspace as Workspace
