"""Workspace: a mutable, typed collection of parsed projects."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, overload

from . import hcl, registry
from .blueprints import Blueprint
from .projects import Project
from .specop import Absent, Ensure, Present, Read, SpecOp

logger = logging.getLogger(__name__)

# Data sources come first so the other strategies can reference them.
_STRATEGY_MAP: dict[str, type[SpecOp]] = {
    "data": Read,
    "present": Present,
    "ensure": Ensure,
    "absent": Absent,
}

_STRUCTURAL_KEYS = {"use", "include", "description"} | set(_STRATEGY_MAP)


def _lookup(strategy: str, type_name: str) -> type:
    if strategy == "data":
        return registry.lookup_data_source(type_name)
    return registry.lookup_resource(type_name)


def _split_label(strategy: str, type_name: str, body: dict[str, Any]) -> tuple[str | None, dict[str, Any]]:
    """Separate an optional block label from the block body.

    ``ensure "aws_sfn_activity" "worker" { name = "w" }`` decodes as
    ``{"aws_sfn_activity": {"worker": {"name": "w"}}}``; a lone dict-valued
    key that isn't a schema attribute is taken as the label.
    """
    if len(body) != 1:
        return None, dict(body)

    ((key, value),) = body.items()
    if not isinstance(value, dict):
        return None, dict(body)

    try:
        fields = getattr(_lookup(strategy, type_name), "model_fields", {})
    except ValueError:
        fields = {}

    if key in fields:
        return None, dict(body)
    return key, dict(value)


@dataclass
class WorkspaceRef(ABC):
    """Base class for all workspace references."""

    name: str

    @abstractmethod
    def resolve(self, workspace: Workspace) -> Any:
        """Return a ready-to-use instance using the workspace as context."""


@dataclass
class OperationRef(WorkspaceRef):
    """A configuration operation: a resource type + strategy + attributes."""

    strategy: str
    attrs: dict[str, Any]
    label: str | None = None

    def resolve(self, workspace: Workspace) -> SpecOp:
        if self.strategy not in _STRATEGY_MAP:
            raise ValueError(f"Unknown strategy: '{self.strategy}'")
        spec_cls = _lookup(self.strategy, self.name)
        logger.debug("Decoding %s '%s' -> %s", self.strategy, self.name, spec_cls.__name__)
        spec_instance = spec_cls(**self.attrs)
        strategy_cls = _STRATEGY_MAP[self.strategy]
        return strategy_cls(spec_instance, self.label)


@dataclass
class BlueprintRef(WorkspaceRef):
    """A blueprint reference: a named collection of operations with optional includes."""

    includes: list[str]
    ops: list[OperationRef]
    description: str = ""

    def resolve(
        self,
        workspace: Workspace,
        _resolving: set[str] | None = None,
    ) -> Blueprint:
        resolving = _resolving if _resolving is not None else set()
        if self.name in resolving:
            raise ValueError(f"Circular include detected: '{self.name}'")
        resolving.add(self.name)

        all_ops: list[SpecOp] = []

        for inc_name in self.includes:
            if inc_name not in workspace.blueprints:
                raise ValueError(f"Blueprint '{self.name}' includes unknown blueprint: '{inc_name}'")
            logger.debug("Blueprint '%s' includes '%s'", self.name, inc_name)
            included_bp = workspace.blueprints[inc_name].resolve(workspace, resolving)
            all_ops.extend(included_bp.ops)

        all_ops.extend(op.resolve(workspace) for op in self.ops)

        resolving.discard(self.name)
        return Blueprint(name=self.name, description=self.description, ops=all_ops)


@dataclass
class ProjectRef(WorkspaceRef):
    """A project reference: blueprints in use, inline operations, and extra fields."""

    use: list[str]
    ops: list[OperationRef]
    description: str = ""
    attrs: dict[str, Any] = field(default_factory=dict)

    def resolve(self, workspace: Workspace) -> Project:
        blueprints: list[Blueprint] = []
        for bp_name in self.use:
            if bp_name not in workspace.blueprints:
                raise ValueError(f"Project '{self.name}' references unknown blueprint: '{bp_name}'")
            blueprints.append(workspace.blueprints[bp_name].resolve(workspace))

        inline_ops = [op.resolve(workspace) for op in self.ops]
        if inline_ops:
            blueprints.append(Blueprint(name=f"{self.name}:inline", ops=inline_ops))

        logger.debug("Building project '%s' as %s", self.name, workspace.project_type.__name__)
        return workspace.project_type(
            name=self.name,
            description=self.description,
            blueprints=blueprints,
            **self.attrs,
        )


def _parse_ops(block_data: dict[str, Any]) -> list[OperationRef]:
    """Parse strategy blocks from a blueprint or project block.

    HCL2 structure for strategy blocks:
        {"ensure": [{"aws_sfn_activity": {"worker": {"name": "w"}}}, ...], ...}
    """
    ops: list[OperationRef] = []
    for strategy in _STRATEGY_MAP:
        for spec_block in block_data.get(strategy, []):
            for type_name, body in spec_block.items():
                label, attrs = _split_label(strategy, type_name, body)
                ops.append(OperationRef(name=type_name, strategy=strategy, attrs=attrs, label=label))
    return ops


class Workspace[P: Project](Mapping[str, P]):
    """Configured workspace that accumulates parsed files and resolves projects on access."""

    def __init__(
        self,
        project_type: type[P] = Project,  # type: ignore[assignment]
        *,
        context: dict[str, Any] | None = None,
    ) -> None:
        self._project_type = project_type
        self._context = context or {}
        self._blueprint_refs: dict[str, BlueprintRef] = {}
        self._project_refs: dict[str, ProjectRef] = {}

    @property
    def project_type(self) -> type[P]:
        return self._project_type

    @property
    def blueprints(self) -> dict[str, BlueprintRef]:
        """Return the blueprint ref registry."""
        return self._blueprint_refs

    def add(self, ref: WorkspaceRef) -> None:
        """Register a workspace reference; raises ValueError on duplicates."""
        if isinstance(ref, BlueprintRef):
            if ref.name in self._blueprint_refs:
                raise ValueError(f"Duplicate blueprint: '{ref.name}'")
            logger.debug("Found blueprint '%s'", ref.name)
            self._blueprint_refs[ref.name] = ref
        elif isinstance(ref, ProjectRef):
            if ref.name in self._project_refs:
                raise ValueError(f"Duplicate project: '{ref.name}'")
            logger.debug("Found project '%s'", ref.name)
            self._project_refs[ref.name] = ref
        else:
            raise TypeError(f"Cannot add {type(ref).__name__} to a workspace")

    def load(self, path: str | Path) -> None:
        """Parse one HCL file and register its blueprint and project blocks."""
        data = hcl.load(Path(path), context=self._context)

        for bp_block in data.get("blueprint", []):
            for bp_name, bp_data in bp_block.items():
                self.add(
                    BlueprintRef(
                        name=bp_name,
                        includes=list(bp_data.get("include", [])),
                        ops=_parse_ops(bp_data),
                        description=bp_data.get("description", ""),
                    )
                )

        for proj_block in data.get("project", []):
            for proj_name, proj_data in proj_block.items():
                self.add(
                    ProjectRef(
                        name=proj_name,
                        use=list(proj_data.get("use", [])),
                        ops=_parse_ops(proj_data),
                        description=proj_data.get("description", ""),
                        attrs={k: v for k, v in proj_data.items() if k not in _STRUCTURAL_KEYS},
                    )
                )

    def scan(self, path: str | Path, *, recurse: bool = True) -> None:
        """Load every .hcl file under path, in sorted order; a missing path loads nothing."""
        root = Path(path)
        if not root.is_dir():
            logger.warning("Configuration path not found: %s", root)
            return
        pattern = "**/*.hcl" if recurse else "*.hcl"
        for file in sorted(root.glob(pattern)):
            self.load(file)

    def __getitem__(self, name: str) -> P:
        if name not in self._project_refs:
            raise KeyError(name)
        return self._project_refs[name].resolve(self)  # type: ignore[return-value]

    def __contains__(self, name: object) -> bool:
        return name in self._project_refs

    def __iter__(self) -> Iterator[str]:
        return iter(self._project_refs)

    def __len__(self) -> int:
        return len(self._project_refs)

    @overload
    def get(self, name: str) -> P | None: ...
    @overload
    def get(self, name: str, default: P) -> P: ...
    @overload
    def get(self, name: str, default: None) -> P | None: ...
    def get(self, name: str, default: Any = None) -> P | None:
        if name not in self._project_refs:
            return default
        return self[name]

    def filter(self, names: Iterable[str]) -> list[P]:
        """Return projects matching the given names, preserving input order."""
        return [self[n] for n in names if n in self._project_refs]

    def __repr__(self) -> str:
        type_name = self._project_type.__name__
        bp_count = len(self._blueprint_refs)
        proj_count = len(self._project_refs)
        return f"Workspace(project_type={type_name}, blueprints={bp_count}, projects={proj_count})"
