"""
Step graph helpers and save/publish-time definition checks.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import DEFAULT_FORMULA_MAX_DEPTH, DEFAULT_FORMULA_MAX_LENGTH, DEFAULT_MAX_STEPS
from ..errors import DefinitionError, EvaluationError
from ..formula import parse_formula
from .models import (
    END_STEP_ID,
    CalculationConfig,
    ConditionConfig,
    FormField,
    LogicStep,
    OutputConfig,
    SwitchConfig,
    ToolDraft,
    TransformConfig,
)


class StepGraph:
    """Read-only view over an ordered list of steps and their next pointers."""

    def __init__(self, steps: Sequence[LogicStep]) -> None:
        self.steps = list(steps)
        self.order = [step.id for step in self.steps]
        self.by_id: Dict[str, LogicStep] = {}
        for step in self.steps:
            self.by_id.setdefault(step.id, step)
        self._index = {step_id: idx for idx, step_id in reversed(list(enumerate(self.order)))}

    @property
    def first_id(self) -> Optional[str]:
        return self.order[0] if self.order else None

    def sequential_next(self, step_id: str) -> Optional[str]:
        idx = self._index.get(step_id)
        if idx is None or idx + 1 >= len(self.order):
            return None
        return self.order[idx + 1]

    def fallthrough(self, step: LogicStep) -> Optional[str]:
        """Where control goes after ``step`` when nothing redirects it."""
        if step.next_step_id:
            return None if step.next_step_id == END_STEP_ID else step.next_step_id
        return self.sequential_next(step.id)

    def successors(self, step: LogicStep) -> List[str]:
        targets: List[Optional[str]] = []
        config = step.config
        if isinstance(config, ConditionConfig):
            targets.append(config.then_step_id)
            targets.append(config.else_step_id or self.fallthrough(step))
        elif isinstance(config, SwitchConfig):
            targets.extend(case.next_step_id for case in config.cases)
            targets.append(config.default_step_id or self.fallthrough(step))
        else:
            targets.append(self.fallthrough(step))
        seen: List[str] = []
        for target in targets:
            if target and target != END_STEP_ID and target not in seen:
                seen.append(target)
        return seen

    def find_cycle_nodes(self) -> List[str]:
        """Kahn's algorithm; returns the ids left over when no zero in-degree node remains."""
        indegree = {step_id: 0 for step_id in self.by_id}
        edges: Dict[str, List[str]] = {}
        for step_id, step in self.by_id.items():
            targets = [t for t in self.successors(step) if t in self.by_id]
            edges[step_id] = targets
            for target in targets:
                indegree[target] += 1
        queue = deque(step_id for step_id in self.order if indegree.get(step_id) == 0)
        removed = set()
        while queue:
            current = queue.popleft()
            if current in removed:
                continue
            removed.add(current)
            for target in edges.get(current, []):
                indegree[target] -= 1
                if indegree[target] == 0:
                    queue.append(target)
        return [step_id for step_id in self.order if step_id in self.by_id and step_id not in removed]


def _duplicates(ids: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    dupes: List[str] = []
    for item in ids:
        if item in seen and item not in dupes:
            dupes.append(item)
        seen.add(item)
    return dupes


def _field_issues(fields: Sequence[FormField]) -> List[str]:
    issues: List[str] = []
    for dupe in _duplicates(f.id for f in fields):
        issues.append(f"Field id '{dupe}' is used more than once.")
    for item in fields:
        if item.id.startswith("$"):
            issues.append(f"Field id '{item.id}' must not start with '$'.")
        if item.type == "select" and not item.options:
            issues.append(f"Field '{item.id}' is a select field but has no options.")
        if item.type != "select" and item.options:
            issues.append(f"Field '{item.id}' has options but is not a select field.")
    return issues


def structural_issues(
    fields: Sequence[FormField],
    steps: Sequence[LogicStep],
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> List[str]:
    """Problems that make a definition impossible to save."""
    issues = _field_issues(fields)
    field_ids = {f.id for f in fields}
    for dupe in _duplicates(s.id for s in steps):
        issues.append(f"Step id '{dupe}' is used more than once.")
    if len(steps) > max_steps:
        issues.append(f"A tool can have at most {max_steps} steps (found {len(steps)}).")
    graph = StepGraph(steps)
    for step in steps:
        if not step.id or step.id.startswith("$"):
            issues.append(f"Step id '{step.id}' must be non-empty and must not start with '$'.")
        if step.id in field_ids:
            issues.append(f"Step id '{step.id}' collides with a field id.")
        for target in _declared_targets(step):
            if target != END_STEP_ID and target not in graph.by_id:
                issues.append(f"Step '{step.id}' points to unknown step '{target}'.")
            if target == step.id:
                issues.append(f"Step '{step.id}' points to itself.")
    cycle = graph.find_cycle_nodes()
    if cycle:
        issues.append(f"Steps form a cycle: {', '.join(cycle)}.")
    return issues


def _declared_targets(step: LogicStep) -> List[str]:
    targets: List[str] = []
    if step.next_step_id:
        targets.append(step.next_step_id)
    config = step.config
    if isinstance(config, ConditionConfig):
        targets.append(config.then_step_id)
        if config.else_step_id:
            targets.append(config.else_step_id)
    elif isinstance(config, SwitchConfig):
        targets.extend(case.next_step_id for case in config.cases)
        if config.default_step_id:
            targets.append(config.default_step_id)
    return targets


def _formulas(step: LogicStep) -> List[str]:
    config = step.config
    if isinstance(config, CalculationConfig):
        return [config.formula]
    if isinstance(config, (ConditionConfig, SwitchConfig)):
        return [config.expression]
    if isinstance(config, TransformConfig) and config.operation in {"map", "filter"}:
        formula = config.options.get("formula")
        return [formula] if isinstance(formula, str) else []
    return []


def publish_issues(
    fields: Sequence[FormField],
    steps: Sequence[LogicStep],
    output: OutputConfig,
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
    max_depth: int = DEFAULT_FORMULA_MAX_DEPTH,
    max_length: int = DEFAULT_FORMULA_MAX_LENGTH,
) -> List[str]:
    """Everything ``structural_issues`` reports plus checks that only matter for a runnable tool."""
    issues = structural_issues(fields, steps, max_steps=max_steps)
    field_ids = {f.id for f in fields}
    step_ids = {s.id for s in steps}
    for step in steps:
        for formula in _formulas(step):
            try:
                parse_formula(formula, max_depth=max_depth, max_length=max_length)
            except EvaluationError as exc:
                issues.append(f"Step '{step.id}': {exc.message}")
        config = step.config
        if isinstance(config, TransformConfig):
            if config.operation in {"map", "filter"} and not isinstance(config.options.get("formula"), str):
                issues.append(f"Step '{step.id}': {config.operation} needs an options.formula.")
            root = config.source.split(".", 1)[0]
            if root not in field_ids and root not in step_ids:
                issues.append(f"Step '{step.id}' transforms unknown value '{config.source}'.")
        if isinstance(config, CalculationConfig):
            for var in config.variables:
                if var.field_id is not None and var.field_id not in field_ids:
                    issues.append(f"Step '{step.id}': variable '{var.name}' references unknown field '{var.field_id}'.")
                if var.step_id is not None and var.step_id not in step_ids:
                    issues.append(f"Step '{step.id}': variable '{var.name}' references unknown step '{var.step_id}'.")
    if output.format in {"table", "card"} and not output.field_mappings:
        issues.append(f"Output format '{output.format}' needs at least one field mapping.")
    if output.source_step_id and output.source_step_id not in step_ids:
        issues.append(f"Output source step '{output.source_step_id}' does not exist.")
    return issues


def validate_draft(draft: ToolDraft, *, max_steps: int = DEFAULT_MAX_STEPS) -> None:
    issues = structural_issues(draft.input_config, draft.logic_config, max_steps=max_steps)
    if issues:
        raise DefinitionError(f"Tool '{draft.id}' has {len(issues)} problem(s): {issues[0]}", issues=issues)
