"""Validation of raw rank request bodies.

All syntactic checks run before the graph is consulted, so a malformed
request never touches the store. Only then is the source vertex looked up
and label names resolved.
"""

from dataclasses import dataclass
import math
from typing import Any, Mapping, Protocol

from ..graph.schema import (
    NO_LIMIT,
    Direction,
    EdgeLabel,
    PropertyFilter,
    normalize_vertex_id,
)
from .config import DEFAULT_RANK_CONFIG, RankConfig
from .errors import InvalidConfig, ResolutionError, ValidationError
from .types import RankRequest, StepSpec


class GraphCatalog(Protocol):
    def has_vertex(self, vertex_id: str) -> bool: ...

    def edge_label(self, name: str) -> EdgeLabel | None: ...


@dataclass(frozen=True)
class _CheckedStep:
    direction: Direction
    label_names: tuple[str, ...]
    properties: PropertyFilter
    degree: int
    number: int


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_bound(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    if not _is_int(value):
        raise ValidationError(f"The {name} must be an integer, but got: {value!r}")
    if value <= 0 and value != NO_LIMIT:
        raise ValidationError(
            f"The {name} must be > 0 or == {NO_LIMIT}, but got: {value}"
        )
    return value


def check_step(raw: Any, *, config: RankConfig = DEFAULT_RANK_CONFIG) -> _CheckedStep:
    """Check one raw step object without touching the graph."""
    if not isinstance(raw, Mapping):
        raise InvalidConfig(f"Each step must be an object, but got: {raw!r}")

    try:
        direction = Direction.parse(raw.get("direction"))
    except ValueError as exc:
        raise InvalidConfig(str(exc)) from None

    labels = raw.get("labels")
    if labels is None:
        label_names: tuple[str, ...] = ()
    elif isinstance(labels, (list, tuple)) and all(
        isinstance(label, str) and label.strip() for label in labels
    ):
        label_names = tuple(dict.fromkeys(label.strip() for label in labels))
    else:
        raise InvalidConfig(
            f"The labels of a step must be a list of names, but got: {labels!r}"
        )

    properties = raw.get("properties")
    if properties is not None and not (
        isinstance(properties, Mapping)
        and all(isinstance(key, str) for key in properties)
    ):
        raise InvalidConfig(
            f"The properties of a step must be an object, but got: {properties!r}"
        )

    degree = config.resolve_degree(raw.get("degree"))
    if not _is_int(degree) or (degree <= 0 and degree != NO_LIMIT):
        raise InvalidConfig(
            f"The degree must be > 0 or == {NO_LIMIT}, but got: {degree!r}"
        )

    number = raw.get("number", config.max_number)
    if number is None:
        number = config.max_number
    if not _is_int(number) or not 1 <= number <= config.max_number:
        raise InvalidConfig(
            "The recommended number of each layer must be in "
            f"[1, {config.max_number}], but got: {number!r}"
        )

    return _CheckedStep(
        direction=direction,
        label_names=label_names,
        properties=PropertyFilter.from_mapping(properties),
        degree=degree,
        number=number,
    )


def resolve_step(step: _CheckedStep, catalog: GraphCatalog) -> StepSpec:
    """Resolve label names once, producing the step the engine consumes."""
    labels = set()
    for name in step.label_names:
        label = catalog.edge_label(name)
        if label is None:
            raise ResolutionError(f"Undefined edge label: '{name}'")
        labels.add(label)
    return StepSpec(
        direction=step.direction,
        labels=frozenset(labels),
        properties=step.properties,
        degree=step.degree,
        number=step.number,
    )


def validate_step(
    raw: Any,
    catalog: GraphCatalog,
    *,
    config: RankConfig = DEFAULT_RANK_CONFIG,
) -> StepSpec:
    """Check and resolve a single step."""
    return resolve_step(check_step(raw, config=config), catalog)


def validate_request(
    payload: Any,
    catalog: GraphCatalog,
    *,
    config: RankConfig = DEFAULT_RANK_CONFIG,
) -> RankRequest:
    """Turn a raw request body into a validated RankRequest.

    Raises:
        ValidationError: malformed fields; raised before any graph access.
        ResolutionError: unknown source vertex or edge label.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("The rank request body can't be null")

    if payload.get("source") is None:
        raise ValidationError("The source of rank request can't be null")
    source = normalize_vertex_id(payload.get("source"))
    if source is None:
        raise ValidationError(
            f"The source of rank request is invalid: {payload.get('source')!r}"
        )

    raw_steps = payload.get("steps")
    if raw_steps is None:
        raw_steps = [{}]
    elif not isinstance(raw_steps, (list, tuple)):
        raise ValidationError(
            f"The steps of rank request must be a list, but got: {raw_steps!r}"
        )
    elif not raw_steps:
        raise ValidationError(
            "The steps of rank request are either not specified or as null, "
            "but can't be specified as empty"
        )

    alpha = payload.get("alpha")
    if alpha is None:
        raise ValidationError("The alpha of rank request can't be null")
    if (
        isinstance(alpha, bool)
        or not isinstance(alpha, (int, float))
        or not math.isfinite(alpha)
        or not 0.0 <= alpha <= 1.0
    ):
        raise ValidationError(
            f"The alpha of rank request must be in [0, 1], but got '{alpha}'"
        )

    capacity = _check_bound(
        payload.get("capacity"), "capacity", config.default_capacity
    )
    limit = _check_bound(payload.get("limit"), "limit", config.default_limit)

    checked = [check_step(raw, config=config) for raw in raw_steps]

    if not catalog.has_vertex(source):
        raise ResolutionError(f"The source vertex '{source}' does not exist")

    steps = tuple(resolve_step(step, catalog) for step in checked)

    return RankRequest(
        source=source,
        steps=steps,
        alpha=float(alpha),
        capacity=capacity,
        limit=limit,
    )
