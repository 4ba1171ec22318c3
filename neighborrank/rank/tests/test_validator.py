"""Tests for rank request validation."""

import pytest

from neighborrank.graph.schema import NO_LIMIT, Direction, EdgeLabel
from neighborrank.rank.config import RankConfig
from neighborrank.rank.errors import (
    InvalidConfig,
    ResolutionError,
    ValidationError,
)
from neighborrank.rank.validator import check_step, validate_request, validate_step


class _Catalog:
    """Catalog recording every graph lookup."""

    def __init__(self, vertices=("v1",), labels=("knows", "likes")):
        self.vertices = set(vertices)
        self.labels = {name: index for index, name in enumerate(labels, start=1)}
        self.calls: list[tuple[str, str]] = []

    def has_vertex(self, vertex_id: str) -> bool:
        self.calls.append(("has_vertex", vertex_id))
        return vertex_id in self.vertices

    def edge_label(self, name: str) -> EdgeLabel | None:
        self.calls.append(("edge_label", name))
        if name not in self.labels:
            return None
        return EdgeLabel(id=self.labels[name], name=name)


class TestRequestValidation:
    """Request-level checks."""

    @pytest.mark.parametrize("alpha", [-0.1, 1.01, 5, float("nan"), float("inf")])
    def test_alpha_out_of_range_rejected_before_graph_access(self, alpha):
        catalog = _Catalog()

        with pytest.raises(ValidationError, match="alpha"):
            validate_request({"source": "v1", "alpha": alpha}, catalog)

        assert catalog.calls == []

    @pytest.mark.parametrize("alpha", [None, True, "0.5"])
    def test_alpha_must_be_a_number(self, alpha):
        with pytest.raises(ValidationError):
            validate_request({"source": "v1", "alpha": alpha}, _Catalog())

    @pytest.mark.parametrize("alpha", [0, 0.0, 0.5, 1, 1.0])
    def test_alpha_bounds_are_inclusive(self, alpha):
        request = validate_request({"source": "v1", "alpha": alpha}, _Catalog())
        assert request.alpha == float(alpha)

    def test_null_body_rejected(self):
        with pytest.raises(ValidationError, match="body"):
            validate_request(None, _Catalog())

    @pytest.mark.parametrize("source", [None, "", "   ", ["v1"]])
    def test_missing_or_malformed_source_rejected(self, source):
        catalog = _Catalog()
        with pytest.raises(ValidationError, match="source"):
            validate_request({"source": source, "alpha": 0.5}, catalog)
        assert catalog.calls == []

    def test_numeric_source_is_normalized(self):
        catalog = _Catalog(vertices=["7"])
        request = validate_request({"source": 7, "alpha": 0.5}, catalog)
        assert request.source == "7"

    def test_empty_steps_rejected(self):
        with pytest.raises(ValidationError, match="can't be specified as empty"):
            validate_request({"source": "v1", "alpha": 0.5, "steps": []}, _Catalog())

    def test_missing_steps_uses_one_default_step(self):
        config = RankConfig(default_degree=25)

        request = validate_request(
            {"source": "v1", "alpha": 0.5}, _Catalog(), config=config
        )

        assert len(request.steps) == 1
        step = request.steps[0]
        assert step.direction is Direction.OUT
        assert step.labels == frozenset()
        assert not step.properties
        assert step.degree == 25
        assert step.number == 1000

    def test_defaults_for_capacity_and_limit(self):
        config = RankConfig(default_capacity=99, default_limit=4)

        request = validate_request(
            {"source": "v1", "alpha": 0.5}, _Catalog(), config=config
        )

        assert request.capacity == 99
        assert request.limit == 4

    @pytest.mark.parametrize("field", ["capacity", "limit"])
    @pytest.mark.parametrize("value", [0, -2, 1.5, "10"])
    def test_invalid_capacity_and_limit_rejected(self, field, value):
        catalog = _Catalog()
        with pytest.raises(ValidationError, match=field):
            validate_request({"source": "v1", "alpha": 0.5, field: value}, catalog)
        assert catalog.calls == []

    def test_unbounded_sentinels_accepted(self):
        request = validate_request(
            {"source": "v1", "alpha": 0.5, "capacity": NO_LIMIT, "limit": NO_LIMIT},
            _Catalog(),
        )
        assert request.capacity == NO_LIMIT
        assert request.limit == NO_LIMIT

    def test_unknown_source_is_resolution_error(self):
        with pytest.raises(ResolutionError, match="missing"):
            validate_request({"source": "missing", "alpha": 0.5}, _Catalog())

    def test_bad_step_rejected_before_source_lookup(self):
        catalog = _Catalog()
        with pytest.raises(InvalidConfig):
            validate_request(
                {"source": "v1", "alpha": 0.5, "steps": [{}, {"number": 0}]},
                catalog,
            )
        assert catalog.calls == []

    def test_labels_resolved_once_per_request(self):
        catalog = _Catalog()

        request = validate_request(
            {
                "source": "v1",
                "alpha": 0.5,
                "steps": [{"labels": ["knows", "likes", "knows"]}],
            },
            catalog,
        )

        assert {label.name for label in request.steps[0].labels} == {"knows", "likes"}
        assert catalog.calls.count(("edge_label", "knows")) == 1


class TestStepValidation:
    """Step-level checks."""

    @pytest.mark.parametrize("number", [0, -1, 1001, 2.5, True])
    def test_number_outside_range_rejected(self, number):
        with pytest.raises(InvalidConfig, match="number"):
            check_step({"number": number})

    @pytest.mark.parametrize("number", [1, 1000])
    def test_number_bounds_accepted(self, number):
        assert check_step({"number": number}).number == number

    @pytest.mark.parametrize("degree", [0, -2, 3.0, False])
    def test_invalid_degree_rejected(self, degree):
        with pytest.raises(InvalidConfig, match="degree"):
            check_step({"degree": degree})

    @pytest.mark.parametrize("degree", [1, 50, NO_LIMIT])
    def test_finite_and_unbounded_degree_accepted(self, degree):
        assert check_step({"degree": degree}).degree == degree

    def test_direction_parsed_case_insensitively(self):
        assert check_step({"direction": "both"}).direction is Direction.BOTH
        assert check_step({"direction": "In"}).direction is Direction.IN

    def test_unknown_direction_rejected(self):
        with pytest.raises(InvalidConfig, match="direction"):
            check_step({"direction": "SIDEWAYS"})

    @pytest.mark.parametrize("labels", ["knows", [1], [""]])
    def test_malformed_labels_rejected(self, labels):
        with pytest.raises(InvalidConfig, match="labels"):
            check_step({"labels": labels})

    def test_malformed_properties_rejected(self):
        with pytest.raises(InvalidConfig, match="properties"):
            check_step({"properties": ["weight"]})

    def test_step_must_be_object(self):
        with pytest.raises(InvalidConfig):
            check_step("OUT")

    def test_unresolved_label_is_resolution_error(self):
        with pytest.raises(ResolutionError, match="hates"):
            validate_step({"labels": ["hates"]}, _Catalog())

    def test_properties_become_filter(self):
        step = validate_step({"properties": {"weight": 2, "kind": "x"}}, _Catalog())
        assert step.properties.matches({"weight": 2, "kind": "x", "other": 1})
        assert not step.properties.matches({"weight": 3, "kind": "x"})
