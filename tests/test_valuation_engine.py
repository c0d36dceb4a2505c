"""
Integration Tests for the Property Valuation Engine

Runs the full pipeline and checks the contract:
- Failure envelopes for missing subject / unusable comparables
- Outliers retained in the audit trail
- Normalized weights sum to one
- Range half-width never below 5%
- Confidence always within [0, 1]
- Deterministic results for the same input
- Caller's records never mutated
"""

import dataclasses
import pytest
from datetime import date
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import (
    ComparableSale,
    SubjectPropertyDetails,
    ValuationRequest,
    ValuationSettings,
    ConfidenceCategory,
    InvalidInput,
    PropertyValuationEngine,
    ValuationError,
)
from core.comp_engine import check_eligibility, parse_request, validate_request
from core.comp_engine import valuation as valuation_module


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def reference_date():
    """Fixed reference date for deterministic tests."""
    return date(2024, 6, 15)


@pytest.fixture
def engine(reference_date):
    """Valuation engine with fixed reference date."""
    return PropertyValuationEngine(ValuationSettings(reference_date=reference_date))


@pytest.fixture
def subject():
    return SubjectPropertyDetails(
        property_type="house",
        bedrooms=3,
        bathrooms=2,
        land_size=500,
        floor_area=220,
        year_built=2010,
        address="12 Kauri Street",
    )


@pytest.fixture
def scenario_comparables():
    """Three recent nearby sales close to the subject."""
    return [
        ComparableSale(
            id="C1", address="14 Kauri Street", property_type="house",
            sale_price=750000, similarity_score=89, sale_date=date(2024, 4, 10),
            distance_km=0.4, bedrooms=3, bathrooms=2, land_size=480, floor_area=210,
            year_built=2008,
        ),
        ComparableSale(
            id="C2", address="3 Rimu Road", property_type="house",
            sale_price=820000, similarity_score=82, sale_date=date(2024, 3, 5),
            distance_km=0.7, bedrooms=4, bathrooms=2, land_size=600, floor_area=250,
            year_built=2015,
        ),
        ComparableSale(
            id="C3", address="27 Totara Avenue", property_type="house",
            sale_price=690000, similarity_score=78, sale_date=date(2024, 5, 20),
            distance_km=0.9, bedrooms=3, bathrooms=1, land_size=450, floor_area=200,
            year_built=2005,
        ),
    ]


def _spread_comparables(extra_price=None):
    prices = [610000, 640000, 655000, 670000, 700000, 720000]
    if extra_price is not None:
        prices.append(extra_price)
    return [
        ComparableSale(
            id=f"S{i}", property_type="house", sale_price=price,
            similarity_score=60 + i * 5, distance_km=i * 0.8,
            sale_date=date(2023, 1 + i, 1),
        )
        for i, price in enumerate(prices)
    ]


# =============================================================================
# Test: Reference Scenario
# =============================================================================

class TestReferenceScenario:
    """Three close comparables produce a confident, sensible range."""

    def test_scenario_succeeds(self, engine, subject, scenario_comparables):
        response = engine.valuate(ValuationRequest(subject, scenario_comparables))

        assert response.success is True
        assert response.error is None

        data = response.data
        assert data.valuation_low < data.valuation_high
        assert 690000 <= data.market_trends.median_price <= 820000
        assert 0.7 <= data.valuation_confidence <= 1.0
        assert data.valuation_low < data.valuation_mid < data.valuation_high

    def test_scenario_output_contract(self, engine, subject, scenario_comparables):
        payload = engine.valuate(ValuationRequest(subject, scenario_comparables)).to_dict()

        assert payload["success"] is True
        assert "error" not in payload
        data = payload["data"]
        for key in ("valuationLow", "valuationHigh", "valuationConfidence",
                    "adjustedComparables", "valuationFactors", "marketTrends"):
            assert key in data

        entry = data["adjustedComparables"][0]
        for key in ("id", "address", "salePrice", "adjustedPrice",
                    "adjustmentFactor", "weight", "isOutlier"):
            assert key in entry
        assert entry["saleDate"] == "2024-04-10"

        assert set(data["valuationFactors"]) <= {"bedroomValue", "landSizeValue", "floorAreaValue"}
        assert set(data["marketTrends"]) >= {"medianPrice", "pricePerSqm", "annualGrowth"}
        assert data["marketTrends"]["annualGrowth"] == 0.05

    def test_confidence_category_matches_score(self, engine, subject, scenario_comparables):
        data = engine.valuate(ValuationRequest(subject, scenario_comparables)).data

        assert data.confidence_category == ConfidenceCategory.from_score(data.valuation_confidence)


# =============================================================================
# Test: Failure Envelopes
# =============================================================================

class TestFailureEnvelopes:
    """Invalid input returns success=False, never raises."""

    def test_empty_comparables(self, engine, subject):
        response = engine.valuate(ValuationRequest(subject, []))

        assert response.success is False
        assert response.error
        assert response.data is None
        assert "data" not in response.to_dict()

    def test_missing_subject(self, engine, scenario_comparables):
        response = engine.valuate(ValuationRequest(None, scenario_comparables))

        assert response.success is False
        assert "Property details" in response.error

    def test_no_positive_sale_prices(self, engine, subject):
        comps = [
            ComparableSale(id="A", property_type="house", similarity_score=80, sale_price=0),
            ComparableSale(id="B", property_type="house", similarity_score=80),
        ]

        response = engine.valuate(ValuationRequest(subject, comps))

        assert response.success is False
        assert "sale prices" in response.error

    def test_single_valid_comparable_is_handled(self, engine, subject, scenario_comparables):
        response = engine.valuate(ValuationRequest(subject, scenario_comparables[:1]))

        assert response.success is False
        assert "At least 2" in response.error

    def test_zero_weights_handled(self, engine, subject):
        comps = [
            ComparableSale(
                id=f"Z{i}", property_type="house", similarity_score=0,
                sale_price=700000, sale_date=date(2019, 1, 1), distance_km=50,
            )
            for i in range(3)
        ]

        response = engine.valuate(ValuationRequest(subject, comps))

        assert response.success is False
        assert response.error

    def test_non_positive_estimate_handled(self, engine):
        subject = SubjectPropertyDetails(property_type="house", bedrooms=1)
        comps = [
            ComparableSale(id=f"N{i}", property_type="house", similarity_score=70,
                           sale_price=700000, bedrooms=60)
            for i in range(3)
        ]

        response = engine.valuate(ValuationRequest(subject, comps))

        assert response.success is False

    def test_malformed_payload(self, engine):
        response = engine.valuate_payload({"subject": {"bedrooms": 3}, "comparables": []})

        assert response.success is False
        assert "Property type" in response.error

    @pytest.mark.parametrize("field", ["distance_km", "sale_price", "similarity_score"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_comparable_value(self, engine, subject, scenario_comparables, field, value):
        scenario_comparables[0] = dataclasses.replace(scenario_comparables[0], **{field: value})

        response = engine.valuate(ValuationRequest(subject, scenario_comparables))

        assert response.success is False
        assert "finite" in response.error
        assert response.data is None

    def test_non_finite_subject_value(self, engine, subject, scenario_comparables):
        subject = dataclasses.replace(subject, floor_area=float("nan"))

        response = engine.valuate(ValuationRequest(subject, scenario_comparables))

        assert response.success is False
        assert "floor_area" in response.error

    @pytest.mark.parametrize("key", ["distanceKm", "salePrice", "similarityScore"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_payload_value(self, engine, key, value):
        payload = {
            "subject": {"propertyType": "house"},
            "comparables": [
                {"id": "C1", "propertyType": "house", "salePrice": 700000, key: value},
                {"id": "C2", "propertyType": "house", "salePrice": 720000},
            ],
        }

        response = engine.valuate_payload(payload)

        assert response.success is False
        assert f"Comparable C1 {key} must be a finite number" in response.error
        assert response.data is None

    def test_infinite_price_is_not_usable(self):
        comp = ComparableSale(id="X", property_type="house", similarity_score=80,
                              sale_price=float("inf"))

        assert comp.has_valid_price is False

    def test_unexpected_arithmetic_error_becomes_envelope(self, engine, subject,
                                                          scenario_comparables, monkeypatch):
        def broken_trends(comparables, settings=None):
            raise ZeroDivisionError("division by zero")

        monkeypatch.setattr(valuation_module, "summarize_market_trends", broken_trends)

        response = engine.valuate(ValuationRequest(subject, scenario_comparables))

        assert response.success is False
        assert response.error == "Valuation failed: division by zero"
        assert response.data is None

    def test_non_finite_estimate_rejected(self, engine, subject, scenario_comparables,
                                          monkeypatch):
        aggregate = engine._aggregator.aggregate

        def nan_aggregate(comparables, subject):
            return dataclasses.replace(aggregate(comparables, subject), valuation_high=float("nan"))

        monkeypatch.setattr(engine._aggregator, "aggregate", nan_aggregate)

        with pytest.raises(ValuationError, match="non-finite"):
            engine.calculate(ValuationRequest(subject, scenario_comparables))


# =============================================================================
# Test: Invariants
# =============================================================================

class TestInvariants:
    """Properties that hold for any valid comparable set."""

    def test_outliers_retained_in_audit_trail(self, engine, subject):
        comps = _spread_comparables(extra_price=2500000)

        data = engine.valuate(ValuationRequest(subject, comps)).data

        assert len(data.adjusted_comparables) == len(comps)
        flagged = [c for c in data.adjusted_comparables if c.is_outlier]
        assert [c.sale_price for c in flagged] == [2500000]

    def test_normalized_weights_sum_to_one(self, engine, subject):
        data = engine.valuate(ValuationRequest(subject, _spread_comparables(2500000))).data

        assert sum(c.normalized_weight for c in data.adjusted_comparables) == pytest.approx(1.0)
        assert sum(data.weight_distribution.values()) == pytest.approx(1.0)

    @pytest.mark.parametrize("extra_price", [None, 655000, 2500000, 90000])
    def test_range_at_least_ten_percent(self, engine, subject, extra_price):
        data = engine.valuate(ValuationRequest(subject, _spread_comparables(extra_price))).data

        spread = (data.valuation_high - data.valuation_low) / data.valuation_mid
        assert spread >= 0.10 - 1e-12
        assert data.valuation_low <= data.valuation_high

    @pytest.mark.parametrize("similarity", [0, 50, 100, 250])
    def test_confidence_within_unit_interval(self, engine, subject, similarity):
        comps = [
            ComparableSale(id=f"Q{i}", property_type="unit" if i % 2 else "house",
                           similarity_score=similarity, sale_price=price,
                           distance_km=3)
            for i, price in enumerate([300000, 700000, 710000, 2900000])
        ]

        data = engine.valuate(ValuationRequest(subject, comps)).data

        assert 0.0 <= data.valuation_confidence <= 1.0

    def test_missing_optional_attributes(self, engine, subject):
        comps = [
            ComparableSale(id="M1", property_type="house", similarity_score=70, sale_price=650000),
            ComparableSale(id="M2", property_type="house", similarity_score=75, sale_price=700000,
                           bedrooms=3),
        ]

        response = engine.valuate(ValuationRequest(subject, comps))

        assert response.success is True
        assert response.data.adjusted_comparables[0].adjustment_factor == 1.0

    def test_deterministic(self, engine, subject, scenario_comparables):
        first = engine.valuate(ValuationRequest(subject, scenario_comparables)).to_dict()
        second = engine.valuate(ValuationRequest(subject, scenario_comparables)).to_dict()

        assert first == second

    def test_caller_records_not_mutated(self, engine, subject):
        comps = _spread_comparables(extra_price=2500000)

        data = engine.valuate(ValuationRequest(subject, comps)).data

        assert all(c.weight == 0.0 and not c.is_outlier for c in comps)
        assert all(a is not b for a, b in zip(comps, data.adjusted_comparables))

    def test_invalid_prices_filtered(self, engine, subject, scenario_comparables):
        unpriced = ComparableSale(id="X", property_type="house", similarity_score=90)

        data = engine.valuate(ValuationRequest(subject, scenario_comparables + [unpriced])).data

        assert [c.id for c in data.adjusted_comparables] == ["C1", "C2", "C3"]


# =============================================================================
# Test: Payload Parsing and Eligibility
# =============================================================================

class TestPayloadParsing:
    """Tests for converting JSON payloads into requests."""

    def test_appraisal_style_payload(self, engine):
        payload = {
            "appraisalId": "a1",
            "propertyDetails": {"propertyType": "House", "bedrooms": 3, "floorArea": 220},
            "comparableProperties": [
                {"id": "1", "propertyType": "house", "salePrice": 700000,
                 "saleDate": "2024-03-01T00:00:00.000Z", "similarityScore": 80},
                {"id": "2", "propertyType": "house", "salePrice": 720000,
                 "sale_date": "2024-02-01"},
            ],
        }

        request = parse_request(payload)

        assert request.appraisal_id == "a1"
        assert request.subject.property_type == "house"
        assert request.comparables[0].sale_date == date(2024, 3, 1)
        assert request.comparables[1].similarity_score == 50.0
        assert engine.valuate(request).success is True

    def test_non_numeric_attribute_rejected(self):
        with pytest.raises(InvalidInput):
            parse_request({
                "subject": {"propertyType": "house"},
                "comparables": [{"id": "1", "propertyType": "house", "salePrice": "lots"}],
            })

    def test_bad_sale_date_rejected(self):
        with pytest.raises(InvalidInput):
            parse_request({
                "subject": {"propertyType": "house"},
                "comparables": [{"id": "1", "propertyType": "house", "saleDate": "last spring"}],
            })

    def test_missing_comparable_id_rejected(self):
        with pytest.raises(InvalidInput):
            parse_request({"subject": {"propertyType": "house"}, "comparables": [{"propertyType": "house"}]})

    def test_validate_request_copies(self, subject, scenario_comparables):
        valid = validate_request(ValuationRequest(subject, scenario_comparables))

        assert [c.id for c in valid] == ["C1", "C2", "C3"]
        assert valid[0] is not scenario_comparables[0]


class TestEligibility:
    """Tests for the pre-flight eligibility check."""

    def test_eligible(self, subject, scenario_comparables):
        result = check_eligibility(ValuationRequest(subject, scenario_comparables))

        assert result.eligible is True
        assert result.reasons == []
        assert result.valid_comparables == 3

    def test_collects_all_reasons(self):
        result = check_eligibility(ValuationRequest(None, []))

        assert result.eligible is False
        assert "Property details are missing" in result.reasons
        assert "No comparable properties provided" in result.reasons
        assert "Not enough comparable properties (0/3 minimum)" in result.reasons

    def test_too_few_priced(self, subject, scenario_comparables):
        result = check_eligibility(ValuationRequest(subject, scenario_comparables[:2]))

        assert result.eligible is False
        assert result.reasons == ["Not enough comparable properties (2/3 minimum)"]
