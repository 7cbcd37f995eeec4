"""Unit tests for the site record adapter."""

import pytest

from prime_cee.application.services.rentability_adapter import (
    build_rentability_input_from_site,
    calculate_site_rentability,
    is_led_product,
)
from prime_cee.core.glossary import MeasurementMode, TravauxOption


class TestIsLedProduct:
    """Tests for LED product detection."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Luminaire LED", True),
            ("Projecteur à LED 150W", True),
            ("Éclairage luminaires", True),
            ("Isolation combles", False),
            ("", False),
            (None, False),
            (42, False),
        ],
    )
    def test_detection(self, name, expected):
        assert is_led_product(name) is expected


class TestBuildInput:
    """Tests for build_rentability_input_from_site."""

    def test_field_mapping(self, sample_site):
        data = build_rentability_input_from_site(sample_site)
        assert data.revenue == 10000
        assert data.labor_cost_per_unit == 10
        assert data.material_cost_per_unit == 5
        assert data.units_used == 100
        assert data.billed_units == 90
        assert data.commission_per_unit == 2
        assert data.commission_per_unit_active is True
        assert data.travaux_option is TravauxOption.CLIENT
        assert data.travaux_amount == 1000
        assert data.subcontractor_rate_per_unit == 50
        assert data.measurement_mode is MeasurementMode.SURFACE
        assert data.unit_label == "m²"

    def test_prime_from_cents_first(self, sample_site):
        assert build_rentability_input_from_site(sample_site).prime_cee == 2000

    def test_prime_fallbacks(self, sample_site):
        sample_site["project_prime_cee_total_cents"] = None
        assert build_rentability_input_from_site(sample_site).prime_cee == 1500
        sample_site["project_prime_cee"] = 0
        assert build_rentability_input_from_site(sample_site).prime_cee == 1200
        sample_site["valorisation_cee"] = None
        assert build_rentability_input_from_site(sample_site).prime_cee == 0

    def test_led_product_counts_fixtures(self, sample_site):
        sample_site["product_name"] = "Luminaire LED"
        data = build_rentability_input_from_site(sample_site)
        assert data.measurement_mode is MeasurementMode.FIXTURE
        assert data.unit_label == "luminaire"
        assert data.project_category == "eclairage"

    def test_explicit_category_kept(self, sample_site):
        sample_site["product_name"] = "Luminaire LED"
        sample_site["project_category"] = "tertiaire"
        assert build_rentability_input_from_site(sample_site).project_category == "tertiaire"

    def test_legacy_commission_fields(self, sample_site):
        del sample_site["commission_eur_per_m2_enabled"]
        del sample_site["commission_eur_per_m2"]
        sample_site["commission_commerciale_ht"] = "oui"
        sample_site["commission_commerciale_ht_montant"] = "3,5"
        data = build_rentability_input_from_site(sample_site)
        assert data.commission_per_unit_active is True
        assert data.commission_per_unit == 3.5

    def test_rate_from_stored_amount(self):
        data = build_rentability_input_from_site(
            {"subcontractor_payment_amount": 600, "subcontractor_payment_units": 20}
        )
        assert data.subcontractor_base_units == 20
        assert data.subcontractor_rate_per_unit == 30

    def test_stored_rate_before_amount(self):
        data = build_rentability_input_from_site(
            {"subcontractor_payment_rate": 12, "subcontractor_payment_amount": 600, "subcontractor_payment_units": 20}
        )
        assert data.subcontractor_rate_per_unit == 12

    def test_numeric_travaux_option(self):
        """Old records stored the amount in the option field."""
        data = build_rentability_input_from_site({"travaux_non_subventionnes": 800})
        assert data.travaux_amount == 800
        assert data.travaux_option is TravauxOption.NA

    def test_garbage_record(self):
        data = build_rentability_input_from_site("not a record")
        assert data.prime_cee == 0
        assert data.units_used == 0


class TestCalculateSiteRentability:
    """Tests for calculate_site_rentability."""

    def test_reference_site(self, sample_site):
        result = calculate_site_rentability(sample_site)
        assert result.ca == pytest.approx(13000)
        assert result.total_costs == pytest.approx(7600)
        assert result.margin_total == pytest.approx(5400)
        assert result.units_used == 100

    def test_led_site_uses_billed_units(self, sample_site):
        sample_site["product_name"] = "Luminaire LED"
        result = calculate_site_rentability(sample_site)
        assert result.units_used == 90
        assert result.total_costs == pytest.approx(6930)
        assert result.margin_total == pytest.approx(6070)
        assert result.unit_label == "luminaire"
