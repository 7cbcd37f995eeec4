"""Unit tests for prime_cee.core.glossary module."""

import pytest

from prime_cee.core.glossary import (
    DynamicParams,
    MeasurementMode,
    ParamKey,
    ProductCategory,
    TaxMode,
    TravauxOption,
    canonical_param_key,
    default_multiplier_key,
    is_quantity_sentinel,
    resolve_multiplier_key_for_category,
)


class TestCanonicalParamKey:
    """Tests for the synonym table."""

    @pytest.mark.parametrize(
        "raw",
        ["nombre_led", "Nombre Led", "nombreLed", "nombre_de_luminaire", "NB_LUMINAIRES"],
    )
    def test_fixture_count_synonyms(self, raw):
        assert canonical_param_key(raw) is ParamKey.NOMBRE_LUMINAIRE

    def test_camel_case_surface(self):
        assert canonical_param_key("surfaceIsolee") is ParamKey.SURFACE_ISOLEE

    def test_unknown_key(self):
        assert canonical_param_key("epaisseur") is None
        assert canonical_param_key("") is None
        assert canonical_param_key(None) is None

    def test_quantity_sentinel(self):
        assert is_quantity_sentinel("__quantity__")
        assert is_quantity_sentinel(" Quantity ")
        assert not is_quantity_sentinel("surface")


class TestDynamicParams:
    """Tests for the synonym-aware parameter view."""

    def test_exact_key_first(self):
        params = DynamicParams({"nombre_led": 12, "nombre_luminaire": 40})
        assert params.lookup_number("nombre_luminaire") == 40.0

    def test_synonym_lookup(self):
        params = DynamicParams({"Nombre Led": "25"})
        assert params.lookup_number("nombre_luminaire") == 25.0

    def test_skips_non_positive_values(self):
        params = DynamicParams({"nombre_luminaire": 0, "nombreLed": 8})
        assert params.lookup_number("nombre_luminaire") == 8.0

    def test_default(self):
        assert DynamicParams({}).lookup_number("led_watt", default=250.0) == 250.0

    def test_mapping_interface(self):
        raw = {"a": 1}
        params = DynamicParams(raw)
        assert params["a"] == 1
        assert len(params) == 1
        assert params.to_dict() == raw

    def test_non_mapping_input(self):
        assert len(DynamicParams(None)) == 0


class TestProductCategory:
    """Tests for free-form category parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("isolation", ProductCategory.ISOLATION),
            ("Isolation des combles", ProductCategory.ISOLATION),
            ("Éclairage LED", ProductCategory.LIGHTING),
            ("eclairage", ProductCategory.LIGHTING),
            ("lighting", ProductCategory.LIGHTING),
            ("Chauffage", ProductCategory.HEATING),
            ("autre", ProductCategory.OTHER),
        ],
    )
    def test_parse(self, raw, expected):
        assert ProductCategory.parse(raw) is expected

    def test_unknown_is_none(self):
        assert ProductCategory.parse("CAT") is None
        assert ProductCategory.parse(None) is None

    def test_default_multiplier_keys(self):
        assert default_multiplier_key("isolation") == "surface_isolee"
        assert default_multiplier_key("eclairage") == "nombre_luminaire"
        assert default_multiplier_key("chauffage") is None

    def test_resolve_multiplier_key_for_category(self):
        assert resolve_multiplier_key_for_category("__quantity__", "lighting") == "nombre_luminaire"
        assert resolve_multiplier_key_for_category("__quantity__", "heating") == "__quantity__"
        assert resolve_multiplier_key_for_category(" surface ", "isolation") == "surface"
        assert resolve_multiplier_key_for_category("  ", "isolation") is None


class TestPolicies:
    """Tests for the works split, measurement and tax modes."""

    def test_travaux_legacy_moitie(self):
        assert TravauxOption.parse("MOITIE") is TravauxOption.PARTAGE
        assert TravauxOption.parse("moitie") is TravauxOption.PARTAGE

    def test_travaux_unknown_is_na(self):
        assert TravauxOption.parse("SOMETHING") is TravauxOption.NA
        assert TravauxOption.parse(None) is TravauxOption.NA
        assert TravauxOption.parse("client") is TravauxOption.CLIENT

    def test_measurement_mode(self):
        assert MeasurementMode.parse("luminaires") is MeasurementMode.FIXTURE
        assert MeasurementMode.parse(None) is MeasurementMode.SURFACE
        assert MeasurementMode.FIXTURE.default_unit_label == "luminaire"
        assert MeasurementMode.SURFACE.default_unit_label == "m²"

    def test_tax_mode_defaults_to_ttc(self):
        assert TaxMode.parse("ht") is TaxMode.HT
        assert TaxMode.parse(None) is TaxMode.TTC
