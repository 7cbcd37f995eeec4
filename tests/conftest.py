"""Pytest fixtures for prime_cee tests."""

import os
import sys

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from prime_cee.core.settings import EngineSettings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Environment overrides set by a test must not leak into the next one."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Engine settings with every default."""
    return EngineSettings(_env_file=None)


@pytest.fixture
def isolation_product():
    """Attic insulation product with surface-split kWh bases."""
    return {
        "id": "prod-iso",
        "name": "Isolation combles perdus",
        "code": "BAR-EN-101",
        "category": "isolation",
        "params_schema": {
            "fields": [
                {"name": "surface_isolee", "label": "Surface isolée", "type": "number", "unit": "m²"},
                {"name": "epaisseur", "label": "Épaisseur", "type": "number"},
            ]
        },
        "cee_config": {"category": "isolation", "formulaTemplate": "standard"},
        "kwh_cumac_values": [
            {"building_type": "Maison", "kwh_cumac_lt_400": 1700, "kwh_cumac_gte_400": 1500},
            {"building_type": "Appartement", "kwh_cumac_lt_400": 1400, "kwh_cumac_gte_400": None},
        ],
    }


@pytest.fixture
def lighting_product():
    """LED fixture product (tertiary buildings)."""
    return {
        "id": "light-1",
        "name": "Luminaire LED",
        "code": "BAT-EQ-127",
        "category": "lighting",
        "params_schema": [
            {"name": "nombre_luminaire", "label": "Nombre de luminaires", "type": "number"},
            {"name": "led_watt", "label": "Puissance LED", "type": "number", "unit": "W"},
        ],
        "cee_config": {"category": "lighting"},
        "kwh_cumac_values": [
            {"building_type": "tertiaire", "kwh_cumac_lt_400": 500, "kwh_cumac_gte_400": 500},
        ],
    }


@pytest.fixture
def sample_site():
    """Legacy site record as stored by the sites screen."""
    return {
        "revenue": 10000,
        "cout_main_oeuvre_m2_ht": 10,
        "cout_isolation_m2": 5,
        "isolation_utilisee_m2": 100,
        "surface_facturee": 90,
        "montant_commission": 300,
        "commission_eur_per_m2_enabled": True,
        "commission_eur_per_m2": 2,
        "travaux_non_subventionnes": "CLIENT",
        "travaux_non_subventionnes_montant": 1000,
        "project_prime_cee_total_cents": 200000,
        "project_prime_cee": 1500,
        "valorisation_cee": 1200,
        "additional_costs": [{"label": "Benne", "amount_ht": 500, "taxes": 100}],
        "subcontractor_pricing_details": 50,
        "subcontractor_payment_confirmed": True,
        "product_name": "Isolation combles",
    }
