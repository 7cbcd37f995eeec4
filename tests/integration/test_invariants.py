"""Invariant tests for the Prime CEE and rentability engine.

Verifies rules that must ALWAYS hold, whatever the inputs:
- project totals are the sum of the included products
- no kWh base or no multiplier means no prime
- normalizers are idempotent
- rentability figures are finite and consistent
"""

import math
import random
from typing import Any, Dict, List

import pytest

from prime_cee.application.services import compute_prime_cee
from prime_cee.core.glossary import TravauxOption
from prime_cee.domain.calculator.additional_costs import normalize_additional_cost
from prime_cee.domain.calculator.rentability import calculate_rentability, split_travaux
from prime_cee.domain.calculator.valorisation import ZERO_FIGURES, compute_valorisation
from prime_cee.domain.models.formula import normalize_product_cee_config, normalize_valorisation_formula

# --- Fixtures ---

@pytest.fixture
def rng() -> random.Random:
    return random.Random(20240611)


@pytest.fixture
def random_project(rng) -> Dict[str, Any]:
    """Catalog and links of a project with 30 random products."""
    categories = ["isolation", "lighting", "chauffage", "CAT", "ECO"]
    product_map: Dict[str, Any] = {}
    links: List[Dict[str, Any]] = []
    for i in range(30):
        product_id = f"p{i}"
        product_map[product_id] = {
            "id": product_id,
            "code": f"BAR-{i}",
            "category": rng.choice(categories),
            "kwh_cumac_values": [
                {
                    "building_type": "Maison",
                    "kwh_cumac_lt_400": rng.choice([None, 0, rng.uniform(100, 10000)]),
                    "kwh_cumac_gte_400": rng.choice([None, rng.uniform(100, 10000)]),
                }
            ],
        }
        links.append(
            {
                "id": f"pp{i}",
                "product_id": product_id,
                "quantity": rng.choice([None, 0, rng.randint(1, 50)]),
                "dynamic_params": {
                    "surface_isolee": rng.choice([None, rng.uniform(1, 300)]),
                    "nombre_luminaire": rng.choice([None, rng.randint(1, 100)]),
                    "led_watt": rng.choice([None, rng.randint(10, 300)]),
                },
            }
        )
    return {"product_map": product_map, "links": links}


@pytest.fixture
def random_sites(rng) -> List[Dict[str, Any]]:
    """50 random rentability inputs, some with garbage values."""
    sites = []
    for _ in range(50):
        sites.append({
            "revenue": rng.choice([0, "", "abc", rng.uniform(0, 50000)]),
            "prime_cee": rng.uniform(0, 10000),
            "labor_cost_per_unit": rng.uniform(0, 30),
            "material_cost_per_unit": rng.uniform(0, 30),
            "units_used": rng.choice([0, None, rng.uniform(1, 500)]),
            "billed_units": rng.choice([0, None, rng.uniform(1, 500)]),
            "commission": rng.uniform(0, 1000),
            "commission_per_unit": rng.uniform(0, 5),
            "commission_per_unit_active": rng.choice([True, False]),
            "travaux_option": rng.choice(["NA", "CLIENT", "MARGE", "PARTAGE", "MOITIE", None]),
            "travaux_amount": rng.uniform(0, 3000),
            "additional_costs": [{"amount_ht": rng.uniform(0, 500), "tva_rate": rng.choice([0, 5.5, 10, 20])}],
            "subcontractor_rate_per_unit": rng.uniform(0, 40),
            "subcontractor_payment_confirmed": rng.choice([True, False]),
            "measurement_mode": rng.choice(["surface", "luminaire"]),
        })
    return sites


# --- Prime CEE ---

def test_totals_are_sum_of_products(random_project, settings):
    """Project totals equal the sum of the included per-product totals."""
    result = compute_prime_cee(
        random_project["links"], random_project["product_map"], "Maison", {"price_eur_per_mwh": 7.5},
        settings=settings,
    )
    assert result.total_prime == pytest.approx(sum(p.total_prime for p in result.products), abs=0.01)
    assert result.total_valorisation_mwh == pytest.approx(
        sum(p.valorisation_total_mwh for p in result.products), abs=0.01
    )
    assert all(p.total_prime >= 0 for p in result.products)


def test_excluded_products_never_included(random_project, settings):
    result = compute_prime_cee(
        random_project["links"], random_project["product_map"], "Maison", {"price_eur_per_mwh": 7.5},
        settings=settings,
    )
    included = {p.product_id for p in result.products}
    excluded = {pid for pid, product in random_project["product_map"].items() if product["category"] == "ECO"}
    assert not included & excluded


def test_incomplete_rows_contribute_nothing(random_project, settings):
    result = compute_prime_cee(
        random_project["links"], random_project["product_map"], "Maison", {"price_eur_per_mwh": 7.5},
        settings=settings,
    )
    for product in result.products:
        if product.has_missing_kwh_cumac or product.has_missing_multiplier:
            assert product.total_prime == 0
            assert product.valorisation_total_mwh == 0


@pytest.mark.parametrize("kwh,multiplier", [(0, 10), (None, 10), (1000, 0), (1000, None), (-1, -1)])
def test_no_base_or_multiplier_means_no_prime(kwh, multiplier, settings):
    assert compute_valorisation(kwh, multiplier, 2, 1, 100, settings=settings) == ZERO_FIGURES


def test_valorisation_scales_with_multiplier(rng, settings):
    for _ in range(20):
        kwh = rng.uniform(1, 10000)
        multiplier = rng.randint(1, 100)
        single = compute_valorisation(kwh, 1, 2, 1, 10, settings=settings)
        many = compute_valorisation(kwh, multiplier, 2, 1, 10, settings=settings)
        assert many.total_mwh == pytest.approx(single.total_mwh * multiplier, abs=0.01 * multiplier)


# --- Normalizers ---

@pytest.mark.parametrize(
    "raw",
    [
        None,
        "garbage",
        {"category": "lighting", "formulaTemplate": "lighting-led", "ledWattConstant": 40},
        {"category": "isolation", "ledWattConstant": 40, "primeMultiplierParam": "__quantity__"},
        {"category": "heating", "formulaTemplate": "custom", "formulaExpression": " KWH_CUMAC * 2 "},
        {"defaults": {"multiplier": {"key": "surface", "coefficient": 2}}},
    ],
)
def test_cee_config_normalization_is_idempotent(raw):
    once = normalize_product_cee_config(raw)
    assert normalize_product_cee_config(once) == once


@pytest.mark.parametrize(
    "raw",
    [
        {"variableKey": "Nombre Led", "nombre_led": 12},
        {"variable_key": "surface_isolee", "variableLabel": "Surface", "variableValue": 0},
        {"variableKey": "surface", "coefficient": 1.5, "variableValue": "80"},
    ],
)
def test_formula_normalization_is_idempotent(raw):
    once = normalize_valorisation_formula(raw)
    assert normalize_valorisation_formula(once) == once


@pytest.mark.parametrize(
    "raw",
    [
        {"label": "Benne", "amount_ht": 200, "tva_rate": 10},
        {"amount": "100", "montant_tva": 5.5},
        {"amount_ttc": 120},
        {"amount_ht": 100, "amount_ttc": 110},
    ],
)
def test_cost_line_normalization_is_idempotent(raw):
    once = normalize_additional_cost(raw)
    assert normalize_additional_cost(once) == once


# --- Rentability ---

def test_rentability_is_consistent(random_sites, settings):
    for site in random_sites:
        result = calculate_rentability(site, settings=settings)
        for value in (result.ca, result.total_costs, result.margin_total, result.margin_rate, result.margin_per_unit):
            assert math.isfinite(value)
        assert result.ca >= 0
        assert result.total_costs >= 0
        assert result.margin_total == pytest.approx(result.ca - result.total_costs, abs=1e-5)
        if result.ca == 0:
            assert result.margin_rate == 0
        if result.units_used == 0:
            assert result.margin_per_unit == 0


def test_travaux_split_preserves_amount(rng):
    for _ in range(20):
        amount = rng.uniform(0.01, 10000)
        for option in TravauxOption:
            revenue, cost = split_travaux(option, amount)
            assert revenue >= 0 and cost >= 0
            if option is TravauxOption.NA:
                assert revenue + cost == 0
            else:
                assert revenue + cost == pytest.approx(amount)
