"""
prime_cee - Prime CEE valorisation and site rentability engine

This package computes the CEE subsidy value of renovation projects and the
rentability (revenue/cost/margin) of their construction sites.

Modules:
    - core: Settings, logging, exceptions, lenient number parsing and glossary
    - domain.models: Pydantic models for catalog entries, links and results
    - domain.calculator: Pure valorisation, multiplier and rentability functions
    - application.services: Prime aggregation, site adapter and summary tables
"""

__version__ = "1.4.0"
