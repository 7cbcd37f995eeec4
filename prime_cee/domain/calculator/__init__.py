"""Pure valorisation and rentability calculators."""
