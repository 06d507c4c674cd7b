"""Pure domain core: records, calculators, projections, clock."""
