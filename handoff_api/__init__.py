"""HTTP surface for the design handoff pipeline."""
