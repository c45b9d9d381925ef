"""HTTP endpoint exposing the published ECC properties."""
