"""HTTP surface for the launch core."""
