"""Bounded contexts of the tailoring pipeline: templating, targeting, rendering."""
