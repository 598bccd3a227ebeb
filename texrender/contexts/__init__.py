"""Bounded contexts of texrender (templating, rendering)."""
