"""Shared hypothesis settings for the schemafuzz test suite."""

from __future__ import annotations

from hypothesis import HealthCheck, settings

# Filtered strategies are expected to be slow and to discard draws; the
# success-rate guard, not hypothesis, decides when that is a problem.
settings.register_profile(
    "schemafuzz",
    deadline=None,
    max_examples=50,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.filter_too_much],
)
settings.load_profile("schemafuzz")
