"""
Shared Test Fixtures for the Bonus Engine

- engine_data.py: record factories, pools, rules and in-memory datasets
"""

from .engine_data import (
    dataset_file,
    equal_tier_rule,
    make_calculation,
    make_eligible,
    make_profile,
    pool_100k,
    sample_dataset,
    sample_dataset_dict,
    score_rule,
    services,
)

__all__ = [
    "dataset_file",
    "equal_tier_rule",
    "make_calculation",
    "make_eligible",
    "make_profile",
    "pool_100k",
    "sample_dataset",
    "sample_dataset_dict",
    "score_rule",
    "services",
]
