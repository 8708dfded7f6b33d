"""API Resilience Implementations.

The retrying caller, its exponential backoff sequence and the cohort
timestamp store.
Bounded Context: API Resilience
"""
