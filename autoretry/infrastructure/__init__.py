"""Infrastructure Layer: Contains concrete implementations and adapters.

The retrying caller itself, the cohort store, configuration, logging,
the scripted transport and the developer CLI.
"""
