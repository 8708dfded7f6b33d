"""Domain Event definitions.

Represents significant occurrences in a logical call (a retry being
scheduled, a failure being given up on) that other code may observe.
"""
