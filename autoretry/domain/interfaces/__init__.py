"""Domain Interfaces (Ports).

Abstract contracts implemented by the infrastructure layer.
"""
