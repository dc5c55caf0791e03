"""
Armature - Property-Based Testing Suite

Property-based testing using Hypothesis to check container invariants
over generated service ids, parameters and tags.
"""
