"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending engines.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Money is moved, never created or destroyed
2. atomicity.py - A refused investment changes nothing
3. validation_order.py - The first failing check is the one reported
4. accrual_properties.py - Day counting, zero floor, two-place payments

These tests use hypothesis for property-based testing.
"""
