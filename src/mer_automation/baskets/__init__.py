"""Basket assignment, return, activity reconciliation and purge warnings."""
