"""Payroll MY command-line interface."""
