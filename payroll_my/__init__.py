"""Payroll MY - Malaysian statutory payroll deductions (EPF, SOCSO, EIS, PCB)."""

__version__ = "0.1.0"
