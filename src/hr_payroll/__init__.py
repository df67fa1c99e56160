"""Employee payroll management: salary structures, payroll workflow and audit trail."""

__version__ = "0.1.0"
