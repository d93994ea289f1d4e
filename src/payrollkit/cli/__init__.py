"""Command line interface for payrollkit."""
