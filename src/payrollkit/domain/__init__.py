"""Domain layer for payrollkit.

Services are imported from their own modules; this package only groups
them so that payrollkit.database can import the entities without pulling
the services in.
"""
