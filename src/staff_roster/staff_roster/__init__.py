"""Staff Roster package.

Feature modules (attendance, rosters, users, roles, audit, sandbox) each keep a
plain model, a repository interface with a MySQL implementation, a service holding
the business rules and a thin Flask controller.
"""
