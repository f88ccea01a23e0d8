"""Business logic services.

Services own the offer workflow (intake, status transitions, discount
provisioning, draft order bundling, notifications). Routes stay thin and
stores hold no workflow rules.
"""
