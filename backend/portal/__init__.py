"""Job portal domain: models, matching, analytics and data access."""
