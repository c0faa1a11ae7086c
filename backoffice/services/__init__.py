"""Domain services for the back-office: sales, pricing, charts and reports."""
