"""Order pricing, payment reconciliation and order wizards for a small business console."""
