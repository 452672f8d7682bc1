"""Order drafts, pricing, charges and the order wizard."""
