"""Pure reconciliation services and the orchestration around them."""
