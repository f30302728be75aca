"""Personal calorie tracking: profiles, daily intake ledgers and history."""
