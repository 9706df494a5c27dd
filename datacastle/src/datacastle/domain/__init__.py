"""Domain layer - questions and record keys."""
