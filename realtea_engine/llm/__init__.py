"""LLM client used by the claim reasoner."""
