"""ClaimScope Pydantic models."""
