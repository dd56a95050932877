"""ClaimScope validators."""
