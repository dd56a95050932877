"""Seed data for the ClaimScope catalog."""
