"""ClaimScope services: catalog, geometry, companions, pricing and the engine facade."""
