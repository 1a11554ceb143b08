"""CarScout: vehicle listing valuation and resellability engine."""
