"""Flow Estate API: listings, media and publishing for real-estate agents."""
