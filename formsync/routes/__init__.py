"""HTTP routes of the sync agent."""
