"""Discord copilot: persona + history + document retrieval replies."""
