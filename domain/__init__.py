"""Pure domain model for lead quota consumption."""
