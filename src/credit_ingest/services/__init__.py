"""Service layer wiring the extraction engine to storage and background execution."""
