"""FastAPI adapter exposing upload acceptance and status polling."""
