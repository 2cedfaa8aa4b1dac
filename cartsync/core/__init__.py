"""Configuration, logging, models and exceptions shared across CartSync."""
