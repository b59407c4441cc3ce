"""Core building blocks of the FShare client."""
