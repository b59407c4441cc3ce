"""Command line interface for fsharepy."""
from .main import app

__all__ = ['app']
