"""Client-side session and collection state for the CineVault catalog API."""

from .app import CineVault

__all__ = ["CineVault"]
