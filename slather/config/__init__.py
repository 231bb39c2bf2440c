"""Declaration table loading."""
from slather.config.loader import DeclarationLoader, DeclarationTable

__all__ = ['DeclarationLoader', 'DeclarationTable']
