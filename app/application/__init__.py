"""Application layer: interfaces, DTOs, services.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, claims directory).
"""
