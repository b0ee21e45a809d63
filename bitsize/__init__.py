"""Bit-sized integers, enums and packed bitfield structs, with plain-data serialization."""

__version__ = "0.2.0"

__all__ = ["codec", "enums", "serde", "structs", "uint"]