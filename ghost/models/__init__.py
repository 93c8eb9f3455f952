from .manifest import ManifestDefinition

__all__ = ["ManifestDefinition"]
