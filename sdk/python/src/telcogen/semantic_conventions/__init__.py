"""telcogen Semantic Conventions.

Attribute constants used on spans emitted by the generator pipeline.
"""

from telcogen.semantic_conventions.attributes import (
    GeneratorAttributes,
    PublishAttributes,
    QualityAttributes,
)

__all__ = [
    "GeneratorAttributes",
    "PublishAttributes",
    "QualityAttributes",
]
